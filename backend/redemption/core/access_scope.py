"""Access Scope — single capability check for every operation on a code record.

Invariants:
    - super_admin sees and mutates every record
    - manufacturer sees and mutates only records where generated_by == actor.id
    - app_user may redeem but never generate, list, fetch or delete
    - scope_filter never widens a restricted actor's view: a requested owner_id is overridden

Design Decisions:
    - One module instead of per-endpoint role checks: list, fetch, delete and
      bulk delete all go through the same functions
    - Records are read structurally (anything with generated_by), so ORM rows and
      plain dicts returned by the store both work
"""

from dataclasses import replace
from typing import Any

from redemption.core.domain_types import Actor, ActorRole, CodeFilter
from redemption.core.errors import AuthorizationError, ErrorContext

PORTAL_ROLES = frozenset({ActorRole.SUPER_ADMIN, ActorRole.MANUFACTURER})


def is_privileged(actor: Actor) -> bool:
    return actor.role == ActorRole.SUPER_ADMIN


def _field(record: Any, name: str):
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def visible(actor: Actor, record: Any) -> bool:
    """Whether the actor may see the record."""
    if actor.role not in PORTAL_ROLES:
        return False
    if is_privileged(actor):
        return True
    return _field(record, "generated_by") == actor.id


def mutable(actor: Actor, record: Any) -> bool:
    """Whether the actor may delete the record. Same rule as visibility."""
    return visible(actor, record)


def require_portal_actor(actor: Actor) -> None:
    """Generation and management are limited to portal roles."""
    if actor.role not in PORTAL_ROLES:
        raise AuthorizationError(
            "Access denied. Insufficient permissions.",
            ErrorContext(actor_id=str(actor.id)),
        )


def require_visible(actor: Actor, record: Any) -> None:
    if not visible(actor, record):
        raise AuthorizationError(
            "Access denied.",
            ErrorContext(actor_id=str(actor.id), code_id=str(_field(record, "id"))),
        )


def require_mutable(actor: Actor, record: Any) -> None:
    if not mutable(actor, record):
        raise AuthorizationError(
            "Access denied.",
            ErrorContext(actor_id=str(actor.id), code_id=str(_field(record, "id"))),
        )


def scope_filter(actor: Actor, code_filter: CodeFilter) -> CodeFilter:
    """Narrow a filter to what the actor is allowed to see."""
    require_portal_actor(actor)
    if is_privileged(actor):
        return code_filter
    return replace(code_filter, owner_id=actor.id)
