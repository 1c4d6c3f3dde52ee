"""API Dependencies — actor identity and handler wiring for route functions.

Invariants:
    - The actor comes from X-Actor-Id / X-Actor-Role headers set by the upstream gateway
    - Missing or malformed identity raises AuthenticationError (401) before any handler runs
    - Handlers get a SqlCodeStore bound to the request's session; nothing is shared across requests

Design Decisions:
    - Identity headers instead of token parsing: authentication lives in the gateway,
      this service only consumes the resolved actor
    - Factories read tuning from get_settings() so tests can override settings or get_db alone
"""

from uuid import UUID

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from redemption.config import get_settings
from redemption.core.domain_types import Actor, ActorId, ActorRole
from redemption.core.errors import AuthenticationError
from redemption.infrastructure.code_store import SqlCodeStore
from redemption.infrastructure.database import get_db
from redemption.services.code_generator import CodeGenerator
from redemption.services.handle_generation import GenerationHandlers
from redemption.services.handle_management import ManagementHandlers
from redemption.services.handle_redemption import RedemptionHandlers


async def get_current_actor(
    x_actor_id: str | None = Header(None),
    x_actor_role: str | None = Header(None),
) -> Actor:
    """Resolve the acting identity from gateway headers."""
    if not x_actor_id or not x_actor_role:
        raise AuthenticationError()
    try:
        actor_id = ActorId(UUID(x_actor_id))
        role = ActorRole(x_actor_role)
    except ValueError:
        raise AuthenticationError("Invalid actor identity")
    return Actor(id=actor_id, role=role)


def get_code_store(db: AsyncSession = Depends(get_db)) -> SqlCodeStore:
    return SqlCodeStore(db)


def get_generation_handlers(
    store: SqlCodeStore = Depends(get_code_store),
) -> GenerationHandlers:
    settings = get_settings()
    generator = CodeGenerator(
        store,
        max_attempts=settings.generation_max_attempts,
        group_size=settings.generation_group_size,
    )
    return GenerationHandlers(store, generator)


def get_redemption_handlers(
    store: SqlCodeStore = Depends(get_code_store),
) -> RedemptionHandlers:
    return RedemptionHandlers(store)


def get_management_handlers(
    store: SqlCodeStore = Depends(get_code_store),
) -> ManagementHandlers:
    return ManagementHandlers(
        store, default_limit=get_settings().list_default_limit,
    )
