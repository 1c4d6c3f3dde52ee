"""Management Handlers — list_codes, get_code, delete_code, delete_codes, get_stats.

Invariants:
    - Every operation passes through access_scope before the store is queried
    - Restricted actors' filters and deletes are intersected with their own records
    - Bulk delete reports exactly the records the store removed
    - Page and limit validated before any store access

Design Decisions:
    - Bulk delete by batch_id takes precedence when both batch_id and ids are given
    - Ownership check on single delete happens twice: once to tell 403 from 404,
      once inside the DELETE (owner_id) so a concurrent change cannot widen it
"""

import logging
import math

from redemption.core.access_scope import (
    is_privileged, require_mutable, require_portal_actor, require_visible,
    scope_filter,
)
from redemption.core.code_stats import compute_code_stats
from redemption.core.domain_types import Actor, CodeFilter, CodeId
from redemption.core.errors import (
    ErrorContext, ResourceNotFoundError, ValidationError,
)
from redemption.core.repository_protocols import CodeStore

logger = logging.getLogger(__name__)

MAX_PAGE_LIMIT = 100
RECENT_BATCH_LIMIT = 10


class ManagementHandlers:
    """Scoped listing, lookup, deletion and stats."""

    def __init__(self, store: CodeStore, default_limit: int = 50):
        self.store = store
        self.default_limit = default_limit

    async def list_codes(
        self,
        actor: Actor,
        code_filter: CodeFilter,
        page: int = 1,
        limit: int | None = None,
    ) -> dict:
        """Page through the codes visible to the actor, newest first."""
        require_portal_actor(actor)
        limit = self.default_limit if limit is None else limit
        if page < 1:
            raise ValidationError("Page must be at least 1", "page")
        if not 1 <= limit <= MAX_PAGE_LIMIT:
            raise ValidationError(
                f"Limit must be between 1 and {MAX_PAGE_LIMIT}", "limit",
            )
        scoped = scope_filter(actor, code_filter)
        records, total = await self.store.find(scoped, (page - 1) * limit, limit)
        return {
            "codes": records,
            "pagination": {
                "current_page": page,
                "total_pages": math.ceil(total / limit),
                "total_count": total,
                "limit": limit,
            },
        }

    async def get_code(self, actor: Actor, code_id: CodeId) -> dict:
        require_portal_actor(actor)
        record = await self.store.get(code_id)
        if record is None:
            raise ResourceNotFoundError("Code", str(code_id))
        require_visible(actor, record)
        return record

    async def delete_code(self, actor: Actor, code_id: CodeId) -> dict:
        """Delete one record the actor owns (or any, if privileged)."""
        require_portal_actor(actor)
        record = await self.store.get(code_id)
        if record is None:
            raise ResourceNotFoundError("Code", str(code_id))
        require_mutable(actor, record)
        deleted = await self.store.delete_many(
            ids=[code_id], owner_id=self._owner_scope(actor),
        )
        if not deleted:
            raise ResourceNotFoundError("Code", str(code_id))
        logger.info(
            "Code deleted",
            extra={"actor_id": actor.id, "code_id": code_id},
        )
        return deleted[0]

    async def delete_codes(
        self,
        actor: Actor,
        ids: list[CodeId] | None = None,
        batch_id: str | None = None,
    ) -> dict:
        """Delete by batch or id set, limited to the actor's visible records."""
        require_portal_actor(actor)
        if batch_id is not None and not batch_id.strip():
            raise ValidationError("batch_id must be a non-empty string", "batch_id")
        if batch_id is None and not ids:
            raise ValidationError(
                "Either code ids or batch_id must be provided", "ids",
            )
        if batch_id is not None:
            deleted = await self.store.delete_many(
                batch_id=batch_id.strip(), owner_id=self._owner_scope(actor),
            )
        else:
            deleted = await self.store.delete_many(
                ids=list(ids), owner_id=self._owner_scope(actor),
            )
        if not deleted:
            raise ResourceNotFoundError(
                "Codes", batch_id or f"{len(ids)} id(s)",
                ErrorContext(actor_id=str(actor.id), batch_id=batch_id),
            )
        logger.info(
            f"Deleted {len(deleted)} code(s)",
            extra={"actor_id": actor.id, "batch_id": batch_id},
        )
        return {"deleted_count": len(deleted), "deleted": deleted}

    async def get_stats(self, actor: Actor) -> dict:
        require_portal_actor(actor)
        owner = self._owner_scope(actor)
        counts = await self.store.status_counts(owner)
        batches = await self.store.recent_batches(owner, RECENT_BATCH_LIMIT)
        return compute_code_stats(counts, batches, RECENT_BATCH_LIMIT)

    @staticmethod
    def _owner_scope(actor: Actor):
        return None if is_privileged(actor) else actor.id
