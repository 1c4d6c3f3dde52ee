"""Redemption Handler — redeem_code: the single unredeemed -> redeemed transition.

Invariants:
    - Code format validated before the store is touched
    - Lookup and transition are one conditional store call (CodeStore.redeem);
      there is no read-then-write window
    - Unknown, already redeemed and inactive codes all raise ResourceNotFoundError
    - Any authenticated role may redeem

Design Decisions:
    - Clock injected: redeemed_at comes from the handler, tests pin it
    - Only a masked prefix of the code reaches logs and error messages
"""

import logging
from datetime import datetime, timezone
from typing import Callable

from redemption.core.code_format import validate_code
from redemption.core.domain_types import Actor
from redemption.core.errors import ErrorContext, ResourceNotFoundError
from redemption.core.repository_protocols import CodeStore
from redemption.infrastructure.observability import mask_code

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RedemptionHandlers:
    """Single-use redemption."""

    def __init__(
        self, store: CodeStore, clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.clock = clock

    async def redeem_code(self, actor: Actor, code: str) -> dict:
        """Mark the code redeemed by `actor`. Exactly one caller ever succeeds."""
        normalized = validate_code(code)
        record = await self.store.redeem(normalized, actor.id, self.clock())
        if record is None:
            logger.info(
                f"Redemption miss for {mask_code(normalized)}",
                extra={"actor_id": actor.id},
            )
            raise ResourceNotFoundError(
                "Code", mask_code(normalized),
                ErrorContext(actor_id=str(actor.id)),
            )
        logger.info(
            "Code redeemed",
            extra={
                "actor_id": actor.id, "code_id": record["id"],
                "batch_id": record["batch_id"],
            },
        )
        return {
            "id": record["id"],
            "code": record["code"],
            "batch_id": record["batch_id"],
            "redeemed_at": record["redeemed_at"],
        }
