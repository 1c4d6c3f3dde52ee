"""Generation Handler — generate_codes: validate, allocate a batch, draw codes, persist.

Invariants:
    - Role and input validation happen before any store access
    - One batch_id per request; every row carries the requested quantity
    - Persisted batch numbers are exactly 1..inserted_count
    - Rows dropped by the unique index are refilled at the same batch numbers;
      numbers left open after the refill budget are closed by renumbering
      the group's highest rows, before the next group is numbered
    - inserted_count may be lower than requested_quantity; the shortfall is
      reported as failed_slots, never raised, unless nothing at all was persisted

Design Decisions:
    - Persist group by group (group_size rows per INSERT): caps outstanding store
      work and memory, a failure mid-request keeps the groups already committed
    - Refill loop bounded by the generator's max_attempts
"""

import logging
import secrets
from datetime import datetime, timezone
from typing import Callable

from redemption.core.access_scope import require_portal_actor
from redemption.core.batch_allocator import (
    assign_sequence, build_records, compaction_moves, new_batch_id,
)
from redemption.core.code_format import (
    validate_length, validate_metadata, validate_quantity,
)
from redemption.core.domain_types import Actor, BatchId, DEFAULT_CODE_LENGTH
from redemption.core.errors import ErrorContext, GenerationExhaustedError
from redemption.core.repository_protocols import CodeStore
from redemption.services.code_generator import CodeGenerator

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GenerationHandlers:
    """Bulk code issuance."""

    def __init__(
        self,
        store: CodeStore,
        generator: CodeGenerator,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.generator = generator
        self.clock = clock

    async def generate_codes(
        self,
        actor: Actor,
        quantity: int,
        length: int = DEFAULT_CODE_LENGTH,
        metadata: dict | None = None,
    ) -> dict:
        """Issue up to `quantity` codes in a new batch."""
        require_portal_actor(actor)
        quantity = validate_quantity(quantity)
        length = validate_length(length)
        metadata = validate_metadata(metadata)

        now = self.clock()
        batch_id = new_batch_id(now, secrets.token_bytes(4))
        seen: set[str] = set()
        persisted: list[dict] = []
        next_number = 1
        group_size = self.generator.group_size

        for start in range(0, quantity, group_size):
            size = min(group_size, quantity - start)
            batch = await self.generator.generate_many(size, length, seen)
            numbered = assign_sequence(batch.codes, start=next_number)
            landed = await self._persist(
                numbered,
                batch_id=batch_id, quantity=quantity, actor=actor,
                metadata=metadata, now=now, length=length, seen=seen,
            )
            next_number += len(landed)
            persisted.extend(landed)

        inserted_count = len(persisted)
        failed_slots = quantity - inserted_count
        if inserted_count == 0:
            raise GenerationExhaustedError(
                self.generator.max_attempts,
                ErrorContext(actor_id=str(actor.id), batch_id=batch_id),
            )

        persisted.sort(key=lambda row: row["batch_number"])
        logger.info(
            f"Generated {inserted_count}/{quantity} codes",
            extra={
                "batch_id": batch_id, "actor_id": actor.id,
                "requested": quantity, "inserted": inserted_count,
                "failed_slots": failed_slots,
            },
        )
        return {
            "batch_id": batch_id,
            "requested_quantity": quantity,
            "inserted_count": inserted_count,
            "failed_slots": failed_slots,
            "codes": [row["code"] for row in persisted],
            "generated_at": now,
            "generated_by": actor.id,
        }

    async def _persist(
        self,
        numbered: list[tuple[int, str]],
        *,
        batch_id: BatchId,
        quantity: int,
        actor: Actor,
        metadata: dict,
        now: datetime,
        length: int,
        seen: set[str],
    ) -> list[dict]:
        """Insert one group, refilling numbers whose code lost an insert race.

        Numbers still open when the refill budget runs out are closed by
        moving the group's highest landed rows down, so the group always
        occupies its first len(result) numbers.
        """
        inserted: list[dict] = []
        pending = list(numbered)
        open_numbers = [n for n, _ in numbered]
        attempt = 0
        while open_numbers and attempt < self.generator.max_attempts:
            attempt += 1
            if pending:
                rows = build_records(
                    pending, batch_id=batch_id, quantity=quantity,
                    generated_by=actor.id, metadata=metadata, now=now,
                )
                landed = await self.store.insert_many(rows)
                inserted.extend(landed)
                landed_numbers = {row["batch_number"] for row in landed}
                open_numbers = [n for n in open_numbers if n not in landed_numbers]
            if not open_numbers or attempt == self.generator.max_attempts:
                break
            logger.warning(
                f"Refilling {len(open_numbers)} batch number(s) after insert conflicts",
                extra={"batch_id": batch_id, "attempt": attempt},
            )
            refill = await self.generator.generate_many(
                len(open_numbers), length, seen,
            )
            pending = list(zip(open_numbers, refill.codes))

        moves = compaction_moves(
            [row["batch_number"] for row in inserted], open_numbers,
        )
        if moves:
            await self.store.renumber(batch_id, moves)
            targets = dict(moves)
            for row in inserted:
                row["batch_number"] = targets.get(row["batch_number"], row["batch_number"])
            logger.warning(
                f"Closed {len(moves)} batch number gap(s)",
                extra={"batch_id": batch_id, "failed_slots": len(open_numbers)},
            )
        return inserted
