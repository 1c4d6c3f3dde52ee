"""Batch Allocator — batch identifiers and 1-based sequence positions for generated codes.

Invariants:
    - batch id = "batch_<base36 epoch-ms>_<8 hex chars>"; uniqueness is probabilistic
    - assign_sequence numbers codes start..start+n-1 in generation order
    - build_records sets every immutable field; nothing is filled in later
    - compaction_moves closes holes in a group without touching numbers below them

Design Decisions:
    - now and random bytes injected: pure functions, deterministic under test
    - Rows are plain dicts: they go straight into a Core INSERT, no ORM identity map
"""

import uuid
from datetime import datetime
from typing import Iterable

from redemption.core.domain_types import ActorId, BatchId, CodeStatus

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def new_batch_id(now: datetime, random_bytes: bytes) -> BatchId:
    """Build a batch id from wall-clock milliseconds plus 4 random bytes."""
    millis = int(now.timestamp() * 1000)
    return BatchId(f"batch_{_to_base36(millis)}_{random_bytes[:4].hex()}")


def assign_sequence(codes: Iterable[str], start: int = 1) -> list[tuple[int, str]]:
    """Pair each code with its batch number, in order."""
    return [(start + i, code) for i, code in enumerate(codes)]


def build_records(
    numbered_codes: Iterable[tuple[int, str]],
    *,
    batch_id: BatchId,
    quantity: int,
    generated_by: ActorId,
    metadata: dict,
    now: datetime,
) -> list[dict]:
    """Insert rows for one persist step."""
    return [
        {
            "id": uuid.uuid4(),
            "code": code,
            "status": CodeStatus.UNREDEEMED.value,
            "generated_by": generated_by,
            "batch_id": batch_id,
            "quantity": quantity,
            "batch_number": batch_number,
            "is_active": True,
            "metadata_": dict(metadata),
            "created_at": now,
            "updated_at": now,
        }
        for batch_number, code in numbered_codes
    ]


def compaction_moves(
    landed: Iterable[int], holes: Iterable[int],
) -> list[tuple[int, int]]:
    """Moves (from, to) that shift the highest landed numbers into the holes.

    After applying them, a group that started at `s` with K landed rows
    occupies exactly s..s+K-1. Each target is free when its move runs.
    """
    highest_first = sorted(landed, reverse=True)
    moves = []
    for hole in sorted(holes):
        if not highest_first or highest_first[0] < hole:
            break
        moves.append((highest_first.pop(0), hole))
    return moves
