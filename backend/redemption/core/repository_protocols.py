"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection
    - Every write method is independently atomic (no transaction spans calls)

Design Decisions:
    - Protocol over ABC: structural subtyping, tests pass in-memory fakes (ADR: ExMA anti-pattern)
    - Async in Protocol: boundary methods are async because implementations do IO,
      but core pure functions that USE these protocols are never async themselves —
      the shell orchestrates the async calls around the pure logic
    - Records cross the boundary as plain dicts (same keys as the ORM attributes,
      with `metadata` instead of `metadata_`)
"""

from datetime import datetime
from typing import Protocol

from redemption.core.domain_types import ActorId, CodeFilter, CodeId


class CodeStore(Protocol):
    """Contract for redemption code persistence — implemented by shell.

    Must enforce uniqueness of `code` itself (unique index), not rely on callers.
    """

    async def existing_codes(self, codes: list[str]) -> set[str]:
        """Subset of `codes` already present in the store (one round-trip)."""
        ...

    async def insert_many(self, rows: list[dict]) -> list[dict]:
        """Unordered insert skipping duplicate codes. Returns the rows that landed."""
        ...

    async def renumber(
        self, batch_id: str, moves: list[tuple[int, int]],
    ) -> None:
        """Apply (from, to) batch_number moves in order, in one transaction."""
        ...

    async def redeem(
        self, code: str, actor_id: ActorId, now: datetime,
    ) -> dict | None:
        """Atomically flip an active unredeemed code to redeemed, or return None."""
        ...

    async def get(self, code_id: CodeId) -> dict | None: ...

    async def find(
        self, code_filter: CodeFilter, offset: int, limit: int,
    ) -> tuple[list[dict], int]:
        """Newest first. Returns (page, total matching count)."""
        ...

    async def delete_many(
        self,
        *,
        ids: list[CodeId] | None = None,
        batch_id: str | None = None,
        owner_id: ActorId | None = None,
    ) -> list[dict]:
        """Delete matching records (intersected with owner_id when given).

        Returns summaries of exactly the records removed.
        """
        ...

    async def status_counts(self, owner_id: ActorId | None) -> dict[str, int]: ...

    async def recent_batches(
        self, owner_id: ActorId | None, limit: int,
    ) -> list[dict]: ...
