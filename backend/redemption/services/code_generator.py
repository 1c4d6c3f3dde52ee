"""Code Generator — random fixed-length codes checked against the store before use.

Invariants:
    - Every returned code was absent from the store when checked
    - No code is returned twice within one `seen` set (one generation request)
    - Each slot gets at most max_attempts draws; an exhausted slot fails alone
    - Store work per round is bounded by group_size candidates (one IN query)
    - Never loops unbounded

Design Decisions:
    - Candidate check is a read, not a reservation: the unique index at insert
      time stays authoritative, callers must tolerate dropped rows
    - Random source injectable (secrets.token_bytes by default): tests force collisions
    - Rounds instead of per-slot loops: one existence query per round for the whole group
"""

import logging
import secrets
from dataclasses import dataclass, field
from typing import Callable

from redemption.core.code_format import candidate_byte_count, render_candidate
from redemption.core.errors import GenerationExhaustedError
from redemption.core.repository_protocols import CodeStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 100
DEFAULT_GROUP_SIZE = 100


@dataclass
class GenerationBatch:
    """Codes that passed the existence check, plus the slots that ran out of attempts."""
    codes: list[str] = field(default_factory=list)
    failed_slots: int = 0


class CodeGenerator:
    """Draws candidates and filters out the ones the store already holds."""

    def __init__(
        self,
        store: CodeStore,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        group_size: int = DEFAULT_GROUP_SIZE,
        random_bytes: Callable[[int], bytes] = secrets.token_bytes,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if group_size < 1:
            raise ValueError("group_size must be >= 1")
        self.store = store
        self.max_attempts = max_attempts
        self.group_size = group_size
        self._random_bytes = random_bytes

    def _draw(self, length: int) -> str:
        return render_candidate(
            self._random_bytes(candidate_byte_count(length)), length,
        )

    async def generate_one(self, length: int) -> str:
        """One code absent from the store, or GenerationExhaustedError."""
        batch = await self.generate_many(1, length)
        if not batch.codes:
            raise GenerationExhaustedError(self.max_attempts)
        return batch.codes[0]

    async def generate_many(
        self, count: int, length: int, seen: set[str] | None = None,
    ) -> GenerationBatch:
        """Up to `count` distinct codes, processed in groups of group_size.

        `seen` carries codes already handed out in the same request; it is
        updated in place with every candidate drawn.
        """
        seen = set() if seen is None else seen
        result = GenerationBatch()
        for start in range(0, count, self.group_size):
            size = min(self.group_size, count - start)
            codes, failed = await self._fill_group(size, length, seen)
            result.codes.extend(codes)
            result.failed_slots += failed
        return result

    async def _fill_group(
        self, size: int, length: int, seen: set[str],
    ) -> tuple[list[str], int]:
        accepted: list[str] = []
        open_slots = size
        for attempt in range(1, self.max_attempts + 1):
            if not open_slots:
                break
            candidates = []
            for _ in range(open_slots):
                candidate = self._draw(length)
                if candidate in seen:
                    continue
                seen.add(candidate)
                candidates.append(candidate)
            taken = await self.store.existing_codes(candidates)
            fresh = [c for c in candidates if c not in taken]
            accepted.extend(fresh)
            open_slots -= len(fresh)
            if open_slots:
                logger.debug(
                    f"{open_slots} slot(s) collided, redrawing",
                    extra={"attempt": attempt},
                )
        if open_slots:
            logger.error(
                f"{open_slots} slot(s) exhausted after {self.max_attempts} attempts",
                extra={"failed_slots": open_slots},
            )
        return accepted, open_slots
