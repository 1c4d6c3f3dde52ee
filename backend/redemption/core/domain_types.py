"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - CodeId, ActorId wrap UUIDs — never use bare UUID in domain logic
    - BatchId wraps str (opaque, "batch_<base36 ms>_<hex>")
    - Code length is bounded 8–20, batch quantity is bounded 1–10000
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON and to the DB `status` column without custom encoders
    - Actor and CodeFilter are frozen dataclasses: passed through core functions, never mutated
"""

from dataclasses import dataclass
from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

CodeId = NewType("CodeId", UUID)
ActorId = NewType("ActorId", UUID)
BatchId = NewType("BatchId", str)


# ─── Bounds ──────────────────────────────────────────────────────

MIN_CODE_LENGTH = 8
MAX_CODE_LENGTH = 20
DEFAULT_CODE_LENGTH = 12
MIN_QUANTITY = 1
MAX_QUANTITY = 10_000
CODE_PATTERN = r"^[a-f0-9]{8,20}$"


# ─── Enums ───────────────────────────────────────────────────────

class CodeStatus(str, Enum):
    """Code lifecycle states — maps to DB `status` column. One-way transition."""
    UNREDEEMED = "unredeemed"
    REDEEMED = "redeemed"


class ActorRole(str, Enum):
    """Roles supplied by the upstream identity provider."""
    APP_USER = "app_user"
    SUPER_ADMIN = "super_admin"
    MANUFACTURER = "manufacturer"


# ─── Value Objects ───────────────────────────────────────────────

@dataclass(frozen=True)
class Actor:
    """The identity a request acts on behalf of."""
    id: ActorId
    role: ActorRole


@dataclass(frozen=True)
class CodeFilter:
    """Named optional filters for listing codes. None means 'no constraint'."""
    status: CodeStatus | None = None
    batch_id: str | None = None
    owner_id: ActorId | None = None
    search: str | None = None
