"""Code Format — candidate rendering and input validation for redemption codes.

Invariants:
    - Rendered candidates are lowercase hex of exactly `length` characters
    - Validators raise ValidationError before any store access
    - Pure functions: randomness is supplied by the caller as raw bytes

Design Decisions:
    - Raw bytes in, string out: the shell owns the CSPRNG, core stays deterministic and testable
    - Redemption input is stripped and lowercased before the pattern check, so
      "DEADBEEF12 " and "deadbeef12" address the same record
"""

import math
import re

from redemption.core.domain_types import (
    CODE_PATTERN, MAX_CODE_LENGTH, MAX_QUANTITY, MIN_CODE_LENGTH, MIN_QUANTITY,
)
from redemption.core.errors import ValidationError

_CODE_RE = re.compile(CODE_PATTERN)


def candidate_byte_count(length: int) -> int:
    """Random bytes needed to render `length` hex characters."""
    return math.ceil(length / 2)


def render_candidate(raw: bytes, length: int) -> str:
    """Render random bytes as a lowercase hex candidate truncated to `length`."""
    rendered = raw.hex()
    if len(rendered) < length:
        raise ValueError(
            f"need {candidate_byte_count(length)} bytes for length {length}, got {len(raw)}",
        )
    return rendered[:length]


def is_valid_code(code: str) -> bool:
    return bool(_CODE_RE.fullmatch(code))


def normalize_code(code: str) -> str:
    return code.strip().lower()


def validate_code(code: object) -> str:
    """Normalize and validate a code submitted for redemption."""
    if not isinstance(code, str):
        raise ValidationError("Code must be a string", "code")
    normalized = normalize_code(code)
    if not is_valid_code(normalized):
        raise ValidationError(
            f"Code must be {MIN_CODE_LENGTH}-{MAX_CODE_LENGTH} hexadecimal characters",
            "code",
        )
    return normalized


def validate_length(length: int) -> int:
    if isinstance(length, bool) or not isinstance(length, int):
        raise ValidationError("Length must be an integer", "length")
    if not MIN_CODE_LENGTH <= length <= MAX_CODE_LENGTH:
        raise ValidationError(
            f"Length must be between {MIN_CODE_LENGTH} and {MAX_CODE_LENGTH} characters",
            "length",
        )
    return length


def validate_quantity(quantity: int) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError("Quantity must be an integer", "quantity")
    if not MIN_QUANTITY <= quantity <= MAX_QUANTITY:
        raise ValidationError(
            f"Quantity must be between {MIN_QUANTITY} and {MAX_QUANTITY:,}",
            "quantity",
        )
    return quantity


def validate_metadata(metadata: object) -> dict:
    if metadata is None:
        return {}
    if not isinstance(metadata, dict):
        raise ValidationError("Metadata must be an object", "metadata")
    return metadata
