"""Error Hierarchy — typed, categorized exceptions for all code issuance failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) short-circuit before any store side effect
    - Infrastructure errors (500-level) are surfaced, never retried by the core
    - to_response() produces the REST envelope
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with RedemptionError base: FastAPI global handler catches all (ADR: uniform error shape)
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - Redemption misses use ResourceNotFoundError for unknown AND already-redeemed codes:
      both are terminal for the redeemer
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    RESOURCE_NOT_FOUND = "resource_not_found"
    GENERATION = "generation"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    actor_id: str | None = None
    batch_id: str | None = None
    code_id: str | None = None
    debug_info: dict[str, Any] | None = None


class RedemptionError(Exception):
    """Base exception for all code issuance and redemption errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "actor_id": self.context.actor_id,
                    "batch_id": self.context.batch_id,
                    "code_id": self.context.code_id,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class ValidationError(RedemptionError):
    """Malformed input — quantity/length out of range, code fails pattern."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class AuthenticationError(RedemptionError):
    """No usable actor identity on the request."""
    def __init__(self, message: str = "Actor identity required", context: ErrorContext | None = None):
        super().__init__(
            message, "AUTHENTICATION_REQUIRED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class AuthorizationError(RedemptionError):
    """Actor lacks the role or ownership for the operation."""
    def __init__(self, message: str = "Access denied", context: ErrorContext | None = None):
        super().__init__(
            message, "AUTHORIZATION_ERROR", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 403,
        )


class ResourceNotFoundError(RedemptionError):
    """Requested resource does not exist (or, for redemption, is no longer redeemable)."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


# ─── Generation / Infrastructure Errors (500-level) ─────────────

class GenerationExhaustedError(RedemptionError):
    """No unique candidate found for one code slot within the attempt budget."""
    def __init__(self, attempts: int, context: ErrorContext | None = None):
        super().__init__(
            f"Unable to generate a unique code after {attempts} attempts",
            "GENERATION_EXHAUSTED", ErrorCategory.GENERATION,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.attempts = attempts


class StoreError(RedemptionError):
    """Store operation failed (transient infrastructure failure)."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Store {operation} failed: {message}",
            "STORE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
