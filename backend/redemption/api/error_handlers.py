"""Error Handlers — map RedemptionError and request validation failures to JSON responses.

Invariants:
    - RedemptionError → its own http_status with the to_response() envelope
    - Log level follows ErrorSeverity; batch_id, actor_id and code_id from ErrorContext
      travel as log fields, never as message text
    - Request body/query validation → 400 with per-field details, same envelope as ValidationError
    - Anything else → 500 without internal details

Design Decisions:
    - Field paths drop the "body"/"query"/"header" prefix so clients see the same
      field names the domain ValidationError uses
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from redemption.core.errors import ErrorSeverity, RedemptionError

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.WARNING,
    ErrorSeverity.CRITICAL: logging.ERROR,
}
_LOCATION_PREFIXES = {"body", "query", "path", "header"}


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RedemptionError, handle_redemption_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(Exception, handle_unexpected)


async def handle_redemption_error(request: Request, exc: RedemptionError):
    ctx = exc.context
    logger.log(
        _LOG_LEVELS.get(exc.severity, logging.ERROR),
        f"{exc.code} on {request.method} {request.url.path}: {exc.message}",
        extra={
            "error_code": exc.code, "path": request.url.path,
            "actor_id": ctx.actor_id, "batch_id": ctx.batch_id,
            "code_id": ctx.code_id,
        },
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


async def handle_request_validation(request: Request, exc: RequestValidationError):
    details = [
        {"field": _field_path(e["loc"]), "message": e["msg"], "type": e["type"]}
        for e in exc.errors()
    ]
    logger.warning(
        f"Rejected request to {request.url.path}: "
        f"{', '.join(d['field'] for d in details)}",
        extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Invalid request data",
                "category": "validation",
                "severity": ErrorSeverity.ERROR.value,
                "details": details,
            },
        },
    )


async def handle_unexpected(request: Request, exc: Exception):
    logger.error(
        f"Unhandled exception on {request.url.path}: {exc}",
        exc_info=True, extra={"path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "category": "internal",
                "severity": ErrorSeverity.CRITICAL.value,
            },
        },
    )


def _field_path(loc) -> str:
    parts = [str(p) for p in loc]
    if len(parts) > 1 and parts[0] in _LOCATION_PREFIXES:
        parts = parts[1:]
    return ".".join(parts)
