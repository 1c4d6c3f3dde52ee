"""Health Routes — liveness and code-store readiness for the orchestrator.

Invariants:
    - GET /health/ answers 200 while the process runs; it never touches the store
    - GET /health/ready answers 503 unless the redemption_codes table is readable
"""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from redemption.core.errors import StoreError
from redemption.infrastructure import database
from redemption.infrastructure.code_store import SqlCodeStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])

SERVICE_NAME = "redemption-codes-api"


def _not_ready(reason: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "not_ready", "reason": reason},
    )


@router.get("/", status_code=status.HTTP_200_OK)
async def liveness():
    return {"status": "alive", "service": SERVICE_NAME}


@router.get("/ready")
async def readiness():
    """Ready once the code store answers a read on its table."""
    manager = database.db_manager
    if manager is None:
        return _not_ready("store_not_initialized")
    try:
        async with manager.session() as db:
            await SqlCodeStore(db).ping()
    except StoreError as e:
        logger.warning(f"Readiness check failed: {e.message}")
        return _not_ready("store_unavailable")
    return {"status": "ready", "checks": {"code_store": "ok"}}
