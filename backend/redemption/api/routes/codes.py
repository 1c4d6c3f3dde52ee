"""Code Routes — HTTP surface for generation, listing, deletion, stats and redemption.

Invariants:
    - Every route resolves the actor first (401 without identity)
    - Routes never contain business logic: parse, call one handler method, shape the response
    - Domain errors propagate to the global RedemptionError handler

Design Decisions:
    - /stats registered before /{code_id}; code_id is a UUID path param anyway
    - Bulk delete takes a JSON body on DELETE / (ids or batch_id)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from redemption.api.deps import (
    get_current_actor, get_generation_handlers, get_management_handlers,
    get_redemption_handlers,
)
from redemption.config import get_settings
from redemption.core.domain_types import Actor, CodeFilter, CodeId, CodeStatus
from redemption.schemas.code import (
    BulkDeleteRequest, BulkDeleteResponse, CodeListResponse, CodeResponse,
    CodeStatsResponse, DeletedCode, GenerateCodesRequest,
    GenerateCodesResponse, RedeemRequest, RedeemResponse,
)
from redemption.services.handle_generation import GenerationHandlers
from redemption.services.handle_management import ManagementHandlers
from redemption.services.handle_redemption import RedemptionHandlers

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/codes", tags=["codes"])


@router.post(
    "/generate", response_model=GenerateCodesResponse,
    status_code=status.HTTP_201_CREATED,
)
async def generate_codes(
    body: GenerateCodesRequest,
    actor: Actor = Depends(get_current_actor),
    handlers: GenerationHandlers = Depends(get_generation_handlers),
):
    """Generate a batch of unique codes (super_admin / manufacturer)."""
    length = body.length if body.length is not None else get_settings().code_default_length
    return await handlers.generate_codes(
        actor, body.quantity, length, body.metadata,
    )


@router.get("", response_model=CodeListResponse)
async def list_codes(
    status_filter: CodeStatus | None = Query(None, alias="status"),
    batch_id: str | None = Query(None),
    owner_id: UUID | None = Query(None),
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1, le=100),
    actor: Actor = Depends(get_current_actor),
    handlers: ManagementHandlers = Depends(get_management_handlers),
):
    """List codes visible to the actor, newest first."""
    code_filter = CodeFilter(
        status=status_filter, batch_id=batch_id, owner_id=owner_id,
        search=search,
    )
    return await handlers.list_codes(actor, code_filter, page, limit)


@router.get("/stats", response_model=CodeStatsResponse)
async def get_code_stats(
    actor: Actor = Depends(get_current_actor),
    handlers: ManagementHandlers = Depends(get_management_handlers),
):
    """Per-status counts and recent batches, scoped to the actor."""
    return await handlers.get_stats(actor)


@router.get("/{code_id}", response_model=CodeResponse)
async def get_code(
    code_id: UUID,
    actor: Actor = Depends(get_current_actor),
    handlers: ManagementHandlers = Depends(get_management_handlers),
):
    return await handlers.get_code(actor, CodeId(code_id))


@router.delete("/{code_id}", response_model=DeletedCode)
async def delete_code(
    code_id: UUID,
    actor: Actor = Depends(get_current_actor),
    handlers: ManagementHandlers = Depends(get_management_handlers),
):
    return await handlers.delete_code(actor, CodeId(code_id))


@router.delete("", response_model=BulkDeleteResponse)
async def delete_codes(
    body: BulkDeleteRequest,
    actor: Actor = Depends(get_current_actor),
    handlers: ManagementHandlers = Depends(get_management_handlers),
):
    """Delete by batch_id or by id set, limited to the actor's records."""
    ids = [CodeId(i) for i in body.code_ids] if body.code_ids else None
    return await handlers.delete_codes(actor, ids=ids, batch_id=body.batch_id)


@router.post("/redeem", response_model=RedeemResponse)
async def redeem_code(
    body: RedeemRequest,
    actor: Actor = Depends(get_current_actor),
    handlers: RedemptionHandlers = Depends(get_redemption_handlers),
):
    """Redeem a code once. Unknown and already redeemed codes both return 404."""
    return await handlers.redeem_code(actor, body.code)
