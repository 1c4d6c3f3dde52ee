"""Code Schemas — Pydantic models with field-level validation for API boundaries.

Invariants:
    - GenerateCodesRequest.quantity: 1-10000; length: 8-20 (None = configured default)
    - RedeemRequest.code: 8-20 chars, hex only (case-insensitive, normalized later)
    - BulkDeleteRequest needs code_ids (non-empty) or batch_id (non-empty)

Design Decisions:
    - Bounds duplicated from core/domain_types constants: the API rejects early
      with field-level details, the handlers still validate for non-HTTP callers
    - Response models mirror handler dicts one-to-one (from_attributes not needed)
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from redemption.core.domain_types import (
    CodeStatus, MAX_CODE_LENGTH, MAX_QUANTITY,
    MIN_CODE_LENGTH, MIN_QUANTITY,
)


class GenerateCodesRequest(BaseModel):
    """Bulk generation request."""
    quantity: int = Field(ge=MIN_QUANTITY, le=MAX_QUANTITY)
    length: int | None = Field(
        None, ge=MIN_CODE_LENGTH, le=MAX_CODE_LENGTH,
    )
    metadata: dict = Field(default_factory=dict)


class GenerateCodesResponse(BaseModel):
    batch_id: str
    requested_quantity: int
    inserted_count: int
    failed_slots: int
    codes: list[str]
    generated_at: datetime
    generated_by: UUID


class RedeemRequest(BaseModel):
    """Redemption request — trimmed before length/pattern checks."""
    code: str = Field(
        min_length=MIN_CODE_LENGTH, max_length=MAX_CODE_LENGTH,
        pattern=r"^[a-fA-F0-9]+$",
    )

    @field_validator("code", mode="before")
    @classmethod
    def strip_code(cls, v):
        return v.strip() if isinstance(v, str) else v


class RedeemResponse(BaseModel):
    id: UUID
    code: str
    batch_id: str
    redeemed_at: datetime


class CodeResponse(BaseModel):
    """Full code record as seen by a portal user."""
    id: UUID
    code: str
    status: CodeStatus
    generated_by: UUID
    batch_id: str
    quantity: int
    batch_number: int
    is_active: bool
    redeemed_at: datetime | None = None
    redeemed_by: UUID | None = None
    metadata: dict = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_count: int
    limit: int


class CodeListResponse(BaseModel):
    codes: list[CodeResponse]
    pagination: Pagination


class DeletedCode(BaseModel):
    id: UUID
    code: str
    batch_id: str


class BulkDeleteRequest(BaseModel):
    """Delete by explicit ids or by batch — batch_id wins when both are set."""
    code_ids: list[UUID] | None = Field(None, min_length=1)
    batch_id: str | None = Field(None, min_length=1)

    @model_validator(mode="after")
    def require_target(self):
        if self.code_ids is None and self.batch_id is None:
            raise ValueError("Either code_ids or batch_id must be provided")
        return self


class BulkDeleteResponse(BaseModel):
    deleted_count: int
    deleted: list[DeletedCode]


class StatusCount(BaseModel):
    status: str
    count: int


class BatchSummary(BaseModel):
    batch_id: str
    count: int
    quantity: int
    created_at: datetime


class CodeStatsResponse(BaseModel):
    total_count: int
    unredeemed_count: int
    redeemed_count: int
    by_status: list[StatusCount]
    recent_batches: list[BatchSummary]
