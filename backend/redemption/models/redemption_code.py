"""RedemptionCode ORM — persists one issued code and its single-use lifecycle.

Invariants:
    - code is unique across the table (unique index, enforced by the DB)
    - status transitions: unredeemed -> redeemed, never back
    - redeemed_at and redeemed_by are set together, only on redemption
    - (batch_id, batch_number) is unique; batch_number is 1-based
    - generated_by, batch_id, quantity, metadata never change after insert;
      batch_number only moves while its generation request is still running

Design Decisions:
    - Compound indexes mirror the hot query paths: batch listing, owner listing
      (newest first), status filtering, and the redemption lookup (code, status)
    - `metadata` column mapped to `metadata_` attribute: `metadata` is reserved on DeclarativeBase
    - JSON for metadata: opaque payload, never interpreted
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON, Boolean, CheckConstraint, DateTime, Index, Integer, String,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from redemption.core.domain_types import CodeStatus
from redemption.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RedemptionCode(Base):
    """Redemption code entity — one row per issued code."""
    __tablename__ = "redemption_codes"
    __table_args__ = (
        Index("ix_redemption_codes_batch_id_batch_number", "batch_id", "batch_number", unique=True),
        Index("ix_redemption_codes_status_is_active", "status", "is_active"),
        Index("ix_redemption_codes_code_status", "code", "status"),
        CheckConstraint("quantity >= 1", name="ck_redemption_codes_quantity_positive"),
        CheckConstraint("batch_number >= 1", name="ck_redemption_codes_batch_number_positive"),
        CheckConstraint(
            "(status = 'redeemed') = (redeemed_at IS NOT NULL AND redeemed_by IS NOT NULL)",
            name="ck_redemption_codes_redeemed_fields",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    code: Mapped[str] = mapped_column(
        String(20), nullable=False, unique=True, index=True,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=CodeStatus.UNREDEEMED.value, index=True,
    )
    generated_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, index=True,
    )
    batch_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    batch_number: Mapped[int] = mapped_column(Integer, nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, index=True,
    )
    redeemed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True,
    )
    redeemed_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True, index=True,
    )
    metadata_: Mapped[dict] = mapped_column(
        "metadata", JSON, nullable=False, default=dict,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow,
    )

    def to_record(self) -> dict:
        """Plain dict crossing the store boundary."""
        return {
            "id": self.id,
            "code": self.code,
            "status": self.status,
            "generated_by": self.generated_by,
            "batch_id": self.batch_id,
            "quantity": self.quantity,
            "batch_number": self.batch_number,
            "is_active": self.is_active,
            "redeemed_at": self.redeemed_at,
            "redeemed_by": self.redeemed_by,
            "metadata": self.metadata_,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


Index(
    "ix_redemption_codes_generated_by_created_at",
    RedemptionCode.generated_by,
    RedemptionCode.created_at.desc(),
)
