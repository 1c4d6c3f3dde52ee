"""Redemption codes table with uniqueness and query-path indexes.

Revision ID: 001_redemption_codes
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_redemption_codes"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "redemption_codes",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("code", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="unredeemed"),
        sa.Column("generated_by", UUID(as_uuid=True), nullable=False),
        sa.Column("batch_id", sa.String(64), nullable=False),
        sa.Column("quantity", sa.Integer, nullable=False),
        sa.Column("batch_number", sa.Integer, nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("redeemed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("redeemed_by", UUID(as_uuid=True), nullable=True),
        sa.Column("metadata", sa.JSON, nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("quantity >= 1", name="ck_redemption_codes_quantity_positive"),
        sa.CheckConstraint("batch_number >= 1", name="ck_redemption_codes_batch_number_positive"),
        sa.CheckConstraint(
            "(status = 'redeemed') = (redeemed_at IS NOT NULL AND redeemed_by IS NOT NULL)",
            name="ck_redemption_codes_redeemed_fields",
        ),
    )

    op.create_index("ix_redemption_codes_code", "redemption_codes", ["code"], unique=True)
    op.create_index("ix_redemption_codes_status", "redemption_codes", ["status"])
    op.create_index("ix_redemption_codes_generated_by", "redemption_codes", ["generated_by"])
    op.create_index("ix_redemption_codes_batch_id", "redemption_codes", ["batch_id"])
    op.create_index("ix_redemption_codes_is_active", "redemption_codes", ["is_active"])
    op.create_index("ix_redemption_codes_redeemed_at", "redemption_codes", ["redeemed_at"])
    op.create_index("ix_redemption_codes_redeemed_by", "redemption_codes", ["redeemed_by"])
    op.create_index(
        "ix_redemption_codes_batch_id_batch_number", "redemption_codes",
        ["batch_id", "batch_number"], unique=True,
    )
    op.create_index(
        "ix_redemption_codes_generated_by_created_at", "redemption_codes",
        ["generated_by", sa.text("created_at DESC")],
    )
    op.create_index("ix_redemption_codes_status_is_active", "redemption_codes", ["status", "is_active"])
    op.create_index("ix_redemption_codes_code_status", "redemption_codes", ["code", "status"])


def downgrade() -> None:
    op.drop_table("redemption_codes")
