"""initial stay intake schema

Revision ID: 3c1e7a9b4d20
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "3c1e7a9b4d20"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _money(name: str) -> sa.Column:
    return sa.Column(name, sa.Numeric(12, 2), nullable=False, server_default="0")


def upgrade() -> None:
    op.create_table(
        "properties",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        *_timestamps(),
        sa.Column("name", sa.String(length=200), nullable=False),
        _money("cleaning_cost"),
        _money("check_in_fee"),
        sa.Column("commission", sa.Numeric(5, 2), nullable=False, server_default="0"),
        _money("team_payment"),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_properties_name", "properties", ["name"], unique=True)

    op.create_table(
        "reservations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        *_timestamps(),
        sa.Column("property_id", sa.Integer(), sa.ForeignKey("properties.id"), nullable=False),
        sa.Column("guest_name", sa.String(length=200), nullable=False),
        sa.Column("guest_email", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("guest_phone", sa.String(length=50), nullable=False, server_default=""),
        sa.Column("check_in_date", sa.Date(), nullable=False),
        sa.Column("check_out_date", sa.Date(), nullable=False),
        sa.Column("num_guests", sa.Integer(), nullable=False, server_default="1"),
        _money("total_amount"),
        sa.Column("platform", sa.String(length=20), nullable=False, server_default="direct"),
        _money("platform_fee"),
        _money("cleaning_fee"),
        _money("check_in_fee"),
        _money("commission_fee"),
        _money("team_payment"),
        _money("net_amount"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("validation_status", sa.String(length=20), nullable=False),
        sa.Column("needs_review", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("reference", sa.String(length=100), nullable=True),
        sa.Column("notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("raw_text", sa.Text(), nullable=False, server_default=""),
    )
    op.create_index("ix_reservations_property_id", "reservations", ["property_id"])
    op.create_index("ix_reservations_status", "reservations", ["status"])
    op.create_index("ix_reservations_reference", "reservations", ["reference"])

    op.create_table(
        "extraction_ai_cache",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        *_timestamps(),
        sa.Column("text_hash", sa.String(length=64), nullable=False),
        sa.Column("provider", sa.String(length=50), nullable=False),
        sa.Column("model", sa.String(length=100), nullable=False),
        sa.Column("schema_version", sa.Integer(), nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("response_json", sa.JSON(), nullable=False),
    )
    op.create_index(
        "ix_extraction_ai_cache_text_hash",
        "extraction_ai_cache",
        ["text_hash"],
        unique=True,
    )


def downgrade() -> None:
    op.drop_index("ix_extraction_ai_cache_text_hash", table_name="extraction_ai_cache")
    op.drop_table("extraction_ai_cache")
    op.drop_index("ix_reservations_reference", table_name="reservations")
    op.drop_index("ix_reservations_status", table_name="reservations")
    op.drop_index("ix_reservations_property_id", table_name="reservations")
    op.drop_table("reservations")
    op.drop_index("ix_properties_name", table_name="properties")
    op.drop_table("properties")
