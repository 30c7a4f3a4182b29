"""Initial schema: photos and properties.

Revision ID: 0001
Revises:
Create Date: 2026-10-19

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # -- Photos --
    op.create_table(
        "photos",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("batch_id", sa.String(64), nullable=True),
        sa.Column("latitude", sa.Float, nullable=True),
        sa.Column("longitude", sa.Float, nullable=True),
        sa.Column("altitude", sa.Float, nullable=True),
        sa.Column("taken_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("device_id", sa.String(128), nullable=True),
        sa.Column("status", sa.String(32), server_default="pending"),
        sa.Column("property_id", sa.String(64), nullable=True),
        sa.Column("match_confidence", sa.Float, nullable=True),
        sa.Column("metadata_json", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_photos_status", "photos", ["status"])
    op.create_index("ix_photos_batch_id", "photos", ["batch_id"])
    op.create_index("ix_photos_property_id", "photos", ["property_id"])

    # -- Properties --
    op.create_table(
        "properties",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("latitude", sa.Float, nullable=False),
        sa.Column("longitude", sa.Float, nullable=False),
        sa.Column("coordinate_key", sa.String(64), nullable=False),
        sa.Column("address", sa.Text, server_default=""),
        sa.Column("city", sa.String(128), server_default=""),
        sa.Column("state", sa.String(32), server_default=""),
        sa.Column("zip_code", sa.String(16), server_default=""),
        sa.Column("parcel_number", sa.String(64), server_default=""),
        sa.Column("owner_name", sa.Text, server_default=""),
        sa.Column("owner_type", sa.String(32), server_default="individual"),
        sa.Column("owner_care_of", sa.Text, nullable=True),
        sa.Column("owner_mailing_address", sa.Text, server_default=""),
        sa.Column("owner_mailing_city", sa.String(128), server_default=""),
        sa.Column("owner_mailing_state", sa.String(32), server_default=""),
        sa.Column("owner_mailing_zip", sa.String(16), server_default=""),
        sa.Column("owner_mailing_country", sa.String(64), server_default="US"),
        sa.Column("year_built", sa.Integer, nullable=True),
        sa.Column("total_value", sa.Integer, server_default="0"),
        sa.Column("improvement_value", sa.Integer, server_default="0"),
        sa.Column("land_value", sa.Integer, server_default="0"),
        sa.Column("use_description", sa.Text, server_default=""),
        sa.Column("zoning_code", sa.String(64), nullable=True),
        sa.Column("zoning_description", sa.Text, nullable=True),
        sa.Column("status", sa.String(32), server_default="pending"),
        sa.Column("is_deleted", sa.Boolean, server_default=sa.false()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_properties_coordinate_key", "properties", ["coordinate_key"])
    # One live property per coordinate key; soft-deleted rows are exempt.
    op.create_index(
        "uq_properties_live_coordinate_key",
        "properties",
        ["coordinate_key"],
        unique=True,
        postgresql_where=sa.text("is_deleted = false"),
        sqlite_where=sa.text("is_deleted = 0"),
    )


def downgrade() -> None:
    op.drop_table("properties")
    op.drop_table("photos")
