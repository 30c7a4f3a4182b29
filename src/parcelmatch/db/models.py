"""SQLAlchemy ORM models for all persistent tables."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from parcelmatch.db.base import Base


def _jsonb() -> type:
    """Return JSONB for Postgres, plain JSON for SQLite."""
    return JSON().with_variant(PG_JSONB(), "postgresql")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Photos
# ---------------------------------------------------------------------------


class PhotoRow(Base):
    __tablename__ = "photos"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    batch_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    altitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    taken_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    device_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    status: Mapped[str] = mapped_column(String(32), default="pending")
    property_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    match_confidence: Mapped[float | None] = mapped_column(Float, nullable=True)
    metadata_json: Mapped[dict] = mapped_column(_jsonb(), default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        Index("ix_photos_status", "status"),
        Index("ix_photos_batch_id", "batch_id"),
        Index("ix_photos_property_id", "property_id"),
    )


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


class PropertyRow(Base):
    __tablename__ = "properties"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    latitude: Mapped[float] = mapped_column(Float)
    longitude: Mapped[float] = mapped_column(Float)
    coordinate_key: Mapped[str] = mapped_column(String(64))

    address: Mapped[str] = mapped_column(Text, default="")
    city: Mapped[str] = mapped_column(String(128), default="")
    state: Mapped[str] = mapped_column(String(32), default="")
    zip_code: Mapped[str] = mapped_column(String(16), default="")
    parcel_number: Mapped[str] = mapped_column(String(64), default="")

    owner_name: Mapped[str] = mapped_column(Text, default="")
    owner_type: Mapped[str] = mapped_column(String(32), default="individual")
    owner_care_of: Mapped[str | None] = mapped_column(Text, nullable=True)
    owner_mailing_address: Mapped[str] = mapped_column(Text, default="")
    owner_mailing_city: Mapped[str] = mapped_column(String(128), default="")
    owner_mailing_state: Mapped[str] = mapped_column(String(32), default="")
    owner_mailing_zip: Mapped[str] = mapped_column(String(16), default="")
    owner_mailing_country: Mapped[str] = mapped_column(String(64), default="US")

    year_built: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_value: Mapped[int] = mapped_column(Integer, default=0)
    improvement_value: Mapped[int] = mapped_column(Integer, default=0)
    land_value: Mapped[int] = mapped_column(Integer, default=0)
    use_description: Mapped[str] = mapped_column(Text, default="")
    zoning_code: Mapped[str | None] = mapped_column(String(64), nullable=True)
    zoning_description: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(String(32), default="pending")
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        Index("ix_properties_coordinate_key", "coordinate_key"),
        Index(
            "uq_properties_live_coordinate_key",
            "coordinate_key",
            unique=True,
            sqlite_where=text("is_deleted = 0"),
            postgresql_where=text("is_deleted = false"),
        ),
    )


def as_aware(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes; SQLite drops the zone on round-trip."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
