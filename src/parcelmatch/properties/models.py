"""Property record model."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, Field

from parcelmatch.core.types import OwnerType, PropertyStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PropertyRecord(BaseModel):
    """The system's record of a parcel that photos are attached to.

    ``latitude``/``longitude`` are the parcel reference point quantized to
    the key precision; ``coordinate_key`` is unique among live records.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    latitude: float
    longitude: float
    coordinate_key: str

    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    parcel_number: str = ""

    owner_name: str = ""
    owner_type: OwnerType = OwnerType.INDIVIDUAL
    owner_care_of: str | None = None
    owner_mailing_address: str = ""
    owner_mailing_city: str = ""
    owner_mailing_state: str = ""
    owner_mailing_zip: str = ""
    owner_mailing_country: str = "US"

    year_built: int | None = None
    total_value: int = 0
    improvement_value: int = 0
    land_value: int = 0
    use_description: str = ""
    zoning_code: str | None = None
    zoning_description: str | None = None

    status: PropertyStatus = PropertyStatus.PENDING
    is_deleted: bool = False
    deleted_at: datetime | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
