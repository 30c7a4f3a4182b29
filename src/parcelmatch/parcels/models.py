"""Parcel data models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from parcelmatch.geo.geometry import boundary_center
from parcelmatch.geo.models import Coordinate


class ParcelAddress(BaseModel):
    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""

    @property
    def full_address(self) -> str:
        region = " ".join(p for p in (self.state, self.zip_code) if p)
        return ", ".join(p for p in (self.street, self.city, region) if p)


class MailingAddress(BaseModel):
    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = "US"


class OwnerInfo(BaseModel):
    name: str = ""
    care_of: str | None = None
    mailing_address: MailingAddress = Field(default_factory=MailingAddress)


class Valuation(BaseModel):
    total: int = 0
    improvements: int = 0
    land: int = 0


class Zoning(BaseModel):
    code: str
    description: str = ""


class ParcelRecord(BaseModel):
    """A parcel as returned by the parcel-data provider.

    ``boundary`` is a GeoJSON Polygon or MultiPolygon geometry in ``[lng, lat]``
    order. ``centroid`` is the provider's own reference point when it
    supplies one.
    """

    model_config = {"frozen": True}

    provider_id: str = ""
    parcel_number: str = ""
    address: ParcelAddress = Field(default_factory=ParcelAddress)
    owner: OwnerInfo = Field(default_factory=OwnerInfo)
    year_built: int | None = None
    valuation: Valuation = Field(default_factory=Valuation)
    use_description: str = ""
    zoning: Zoning | None = None
    boundary: dict[str, Any]
    centroid: Coordinate | None = None
    nearby_parcel_count: int | None = None

    @property
    def reference_point(self) -> Coordinate:
        """Point the confidence scorer measures against and properties are keyed on."""
        if self.centroid is not None:
            return self.centroid
        return boundary_center(self.boundary)
