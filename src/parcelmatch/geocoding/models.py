"""Reverse-geocoding data models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class AddressComponents(BaseModel):
    street_number: str | None = None
    route: str | None = None
    locality: str | None = None
    state: str | None = None
    zip_code: str | None = None


class GeocodeResult(BaseModel):
    """A single reverse-geocode answer."""

    address: str
    confidence: float
    location_type: str = "APPROXIMATE"
    place_id: str | None = None
    components: AddressComponents = Field(default_factory=AddressComponents)


class SamplePoint(BaseModel):
    lat: float
    lng: float


class GeocodeSample(BaseModel):
    """One Monte-Carlo draw and what the provider said about it."""

    coordinates: SamplePoint
    result: GeocodeResult | None = None


class ConsensusResult(BaseModel):
    """Modal address over all samples plus the raw samples for audit."""

    consensus_address: str | None
    confidence: float
    error_meters: float
    samples: list[GeocodeSample] = Field(default_factory=list)
