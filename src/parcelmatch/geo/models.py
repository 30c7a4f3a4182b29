"""Geographic value types."""

from __future__ import annotations

from pydantic import BaseModel, Field


class Coordinate(BaseModel):
    """A WGS-84 position in decimal degrees."""

    model_config = {"frozen": True}

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    altitude: float | None = None


class DegreeOffset(BaseModel):
    """A linear distance expressed as latitude/longitude degree offsets."""

    lat_offset: float
    lng_offset: float
