"""Match outcomes and confidence factor breakdowns."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

from parcelmatch.core.types import MatchMethod


class SpatialFactors(BaseModel):
    coordinate_delta: float
    coordinate_match: bool
    distance_meters: float
    distance_match: bool
    bearing_degrees: float
    bearing_match: bool
    centeredness: float
    score: float


class MetadataFactors(BaseModel):
    timestamp_valid: bool
    altitude_score: float
    orientation_valid: bool = True
    score: float


class ValidationReport(BaseModel):
    """Full factor breakdown behind a confidence score."""

    within_boundary: bool
    spatial: SpatialFactors
    metadata: MetadataFactors | None = None
    confidence: float
    accepted: bool


class Matched(BaseModel):
    kind: Literal["matched"] = "matched"
    property_id: str
    confidence: float
    method: MatchMethod = MatchMethod.PARCEL_MATCH
    factors: dict[str, Any] = Field(default_factory=dict)


class Unassigned(BaseModel):
    kind: Literal["unassigned"] = "unassigned"
    method: MatchMethod
    reason: str
    confidence: float = 0.0
    factors: dict[str, Any] | None = None


class Failed(BaseModel):
    kind: Literal["failed"] = "failed"
    message: str
    method: MatchMethod = MatchMethod.ERROR


MatchOutcome = Annotated[Union[Matched, Unassigned, Failed], Field(discriminator="kind")]


class PhotoOutcome(BaseModel):
    """A match outcome tagged with the photo it belongs to."""

    photo_id: str
    outcome: MatchOutcome
