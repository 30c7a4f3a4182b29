"""Multi-factor confidence scoring of a photo against a candidate parcel.

Spatial factors compare the photo position with the parcel reference
point; metadata factors check capture time and altitude plausibility.
Every weight and threshold comes from ``ScoringConfig``.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

from parcelmatch.core.config import ScoringConfig
from parcelmatch.geo.geometry import (
    angular_difference,
    bearing_degrees,
    centeredness,
    coordinate_delta,
    distance_meters,
    point_in_polygon,
)
from parcelmatch.geo.models import Coordinate
from parcelmatch.matching.models import MetadataFactors, SpatialFactors, ValidationReport
from parcelmatch.parcels.models import ParcelRecord

NEUTRAL_ALTITUDE_SCORE = 0.5


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ConfidenceScorer:
    """Scores a (photo, parcel) pair in [0, 1].

    Args:
        config: Weights and thresholds.
        now: Clock used for the timestamp-age check.
    """

    def __init__(
        self,
        config: ScoringConfig | None = None,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.config = config or ScoringConfig()
        self._now = now

    def spatial(self, photo: Coordinate, parcel: ParcelRecord) -> SpatialFactors:
        cfg = self.config
        reference = parcel.reference_point

        delta = coordinate_delta(photo, reference)
        distance = distance_meters(photo, reference)
        bearing = bearing_degrees(reference, photo)
        centered = centeredness(photo, parcel.boundary)

        coordinate_match = delta <= cfg.max_coordinate_delta
        distance_match = distance <= cfg.max_distance_meters
        bearing_match = angular_difference(bearing, cfg.reference_heading) <= cfg.bearing_tolerance

        score = (
            (cfg.coordinate_weight if coordinate_match else 0.0)
            + (cfg.distance_weight if distance_match else 0.0)
            + (cfg.bearing_weight if bearing_match else 0.0)
            + cfg.boundary_weight * centered
        )
        return SpatialFactors(
            coordinate_delta=delta,
            coordinate_match=coordinate_match,
            distance_meters=distance,
            distance_match=distance_match,
            bearing_degrees=bearing,
            bearing_match=bearing_match,
            centeredness=centered,
            score=round(score, 6),
        )

    def timestamp_valid(self, taken_at: datetime | None) -> bool:
        if taken_at is None:
            return False
        now = self._now()
        taken_at = _as_utc(taken_at)
        return now - timedelta(days=self.config.max_photo_age_days) <= taken_at <= now

    def altitude_score(self, altitude: float | None, reference_altitude: float | None) -> float:
        if altitude is None or reference_altitude is None:
            return NEUTRAL_ALTITUDE_SCORE
        diff = abs(altitude - reference_altitude)
        limit = self.config.max_altitude_delta_meters
        if diff > limit or limit <= 0:
            return 0.0
        return 1.0 - diff / limit

    def metadata(
        self,
        taken_at: datetime | None,
        altitude: float | None,
        reference_altitude: float | None,
    ) -> MetadataFactors:
        cfg = self.config
        timestamp_ok = self.timestamp_valid(taken_at)
        altitude_score = self.altitude_score(altitude, reference_altitude)
        score = (
            (cfg.timestamp_weight if timestamp_ok else 0.0)
            + cfg.altitude_weight * altitude_score
            + cfg.orientation_weight
        )
        return MetadataFactors(
            timestamp_valid=timestamp_ok,
            altitude_score=altitude_score,
            score=round(score, 6),
        )

    def score(
        self,
        photo: Coordinate,
        parcel: ParcelRecord,
        taken_at: datetime | None = None,
        reference_altitude: float | None = None,
    ) -> ValidationReport:
        """Score the pair. Without a timestamp and altitude only spatial factors count."""
        within = point_in_polygon(photo, parcel.boundary)
        spatial = self.spatial(photo, parcel)

        if taken_at is None and photo.altitude is None:
            metadata = None
            confidence = spatial.score
        else:
            metadata = self.metadata(taken_at, photo.altitude, reference_altitude)
            confidence = round(
                self.config.spatial_weight * spatial.score
                + self.config.metadata_weight * metadata.score,
                6,
            )

        return ValidationReport(
            within_boundary=within,
            spatial=spatial,
            metadata=metadata,
            confidence=confidence,
            accepted=within and confidence >= self.config.acceptance_threshold,
        )
