"""Monte-Carlo consensus geocoding.

A single reverse-geocode of a noisy GPS fix can land on the neighbour's
address. The sampler perturbs the fix with Gaussian noise scaled to the
reported accuracy, reverse-geocodes every draw and takes the modal address.
"""

from __future__ import annotations

import logging
import math
import random
from collections import Counter

from parcelmatch.core.config import GeocoderConfig
from parcelmatch.core.errors import GeocodingFailure, InvalidCoordinate
from parcelmatch.geo.geometry import meters_to_degree_offset, validate_coordinate
from parcelmatch.geocoding.client import ReverseGeocoder
from parcelmatch.geocoding.models import ConsensusResult, GeocodeSample, SamplePoint

logger = logging.getLogger(__name__)


def gaussian_pair(rng: random.Random) -> tuple[float, float]:
    """Two independent standard-normal values (Box-Muller)."""
    # 1 - random() lies in (0, 1], so log() never sees zero.
    u1 = 1.0 - rng.random()
    u2 = rng.random()
    radius = math.sqrt(-2.0 * math.log(u1))
    return radius * math.cos(2 * math.pi * u2), radius * math.sin(2 * math.pi * u2)


class ConsensusGeocoder:
    """Modal reverse-geocode over ``num_samples`` perturbed coordinates.

    Provider calls go through the geocoder's limiter, which spaces them by
    the configured throttle. A failed sample is recorded with no result and
    the run continues.
    """

    def __init__(
        self,
        geocoder: ReverseGeocoder,
        config: GeocoderConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._geocoder = geocoder
        self._config = config or geocoder.config
        self._rng = rng or random.Random()

    @property
    def geocoder(self) -> ReverseGeocoder:
        return self._geocoder

    @property
    def num_samples(self) -> int:
        return self._config.num_samples

    async def sample(
        self,
        latitude: float,
        longitude: float,
        gps_accuracy_meters: float | None = None,
    ) -> ConsensusResult:
        coord = validate_coordinate(latitude, longitude)
        if coord is None:
            raise InvalidCoordinate(f"Invalid coordinate ({latitude!r}, {longitude!r})")

        if gps_accuracy_meters is None:
            error_meters = self._config.default_error_meters
        elif gps_accuracy_meters > 0:
            error_meters = gps_accuracy_meters
        else:
            raise ValueError(f"gps_accuracy_meters must be positive, got {gps_accuracy_meters!r}")
        offset = meters_to_degree_offset(error_meters, coord.latitude)

        samples: list[GeocodeSample] = []
        tally: Counter[str] = Counter()
        failures = 0

        for _ in range(self.num_samples):
            z1, z2 = gaussian_pair(self._rng)
            point = SamplePoint(
                lat=coord.latitude + z1 * offset.lat_offset,
                lng=coord.longitude + z2 * offset.lng_offset,
            )
            try:
                result = await self._geocoder.reverse_geocode(point.lat, point.lng)
            except GeocodingFailure as exc:
                failures += 1
                logger.debug("Sample at %.6f,%.6f failed: %s", point.lat, point.lng, exc)
                result = None
            samples.append(GeocodeSample(coordinates=point, result=result))
            if result is not None and result.address:
                tally[result.address] += 1

        if failures:
            logger.warning(
                "%d of %d geocode samples failed near %.6f,%.6f",
                failures, self.num_samples, coord.latitude, coord.longitude,
            )

        if not tally:
            return ConsensusResult(
                consensus_address=None,
                confidence=0.0,
                error_meters=error_meters,
                samples=samples,
            )

        # Counter.most_common keeps insertion order among equal counts.
        address, count = tally.most_common(1)[0]
        return ConsensusResult(
            consensus_address=address,
            confidence=count / self.num_samples,
            error_meters=error_meters,
            samples=samples,
        )
