"""Mock reverse-geocoder for development/testing."""

from __future__ import annotations

from typing import Callable

from parcelmatch.core.config import GeocoderConfig
from parcelmatch.core.limiter import ProviderLimiter
from parcelmatch.geocoding.client import ReverseGeocoder
from parcelmatch.geocoding.models import GeocodeResult

AddressFn = Callable[[float, float], str | None]


class MockGeocoder(ReverseGeocoder):
    """Answers every point with ``address_fn(lat, lng)``.

    The default always answers "123 Main St". Returning None from the
    function simulates a point with no street-level result.
    """

    def __init__(
        self,
        config: GeocoderConfig | None = None,
        limiter: ProviderLimiter | None = None,
        address_fn: AddressFn | None = None,
    ) -> None:
        config = config or GeocoderConfig(provider="mock", throttle_seconds=0.0)
        super().__init__(config, limiter=limiter)
        self._address_fn = address_fn or (lambda lat, lng: "123 Main St")
        self.call_count = 0

    async def _reverse(self, latitude: float, longitude: float) -> GeocodeResult | None:
        self.call_count += 1
        address = self._address_fn(latitude, longitude)
        if address is None:
            return None
        return GeocodeResult(address=address, confidence=1.0, location_type="ROOFTOP")
