"""Abstract reverse-geocoding client and factory function."""

from __future__ import annotations

import abc

from parcelmatch.core.config import GeocoderConfig
from parcelmatch.core.limiter import ProviderLimiter
from parcelmatch.geocoding.models import GeocodeResult


class ReverseGeocoder(abc.ABC):
    """Base class for reverse-geocoding providers.

    ``reverse_geocode`` returns None when the provider has no street-level
    result for the point and raises ``GeocodingFailure`` on provider errors.
    Calls are paced by ``limiter``; its minimum interval is the throttle
    between consecutive provider calls.
    """

    def __init__(
        self,
        config: GeocoderConfig,
        limiter: ProviderLimiter | None = None,
    ) -> None:
        self.config = config
        self.limiter = limiter or ProviderLimiter(
            max_concurrency=config.max_concurrency,
            min_interval=config.throttle_seconds,
        )

    async def reverse_geocode(self, latitude: float, longitude: float) -> GeocodeResult | None:
        async with self.limiter.slot():
            return await self._reverse(latitude, longitude)

    @abc.abstractmethod
    async def _reverse(self, latitude: float, longitude: float) -> GeocodeResult | None:
        """Provider-specific call. Runs inside a limiter slot."""

    async def close(self) -> None:
        """Clean up resources. Override if the provider holds connections."""


def create_geocoder(
    config: GeocoderConfig,
    limiter: ProviderLimiter | None = None,
) -> ReverseGeocoder:
    """Factory: select and instantiate a geocoder based on config.provider."""

    from parcelmatch.geocoding.providers import PROVIDER_REGISTRY

    provider = config.provider.lower()
    if provider not in PROVIDER_REGISTRY:
        available = ", ".join(sorted(PROVIDER_REGISTRY))
        raise ValueError(
            f"Unknown geocoding provider {config.provider!r}. "
            f"Available: {available}"
        )

    cls = PROVIDER_REGISTRY[provider]
    return cls(config, limiter=limiter)
