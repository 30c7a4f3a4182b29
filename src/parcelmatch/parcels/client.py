"""Abstract parcel lookup client and factory function."""

from __future__ import annotations

import abc
import logging

from parcelmatch.core.config import ParcelProviderConfig
from parcelmatch.core.errors import InvalidCoordinate, LookupFailure
from parcelmatch.core.limiter import ProviderLimiter
from parcelmatch.geo.geometry import validate_coordinate
from parcelmatch.geo.models import Coordinate
from parcelmatch.parcels.models import ParcelRecord

logger = logging.getLogger(__name__)


class ParcelLookupClient(abc.ABC):
    """Base class for parcel-data providers.

    ``lookup`` returns None when the provider has no parcel within the
    radius; provider and network errors raise ``LookupFailure`` instead.
    """

    def __init__(
        self,
        config: ParcelProviderConfig,
        limiter: ProviderLimiter | None = None,
    ) -> None:
        self.config = config
        self.limiter = limiter or ProviderLimiter(
            max_concurrency=config.max_concurrency,
            min_interval=config.min_interval_seconds,
        )

    async def lookup(
        self,
        latitude: float,
        longitude: float,
        radius_meters: float,
        want_density_hint: bool = False,
    ) -> ParcelRecord | None:
        """Return the nearest parcel within ``radius_meters``, or None."""
        coord = validate_coordinate(latitude, longitude)
        if coord is None:
            raise InvalidCoordinate(f"Invalid coordinate ({latitude!r}, {longitude!r})")
        limit = self.config.density_limit if want_density_hint else 1
        async with self.limiter.slot():
            return await self._query(coord, radius_meters, limit, want_density_hint)

    async def count_nearby(self, latitude: float, longitude: float, radius_meters: float) -> int:
        """Number of parcels within ``radius_meters``, capped at ``density_limit``."""
        coord = validate_coordinate(latitude, longitude)
        if coord is None:
            raise InvalidCoordinate(f"Invalid coordinate ({latitude!r}, {longitude!r})")
        async with self.limiter.slot():
            return await self._count_nearby(coord, radius_meters, self.config.density_limit)

    async def search_radius(self, latitude: float, longitude: float) -> float:
        """Pick the search radius for a coordinate from the area's parcel density.

        Dense areas (more than ``density_threshold`` parcels within
        ``density_radius_meters``) get the wider radius.
        """
        try:
            nearby = await self.count_nearby(
                latitude, longitude, self.config.density_radius_meters,
            )
        except LookupFailure as exc:
            logger.warning(
                "Density check failed at %.6f,%.6f, assuming sparse area: %s",
                latitude, longitude, exc,
            )
            return self.config.sparse_radius_meters
        if nearby > self.config.density_threshold:
            return self.config.dense_radius_meters
        return self.config.sparse_radius_meters

    @abc.abstractmethod
    async def _query(
        self,
        coord: Coordinate,
        radius_meters: float,
        limit: int,
        want_density_hint: bool,
    ) -> ParcelRecord | None:
        """Provider-specific lookup. Called inside a limiter slot."""

    async def _count_nearby(self, coord: Coordinate, radius_meters: float, limit: int) -> int:
        """Read the density hint off a regular query. Called inside a limiter slot."""
        hint = await self._query(coord, radius_meters, limit, want_density_hint=True)
        if hint is None:
            return 0
        return hint.nearby_parcel_count or 0

    @abc.abstractmethod
    async def is_available(self) -> bool:
        """Return True if the provider is reachable."""

    async def close(self) -> None:
        """Clean up resources. Override if the provider holds connections."""


def create_parcel_client(
    config: ParcelProviderConfig,
    limiter: ProviderLimiter | None = None,
) -> ParcelLookupClient:
    """Factory: select and instantiate a parcel provider based on config.provider."""

    from parcelmatch.parcels.providers import PROVIDER_REGISTRY

    provider = config.provider.lower()
    if provider not in PROVIDER_REGISTRY:
        available = ", ".join(sorted(PROVIDER_REGISTRY))
        raise ValueError(
            f"Unknown parcel provider {config.provider!r}. "
            f"Available: {available}"
        )

    cls = PROVIDER_REGISTRY[provider]
    return cls(config, limiter=limiter)
