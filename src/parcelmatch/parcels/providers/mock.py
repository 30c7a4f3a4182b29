"""Mock parcel provider with fixture parcels for development/testing."""

from __future__ import annotations

from typing import Any

from parcelmatch.core.config import ParcelProviderConfig
from parcelmatch.core.limiter import ProviderLimiter
from parcelmatch.geo.geometry import distance_meters, point_in_polygon, square_polygon
from parcelmatch.geo.models import Coordinate
from parcelmatch.parcels.client import ParcelLookupClient
from parcelmatch.parcels.models import (
    OwnerInfo,
    ParcelAddress,
    ParcelRecord,
    Valuation,
    Zoning,
)

FIXTURE_HALF_SIZE = 0.0002


def _fixture(
    parcel_number: str,
    street: str,
    owner: str,
    lat: float,
    lng: float,
    total: int,
    zoning: str,
    use: str,
) -> ParcelRecord:
    return ParcelRecord(
        provider_id=f"mock-{parcel_number}",
        parcel_number=parcel_number,
        address=ParcelAddress(street=street, city="Springfield", state="IL", zip_code="62701"),
        owner=OwnerInfo(name=owner),
        valuation=Valuation(total=total, improvements=int(total * 0.7), land=int(total * 0.3)),
        use_description=use,
        zoning=Zoning(code=zoning),
        boundary=square_polygon(lat, lng, FIXTURE_HALF_SIZE),
        centroid=Coordinate(latitude=lat, longitude=lng),
    )


class MockParcelClient(ParcelLookupClient):
    """In-memory parcel provider.

    A lookup returns the first parcel whose boundary contains the point,
    else the nearest parcel whose reference point is within the radius.
    ``calls`` records every query for assertions.
    """

    def __init__(
        self,
        config: ParcelProviderConfig | None = None,
        limiter: ProviderLimiter | None = None,
        parcels: list[ParcelRecord] | None = None,
    ) -> None:
        super().__init__(config or ParcelProviderConfig(provider="mock"), limiter=limiter)
        self._parcels: list[ParcelRecord] = []
        self.calls: list[dict[str, Any]] = []
        if parcels is None:
            self._load_fixtures()
        else:
            self._parcels.extend(parcels)

    def _load_fixtures(self) -> None:
        self._parcels.extend([
            _fixture("12-34-567-001", "123 Main St", "Jane Doe",
                     39.7817, -89.6501, 185000, "R-1", "Single Family Residential"),
            _fixture("12-34-567-002", "456 Oak Ave", "Acme Corp",
                     39.7900, -89.6440, 520000, "C-2", "Commercial"),
            _fixture("12-34-567-003", "789 Industrial Blvd", "Springfield Manufacturing LLC",
                     39.7750, -89.6600, 890000, "I-1", "Light Industrial"),
            _fixture("12-34-567-004", "321 Elm St", "John Smith",
                     39.7830, -89.6520, 210000, "R-2", "Multi Family Residential"),
            _fixture("12-34-567-005", "100 City Hall Plaza", "City of Springfield",
                     39.7990, -89.6440, 0, "PF", "Public Facility"),
        ])

    def add_parcel(self, parcel: ParcelRecord) -> None:
        self._parcels.append(parcel)

    async def is_available(self) -> bool:
        return True

    async def _query(
        self,
        coord: Coordinate,
        radius_meters: float,
        limit: int,
        want_density_hint: bool,
    ) -> ParcelRecord | None:
        self.calls.append({
            "lat": coord.latitude,
            "lng": coord.longitude,
            "radius": radius_meters,
            "limit": limit,
            "density": want_density_hint,
        })

        nearby = sorted(
            (
                (distance_meters(coord, p.reference_point), p)
                for p in self._parcels
                if point_in_polygon(coord, p.boundary)
                or distance_meters(coord, p.reference_point) <= radius_meters
            ),
            key=lambda item: item[0],
        )
        if not nearby:
            return None

        containing = [p for _, p in nearby if point_in_polygon(coord, p.boundary)]
        best = containing[0] if containing else nearby[0][1]
        if want_density_hint:
            return best.model_copy(update={"nearby_parcel_count": min(len(nearby), limit)})
        return best
