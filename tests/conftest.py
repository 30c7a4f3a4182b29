"""Shared test fixtures and helpers."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from parcelmatch.core.config import MatchingConfig, ParcelProviderConfig
from parcelmatch.core.limiter import ProviderLimiter
from parcelmatch.geo.geometry import square_polygon
from parcelmatch.geo.models import Coordinate
from parcelmatch.matching.orchestrator import MatchOrchestrator
from parcelmatch.matching.scoring import ConfidenceScorer
from parcelmatch.parcels.cache import ParcelCache
from parcelmatch.parcels.models import OwnerInfo, ParcelAddress, ParcelRecord
from parcelmatch.parcels.providers.mock import MockParcelClient
from parcelmatch.photos.store import PhotoStore
from parcelmatch.properties.store import PropertyStore

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)

CENTER_LAT = 39.7817
CENTER_LNG = -89.6501


def build_parcel(
    latitude: float = CENTER_LAT,
    longitude: float = CENTER_LNG,
    half_size: float = 0.0002,
    owner: str = "Jane Doe",
    parcel_number: str = "P-001",
    street: str = "123 Main St",
) -> ParcelRecord:
    return ParcelRecord(
        provider_id=f"test-{parcel_number}",
        parcel_number=parcel_number,
        address=ParcelAddress(street=street, city="Springfield", state="IL", zip_code="62701"),
        owner=OwnerInfo(name=owner),
        boundary=square_polygon(latitude, longitude, half_size),
        centroid=Coordinate(latitude=latitude, longitude=longitude),
    )


@pytest.fixture
def make_parcel():
    """Factory for square test parcels centred on a point."""
    return build_parcel


@pytest.fixture
def photo_store() -> PhotoStore:
    return PhotoStore()


@pytest.fixture
def property_store() -> PropertyStore:
    return PropertyStore()


@pytest.fixture
def parcel_client() -> MockParcelClient:
    """Mock provider holding one parcel at the test centre."""
    return MockParcelClient(
        config=ParcelProviderConfig(provider="mock"),
        limiter=ProviderLimiter(max_concurrency=4),
        parcels=[build_parcel()],
    )


@pytest.fixture
def scorer() -> ConfidenceScorer:
    return ConfidenceScorer(now=lambda: NOW)


@pytest.fixture
def orchestrator(photo_store, property_store, parcel_client, scorer) -> MatchOrchestrator:
    return MatchOrchestrator(
        photos=photo_store,
        properties=property_store,
        parcel_client=parcel_client,
        cache=ParcelCache(),
        scorer=scorer,
        config=MatchingConfig(max_workers=4, photo_timeout_seconds=5.0),
        clock=lambda: NOW,
    )
