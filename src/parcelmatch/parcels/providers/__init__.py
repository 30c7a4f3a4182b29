"""Provider registry for parcel-data backends."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from parcelmatch.parcels.client import ParcelLookupClient

from parcelmatch.parcels.providers.mock import MockParcelClient
from parcelmatch.parcels.providers.regrid import RegridParcelClient

PROVIDER_REGISTRY: dict[str, type[ParcelLookupClient]] = {
    "mock": MockParcelClient,
    "regrid": RegridParcelClient,
}

__all__ = ["PROVIDER_REGISTRY", "MockParcelClient", "RegridParcelClient"]
