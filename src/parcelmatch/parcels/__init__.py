"""Parcel data: models, TTL cache and provider lookup clients."""

from parcelmatch.parcels.cache import ParcelCache
from parcelmatch.parcels.client import ParcelLookupClient, create_parcel_client
from parcelmatch.parcels.models import ParcelRecord

__all__ = ["ParcelCache", "ParcelLookupClient", "ParcelRecord", "create_parcel_client"]
