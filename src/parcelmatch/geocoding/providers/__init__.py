"""Provider registry for reverse-geocoding backends."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from parcelmatch.geocoding.client import ReverseGeocoder

from parcelmatch.geocoding.providers.google import GoogleGeocoder
from parcelmatch.geocoding.providers.mock import MockGeocoder

PROVIDER_REGISTRY: dict[str, type[ReverseGeocoder]] = {
    "google": GoogleGeocoder,
    "mock": MockGeocoder,
}

__all__ = ["PROVIDER_REGISTRY", "GoogleGeocoder", "MockGeocoder"]
