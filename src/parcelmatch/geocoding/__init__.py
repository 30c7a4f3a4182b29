"""Reverse geocoding and Monte-Carlo address consensus."""

from parcelmatch.geocoding.client import ReverseGeocoder, create_geocoder
from parcelmatch.geocoding.models import ConsensusResult, GeocodeResult
from parcelmatch.geocoding.sampler import ConsensusGeocoder

__all__ = [
    "ConsensusGeocoder",
    "ConsensusResult",
    "GeocodeResult",
    "ReverseGeocoder",
    "create_geocoder",
]
