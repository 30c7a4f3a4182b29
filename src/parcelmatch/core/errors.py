"""Exception hierarchy for the matching engine.

Negative results (no parcel found, boundary mismatch, low confidence) are
not exceptions; they are ``Unassigned`` match outcomes.
"""

from __future__ import annotations


class ParcelMatchError(Exception):
    """Base class for all engine errors."""


class InvalidCoordinate(ParcelMatchError, ValueError):
    """Raised for malformed or out-of-range coordinates. Never retried."""


class LookupFailure(ParcelMatchError):
    """Raised when the parcel provider fails (network or non-2xx).

    Distinct from "no parcel found", which is a ``None`` result.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


ProviderLookupFailure = LookupFailure


class GeocodingFailure(ParcelMatchError):
    """Raised when the reverse-geocoding provider fails."""


class PersistenceFailure(ParcelMatchError):
    """Raised when an outcome cannot be written back."""


class DuplicateProperty(ParcelMatchError):
    """Raised by a repository when a live property already holds a coordinate key."""

    def __init__(self, coordinate_key: str) -> None:
        super().__init__(f"Property already exists at {coordinate_key}")
        self.coordinate_key = coordinate_key


class NotFound(ParcelMatchError, KeyError):
    """Raised when a photo or property id does not exist."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "not found"
