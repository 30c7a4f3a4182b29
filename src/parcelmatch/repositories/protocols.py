"""Protocol definitions for the repository interfaces.

Each protocol mirrors the public methods of the corresponding in-memory
store, so both sync (in-memory) and async (SQL) implementations satisfy
the same interface. Callers wrap every call in ``resolve()``.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from parcelmatch.core.types import ProcessingStatus
from parcelmatch.photos.models import PhotoRecord
from parcelmatch.properties.models import PropertyRecord


@runtime_checkable
class PhotoRepository(Protocol):
    """Protocol for photo storage."""

    def get_photo(self, photo_id: str) -> PhotoRecord | None: ...

    def save_photo(self, photo: PhotoRecord) -> PhotoRecord: ...

    def list_photos_by_status(self, status: ProcessingStatus) -> list[PhotoRecord]: ...

    def list_batch_photos(self, batch_id: str) -> list[PhotoRecord]: ...

    def list_assigned_photos(self) -> list[PhotoRecord]: ...

    def list_unassigned_photos(self) -> list[PhotoRecord]: ...

    def reassign_property(self, from_property_id: str, to_property_id: str) -> int: ...


@runtime_checkable
class PropertyRepository(Protocol):
    """Protocol for property storage.

    ``create_property`` raises ``DuplicateProperty`` if a live record
    already holds the coordinate key.
    """

    def get_property(self, property_id: str) -> PropertyRecord | None: ...

    def find_by_coordinate_key(self, coordinate_key: str) -> PropertyRecord | None: ...

    def create_property(self, record: PropertyRecord) -> PropertyRecord: ...

    def update_property(self, record: PropertyRecord) -> PropertyRecord: ...

    def list_properties(self, include_deleted: bool = False) -> list[PropertyRecord]: ...
