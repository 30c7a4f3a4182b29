"""In-memory photo store."""

from __future__ import annotations

from parcelmatch.core.types import ProcessingStatus
from parcelmatch.photos.models import PhotoRecord


class PhotoStore:
    """In-memory store for photos. Records are copied in and out."""

    def __init__(self) -> None:
        self._photos: dict[str, PhotoRecord] = {}

    def get_photo(self, photo_id: str) -> PhotoRecord | None:
        photo = self._photos.get(photo_id)
        return photo.model_copy(deep=True) if photo else None

    def save_photo(self, photo: PhotoRecord) -> PhotoRecord:
        self._photos[photo.id] = photo.model_copy(deep=True)
        return photo

    def list_photos_by_status(self, status: ProcessingStatus) -> list[PhotoRecord]:
        return [p.model_copy(deep=True) for p in self._photos.values() if p.status == status]

    def list_batch_photos(self, batch_id: str) -> list[PhotoRecord]:
        return [p.model_copy(deep=True) for p in self._photos.values() if p.batch_id == batch_id]

    def list_assigned_photos(self) -> list[PhotoRecord]:
        return [p.model_copy(deep=True) for p in self._photos.values() if p.property_id is not None]

    def list_unassigned_photos(self) -> list[PhotoRecord]:
        return [
            p.model_copy(deep=True)
            for p in self._photos.values()
            if p.property_id is None
            and p.status in (ProcessingStatus.PENDING, ProcessingStatus.ERROR)
        ]

    def reassign_property(self, from_property_id: str, to_property_id: str) -> int:
        moved = 0
        for photo in self._photos.values():
            if photo.property_id == from_property_id:
                photo.property_id = to_property_id
                moved += 1
        return moved

    @property
    def count(self) -> int:
        return len(self._photos)
