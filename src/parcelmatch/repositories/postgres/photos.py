"""PostgreSQL photo repository."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select, update

from parcelmatch.core.types import ProcessingStatus
from parcelmatch.db.engine import DatabaseManager
from parcelmatch.db.models import PhotoRow, as_aware
from parcelmatch.photos.models import PhotoRecord


class PostgresPhotoRepository:
    """Postgres-backed photo storage. ``save_photo`` writes the whole record."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def get_photo(self, photo_id: str) -> PhotoRecord | None:
        async with self._db.session() as db:
            row = await db.get(PhotoRow, photo_id)
            if row is None:
                return None
            return self._row_to_photo(row)

    async def save_photo(self, photo: PhotoRecord) -> PhotoRecord:
        async with self._db.session() as db:
            existing = await db.get(PhotoRow, photo.id)
            if existing:
                existing.batch_id = photo.batch_id
                existing.latitude = photo.latitude
                existing.longitude = photo.longitude
                existing.altitude = photo.altitude
                existing.taken_at = photo.taken_at
                existing.device_id = photo.device_id
                existing.status = photo.status.value
                existing.property_id = photo.property_id
                existing.match_confidence = photo.match_confidence
                existing.metadata_json = photo.metadata
                existing.updated_at = photo.updated_at
            else:
                db.add(PhotoRow(
                    id=photo.id,
                    batch_id=photo.batch_id,
                    latitude=photo.latitude,
                    longitude=photo.longitude,
                    altitude=photo.altitude,
                    taken_at=photo.taken_at,
                    device_id=photo.device_id,
                    status=photo.status.value,
                    property_id=photo.property_id,
                    match_confidence=photo.match_confidence,
                    metadata_json=photo.metadata,
                    created_at=photo.created_at,
                    updated_at=photo.updated_at,
                ))
            await db.commit()
        return photo

    async def list_photos_by_status(self, status: ProcessingStatus) -> list[PhotoRecord]:
        async with self._db.session() as db:
            result = await db.execute(
                select(PhotoRow)
                .where(PhotoRow.status == ProcessingStatus(status).value)
                .order_by(PhotoRow.created_at)
            )
            return [self._row_to_photo(r) for r in result.scalars().all()]

    async def list_batch_photos(self, batch_id: str) -> list[PhotoRecord]:
        async with self._db.session() as db:
            result = await db.execute(
                select(PhotoRow).where(PhotoRow.batch_id == batch_id).order_by(PhotoRow.created_at)
            )
            return [self._row_to_photo(r) for r in result.scalars().all()]

    async def list_assigned_photos(self) -> list[PhotoRecord]:
        async with self._db.session() as db:
            result = await db.execute(
                select(PhotoRow).where(PhotoRow.property_id.is_not(None)).order_by(PhotoRow.created_at)
            )
            return [self._row_to_photo(r) for r in result.scalars().all()]

    async def list_unassigned_photos(self) -> list[PhotoRecord]:
        async with self._db.session() as db:
            result = await db.execute(
                select(PhotoRow)
                .where(
                    PhotoRow.property_id.is_(None),
                    PhotoRow.status.in_([
                        ProcessingStatus.PENDING.value,
                        ProcessingStatus.ERROR.value,
                    ]),
                )
                .order_by(PhotoRow.created_at)
            )
            return [self._row_to_photo(r) for r in result.scalars().all()]

    async def reassign_property(self, from_property_id: str, to_property_id: str) -> int:
        async with self._db.session() as db:
            result = await db.execute(
                update(PhotoRow)
                .where(PhotoRow.property_id == from_property_id)
                .values(property_id=to_property_id, updated_at=datetime.now(timezone.utc))
            )
            await db.commit()
            return result.rowcount or 0

    @staticmethod
    def _row_to_photo(row: PhotoRow) -> PhotoRecord:
        return PhotoRecord(
            id=row.id,
            batch_id=row.batch_id,
            latitude=row.latitude,
            longitude=row.longitude,
            altitude=row.altitude,
            taken_at=as_aware(row.taken_at),
            device_id=row.device_id,
            status=ProcessingStatus(row.status),
            property_id=row.property_id,
            match_confidence=row.match_confidence,
            metadata=row.metadata_json or {},
            created_at=as_aware(row.created_at),
            updated_at=as_aware(row.updated_at),
        )
