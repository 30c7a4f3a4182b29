"""Create-or-update of property records from matched parcels.

Properties are keyed by the parcel reference point quantized to six
decimals, so every photo matched to one parcel lands on one property.
Creation is serialized per key within the process; the repository's
uniqueness check catches writers in other processes, and
``reconcile_duplicates`` merges any rows that predate the check.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, AsyncIterator, Callable

from pydantic import BaseModel

from parcelmatch.core.errors import DuplicateProperty
from parcelmatch.geo.geometry import DEFAULT_KEY_PRECISION, coordinate_key, quantize
from parcelmatch.parcels.models import ParcelRecord
from parcelmatch.properties.classifier import KeywordOwnerClassifier, OwnerClassifier
from parcelmatch.properties.models import PropertyRecord
from parcelmatch.repositories import resolve

if TYPE_CHECKING:
    from parcelmatch.repositories.protocols import PhotoRepository, PropertyRepository

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class KeyedLock:
    """One asyncio.Lock per key, dropped once nobody holds or waits on it."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


class ReconcileReport(BaseModel):
    duplicate_groups: int = 0
    merged_properties: int = 0
    photos_moved: int = 0
    surviving_ids: list[str] = []


class PropertyResolver:
    """Turns a matched parcel into a property id.

    Args:
        properties: Property repository (in-memory or SQL).
        photos: Photo repository; needed only for ``reconcile_duplicates``.
        classifier: Owner classifier used when a record is written.
        precision: Decimal places of the coordinate key.
    """

    def __init__(
        self,
        properties: PropertyRepository,
        photos: PhotoRepository | None = None,
        classifier: OwnerClassifier | None = None,
        precision: int = DEFAULT_KEY_PRECISION,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._properties = properties
        self._photos = photos
        self._classifier = classifier or KeywordOwnerClassifier()
        self._precision = precision
        self._clock = clock
        self._locks = KeyedLock()

    def key_for(self, parcel: ParcelRecord) -> str:
        point = parcel.reference_point
        return coordinate_key(point.latitude, point.longitude, self._precision)

    def parcel_fields(self, parcel: ParcelRecord) -> dict[str, Any]:
        """Every property field derived from the parcel."""
        point = parcel.reference_point
        owner = parcel.owner
        mailing = owner.mailing_address
        return {
            "latitude": quantize(point.latitude, self._precision),
            "longitude": quantize(point.longitude, self._precision),
            "address": parcel.address.street,
            "city": parcel.address.city,
            "state": parcel.address.state,
            "zip_code": parcel.address.zip_code,
            "parcel_number": parcel.parcel_number,
            "owner_name": owner.name,
            "owner_type": self._classifier.classify(owner.name),
            "owner_care_of": owner.care_of,
            "owner_mailing_address": mailing.street,
            "owner_mailing_city": mailing.city,
            "owner_mailing_state": mailing.state,
            "owner_mailing_zip": mailing.zip_code,
            "owner_mailing_country": mailing.country,
            "year_built": parcel.year_built,
            "total_value": parcel.valuation.total,
            "improvement_value": parcel.valuation.improvements,
            "land_value": parcel.valuation.land,
            "use_description": parcel.use_description,
            "zoning_code": parcel.zoning.code if parcel.zoning else None,
            "zoning_description": parcel.zoning.description if parcel.zoning else None,
        }

    async def resolve(self, parcel: ParcelRecord) -> str:
        """Return the id of the property for ``parcel``, creating it if needed."""
        key = self.key_for(parcel)
        async with self._locks.hold(key):
            existing = await resolve(self._properties.find_by_coordinate_key(key))
            if existing is not None:
                return await self._update(existing, parcel)

            now = self._clock()
            record = PropertyRecord(
                coordinate_key=key,
                created_at=now,
                updated_at=now,
                **self.parcel_fields(parcel),
            )
            try:
                await resolve(self._properties.create_property(record))
            except DuplicateProperty:
                existing = await resolve(self._properties.find_by_coordinate_key(key))
                if existing is None:
                    raise
                logger.info("Property at %s created concurrently, updating %s", key, existing.id)
                return await self._update(existing, parcel)

            logger.info(
                "Created property %s at %s (%s)", record.id, key, parcel.address.full_address
            )
            return record.id

    async def _update(self, existing: PropertyRecord, parcel: ParcelRecord) -> str:
        # Lifecycle status is operator-owned and survives parcel refreshes.
        updated = existing.model_copy(
            update={**self.parcel_fields(parcel), "updated_at": self._clock()}
        )
        await resolve(self._properties.update_property(updated))
        logger.debug("Updated property %s", existing.id)
        return existing.id

    async def reconcile_duplicates(self) -> ReconcileReport:
        """Merge live properties that share a coordinate key.

        The oldest record survives; photos of the others are re-pointed to it
        and the others are soft-deleted.
        """
        if self._photos is None:
            raise ValueError("reconcile_duplicates requires a photo repository")

        groups: dict[str, list[PropertyRecord]] = defaultdict(list)
        for record in await resolve(self._properties.list_properties()):
            groups[record.coordinate_key].append(record)

        report = ReconcileReport()
        for key, records in groups.items():
            if len(records) < 2:
                continue
            records.sort(key=lambda r: (r.created_at, r.id))
            survivor, duplicates = records[0], records[1:]
            report.duplicate_groups += 1
            report.surviving_ids.append(survivor.id)

            for duplicate in duplicates:
                moved = await resolve(self._photos.reassign_property(duplicate.id, survivor.id))
                now = self._clock()
                await resolve(self._properties.update_property(
                    duplicate.model_copy(
                        update={"is_deleted": True, "deleted_at": now, "updated_at": now}
                    )
                ))
                report.merged_properties += 1
                report.photos_moved += moved
            logger.info(
                "Merged %d duplicate properties at %s into %s",
                len(duplicates), key, survivor.id,
            )
        return report
