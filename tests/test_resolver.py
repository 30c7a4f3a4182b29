"""Tests for property create-or-update and duplicate reconciliation."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone

import pytest

from parcelmatch.core.errors import DuplicateProperty
from parcelmatch.core.types import OwnerType, PropertyStatus
from parcelmatch.photos.models import PhotoRecord
from parcelmatch.properties.models import PropertyRecord
from parcelmatch.properties.resolver import KeyedLock, PropertyResolver
from parcelmatch.properties.store import PropertyStore

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


class SlowPropertyStore(PropertyStore):
    """Yields to the event loop on lookups and counts create attempts."""

    def __init__(self) -> None:
        super().__init__()
        self.create_attempts = 0

    async def find_by_coordinate_key(self, coordinate_key):
        await asyncio.sleep(0.01)
        return super().find_by_coordinate_key(coordinate_key)

    def create_property(self, record):
        self.create_attempts += 1
        if PropertyStore.find_by_coordinate_key(self, record.coordinate_key):
            raise DuplicateProperty(record.coordinate_key)
        return self.insert_unchecked(record)


class RacingPropertyStore(PropertyStore):
    """Simulates another process inserting the same key between lookup and insert."""

    def __init__(self, rival: PropertyRecord) -> None:
        super().__init__()
        self._rival = rival

    def create_property(self, record):
        if self._rival is not None:
            rival, self._rival = self._rival, None
            super().create_property(rival)
        return super().create_property(record)


@pytest.fixture
def resolver(property_store, photo_store):
    return PropertyResolver(property_store, photos=photo_store, clock=lambda: T0)


class TestKeyedLock:
    async def test_serializes_same_key(self):
        locks = KeyedLock()
        order = []

        async def worker(name):
            async with locks.hold("k"):
                order.append(f"{name}-in")
                await asyncio.sleep(0.01)
                order.append(f"{name}-out")

        await asyncio.gather(worker("a"), worker("b"))
        assert order in (["a-in", "a-out", "b-in", "b-out"], ["b-in", "b-out", "a-in", "a-out"])
        assert len(locks) == 0

    async def test_different_keys_do_not_block(self):
        locks = KeyedLock()
        async with locks.hold("a"):
            async with locks.hold("b"):
                assert len(locks) == 2


class TestResolve:
    async def test_creates_property_from_parcel(self, resolver, property_store, make_parcel):
        parcel = make_parcel(owner="Springfield Holdings LLC")
        property_id = await resolver.resolve(parcel)

        record = property_store.get_property(property_id)
        assert record.coordinate_key == "39.781700,-89.650100"
        assert record.address == "123 Main St"
        assert record.parcel_number == "P-001"
        assert record.owner_type == OwnerType.BUSINESS
        assert record.status == PropertyStatus.PENDING
        assert record.created_at == T0

    async def test_logs_full_address_on_create(self, resolver, make_parcel, caplog):
        with caplog.at_level(logging.INFO, logger="parcelmatch.properties.resolver"):
            await resolver.resolve(make_parcel())
        assert "123 Main St, Springfield, IL 62701" in caplog.text

    async def test_same_parcel_resolves_to_same_property(self, resolver, property_store, make_parcel):
        first = await resolver.resolve(make_parcel())
        second = await resolver.resolve(make_parcel(owner="New Owner"))
        assert first == second
        assert property_store.count == 1
        assert property_store.get_property(first).owner_name == "New Owner"

    async def test_update_preserves_status(self, resolver, property_store, make_parcel):
        property_id = await resolver.resolve(make_parcel())
        record = property_store.get_property(property_id)
        property_store.update_property(record.model_copy(update={"status": PropertyStatus.INSPECTED}))

        await resolver.resolve(make_parcel())
        assert property_store.get_property(property_id).status == PropertyStatus.INSPECTED

    async def test_nearby_parcels_get_distinct_properties(self, resolver, make_parcel):
        a = await resolver.resolve(make_parcel())
        b = await resolver.resolve(make_parcel(latitude=39.7830, parcel_number="P-002"))
        assert a != b

    async def test_concurrent_resolves_create_once(self, make_parcel):
        store = SlowPropertyStore()
        resolver = PropertyResolver(store)
        ids = await asyncio.gather(*(resolver.resolve(make_parcel()) for _ in range(8)))
        assert len(set(ids)) == 1
        assert store.create_attempts == 1
        assert len(store.list_properties()) == 1

    async def test_duplicate_on_insert_falls_back_to_update(self, make_parcel):
        rival = PropertyRecord(
            latitude=39.7817, longitude=-89.6501, coordinate_key="39.781700,-89.650100",
        )
        store = RacingPropertyStore(rival)
        resolver = PropertyResolver(store)

        property_id = await resolver.resolve(make_parcel())
        assert property_id == rival.id
        assert store.get_property(rival.id).owner_name == "Jane Doe"
        assert len(store.list_properties()) == 1

    async def test_store_rejects_live_duplicate(self, property_store):
        record = PropertyRecord(latitude=1.0, longitude=2.0, coordinate_key="1,2")
        property_store.create_property(record)
        with pytest.raises(DuplicateProperty):
            property_store.create_property(
                PropertyRecord(latitude=1.0, longitude=2.0, coordinate_key="1,2")
            )


class TestReconcile:
    async def test_merges_duplicates_into_oldest(self, resolver, property_store, photo_store):
        key = "39.781700,-89.650100"
        oldest = PropertyRecord(latitude=39.7817, longitude=-89.6501, coordinate_key=key,
                                created_at=T0)
        newer = PropertyRecord(latitude=39.7817, longitude=-89.6501, coordinate_key=key,
                               created_at=T0 + timedelta(hours=1))
        other = PropertyRecord(latitude=1.0, longitude=1.0, coordinate_key="1.0,1.0")
        for record in (newer, oldest, other):
            property_store.insert_unchecked(record)
        photo_store.save_photo(PhotoRecord(id="p1", property_id=newer.id))
        photo_store.save_photo(PhotoRecord(id="p2", property_id=newer.id))
        photo_store.save_photo(PhotoRecord(id="p3", property_id=oldest.id))

        report = await resolver.reconcile_duplicates()

        assert report.duplicate_groups == 1
        assert report.merged_properties == 1
        assert report.photos_moved == 2
        assert report.surviving_ids == [oldest.id]
        assert photo_store.get_photo("p1").property_id == oldest.id
        merged = property_store.get_property(newer.id)
        assert merged.is_deleted
        assert merged.deleted_at == T0
        assert property_store.find_by_coordinate_key(key).id == oldest.id

    async def test_nothing_to_merge(self, resolver, make_parcel):
        await resolver.resolve(make_parcel())
        report = await resolver.reconcile_duplicates()
        assert report.duplicate_groups == 0

    async def test_requires_photo_repository(self, property_store):
        with pytest.raises(ValueError):
            await PropertyResolver(property_store).reconcile_duplicates()
