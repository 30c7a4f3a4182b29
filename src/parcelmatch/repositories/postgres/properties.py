"""PostgreSQL property repository."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from parcelmatch.core.errors import DuplicateProperty
from parcelmatch.core.types import OwnerType, PropertyStatus
from parcelmatch.db.engine import DatabaseManager
from parcelmatch.db.models import PropertyRow, as_aware
from parcelmatch.properties.models import PropertyRecord

# Columns copied verbatim between PropertyRecord and PropertyRow.
_PLAIN_FIELDS = (
    "latitude",
    "longitude",
    "coordinate_key",
    "address",
    "city",
    "state",
    "zip_code",
    "parcel_number",
    "owner_name",
    "owner_care_of",
    "owner_mailing_address",
    "owner_mailing_city",
    "owner_mailing_state",
    "owner_mailing_zip",
    "owner_mailing_country",
    "year_built",
    "total_value",
    "improvement_value",
    "land_value",
    "use_description",
    "zoning_code",
    "zoning_description",
    "is_deleted",
    "deleted_at",
    "created_at",
    "updated_at",
)


class PostgresPropertyRepository:
    """Postgres-backed property storage.

    A partial unique index on ``coordinate_key`` (live rows only) turns a
    racing insert into ``DuplicateProperty``.
    """

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def get_property(self, property_id: str) -> PropertyRecord | None:
        async with self._db.session() as db:
            row = await db.get(PropertyRow, property_id)
            if row is None:
                return None
            return self._row_to_property(row)

    async def find_by_coordinate_key(self, coordinate_key: str) -> PropertyRecord | None:
        async with self._db.session() as db:
            result = await db.execute(
                select(PropertyRow)
                .where(
                    PropertyRow.coordinate_key == coordinate_key,
                    PropertyRow.is_deleted.is_(False),
                )
                .order_by(PropertyRow.created_at)
                .limit(1)
            )
            row = result.scalars().first()
            return self._row_to_property(row) if row else None

    async def create_property(self, record: PropertyRecord) -> PropertyRecord:
        async with self._db.session() as db:
            row = PropertyRow(id=record.id)
            self._apply(row, record)
            db.add(row)
            try:
                await db.commit()
            except IntegrityError as exc:
                await db.rollback()
                raise DuplicateProperty(record.coordinate_key) from exc
        return record

    async def update_property(self, record: PropertyRecord) -> PropertyRecord:
        async with self._db.session() as db:
            row = await db.get(PropertyRow, record.id)
            if row is None:
                raise KeyError(f"Property '{record.id}' not found.")
            self._apply(row, record)
            await db.commit()
        return record

    async def list_properties(self, include_deleted: bool = False) -> list[PropertyRecord]:
        async with self._db.session() as db:
            stmt = select(PropertyRow).order_by(PropertyRow.created_at)
            if not include_deleted:
                stmt = stmt.where(PropertyRow.is_deleted.is_(False))
            result = await db.execute(stmt)
            return [self._row_to_property(r) for r in result.scalars().all()]

    @staticmethod
    def _apply(row: PropertyRow, record: PropertyRecord) -> None:
        for name in _PLAIN_FIELDS:
            setattr(row, name, getattr(record, name))
        row.owner_type = record.owner_type.value
        row.status = record.status.value

    @staticmethod
    def _row_to_property(row: PropertyRow) -> PropertyRecord:
        data = {name: getattr(row, name) for name in _PLAIN_FIELDS}
        for name in ("deleted_at", "created_at", "updated_at"):
            data[name] = as_aware(data[name])
        return PropertyRecord(
            id=row.id,
            owner_type=OwnerType(row.owner_type),
            status=PropertyStatus(row.status),
            **data,
        )
