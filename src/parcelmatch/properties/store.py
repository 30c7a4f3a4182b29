"""In-memory property store."""

from __future__ import annotations

from parcelmatch.core.errors import DuplicateProperty
from parcelmatch.properties.models import PropertyRecord


class PropertyStore:
    """In-memory store for properties.

    Enforces the same uniqueness rule as the SQL schema: one live record
    per coordinate key.
    """

    def __init__(self) -> None:
        self._properties: dict[str, PropertyRecord] = {}

    def get_property(self, property_id: str) -> PropertyRecord | None:
        record = self._properties.get(property_id)
        return record.model_copy(deep=True) if record else None

    def find_by_coordinate_key(self, coordinate_key: str) -> PropertyRecord | None:
        for record in self._properties.values():
            if record.coordinate_key == coordinate_key and not record.is_deleted:
                return record.model_copy(deep=True)
        return None

    def create_property(self, record: PropertyRecord) -> PropertyRecord:
        if not record.is_deleted and self.find_by_coordinate_key(record.coordinate_key):
            raise DuplicateProperty(record.coordinate_key)
        self._properties[record.id] = record.model_copy(deep=True)
        return record

    def update_property(self, record: PropertyRecord) -> PropertyRecord:
        if record.id not in self._properties:
            raise KeyError(f"Property '{record.id}' not found.")
        self._properties[record.id] = record.model_copy(deep=True)
        return record

    def list_properties(self, include_deleted: bool = False) -> list[PropertyRecord]:
        return [
            r.model_copy(deep=True)
            for r in self._properties.values()
            if include_deleted or not r.is_deleted
        ]

    def insert_unchecked(self, record: PropertyRecord) -> PropertyRecord:
        """Insert without the uniqueness check, e.g. to load legacy duplicates."""
        self._properties[record.id] = record.model_copy(deep=True)
        return record

    @property
    def count(self) -> int:
        return len(self._properties)
