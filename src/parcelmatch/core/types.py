"""Core type definitions shared across all parcelmatch modules."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class ProcessingStatus(StrEnum):
    """Photo processing status."""

    PENDING = "pending"
    PROCESSING = "processing"
    PROCESSED = "processed"
    ERROR = "error"


class MatchMethod(StrEnum):
    """How a match decision was reached."""

    NO_COORDINATES = "no_coordinates"
    NO_PARCEL_DATA = "no_parcel_data"
    COORDINATE_OUTSIDE_PARCEL = "coordinate_outside_parcel"
    LOW_CONFIDENCE = "low_confidence"
    PARCEL_MATCH = "parcel_match"
    MANUAL_ASSIGNMENT = "manual_assignment"
    ERROR = "error"


class OwnerType(StrEnum):
    """Owner classification for a property."""

    INDIVIDUAL = "individual"
    BUSINESS = "business"
    GOVERNMENT = "government"


class PropertyStatus(StrEnum):
    """Lifecycle status of a property. Operators advance it manually."""

    PROCESSING = "processing"
    PENDING = "pending"
    INSPECTED = "inspected"


class AuditEvent(BaseModel):
    """Audit log entry for a match decision."""

    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    actor: str = "system"
    action: str
    resource: str
    details: dict[str, Any] = Field(default_factory=dict)

