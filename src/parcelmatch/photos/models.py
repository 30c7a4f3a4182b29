"""Photo record model."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from parcelmatch.core.types import ProcessingStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PhotoRecord(BaseModel):
    """A drone photo and its match state.

    Created by the upload pipeline. Only the orchestrator writes
    ``status``, ``property_id``, ``match_confidence`` and ``metadata``.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    batch_id: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    altitude: float | None = None
    taken_at: datetime | None = None
    device_id: str | None = None
    status: ProcessingStatus = ProcessingStatus.PENDING
    property_id: str | None = None
    match_confidence: float | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
