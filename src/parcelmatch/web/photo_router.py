"""FastAPI router for photo matching, geocoding and property maintenance."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from parcelmatch.core.errors import InvalidCoordinate, NotFound, PersistenceFailure
from parcelmatch.matching.models import PhotoOutcome

router = APIRouter()


class ProcessPendingRequest(BaseModel):
    include_errors: bool = False
    limit: int | None = Field(default=None, ge=1)


class RevalidateRequest(BaseModel):
    skip_manual: bool = False


class AssignRequest(BaseModel):
    property_id: str


class ConsensusRequest(BaseModel):
    latitude: float
    longitude: float
    gps_accuracy_meters: float | None = Field(default=None, gt=0)


def _orchestrator(request: Request):
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(status_code=503, detail="Matching engine not available")
    return orchestrator


def _summary(outcomes: list[PhotoOutcome]) -> dict[str, Any]:
    counts = {"matched": 0, "unassigned": 0, "failed": 0}
    for item in outcomes:
        counts[item.outcome.kind] += 1
    return {
        "total": len(outcomes),
        **counts,
        "outcomes": [item.model_dump(mode="json") for item in outcomes],
    }


@router.post("/api/photos/process-pending")
async def process_pending(request: Request, body: ProcessPendingRequest | None = None) -> dict[str, Any]:
    """Run the pending queue through the matcher."""
    body = body or ProcessPendingRequest()
    outcomes = await _orchestrator(request).process_pending_photos(
        include_errors=body.include_errors,
        limit=body.limit,
    )
    return _summary(outcomes)


@router.post("/api/photos/revalidate")
async def revalidate(request: Request, body: RevalidateRequest | None = None) -> dict[str, Any]:
    """Re-run matching for every assigned photo."""
    body = body or RevalidateRequest()
    outcomes = await _orchestrator(request).revalidate_photo_assignments(
        skip_manual=body.skip_manual,
    )
    return _summary(outcomes)


@router.get("/api/photos/unassigned")
async def list_unassigned(request: Request) -> list[dict[str, Any]]:
    photos = await _orchestrator(request).get_unassigned_photos()
    return [p.model_dump(mode="json") for p in photos]


@router.post("/api/photos/{photo_id}/process")
async def process_photo(photo_id: str, request: Request) -> dict[str, Any]:
    """Match a single photo and return its outcome."""
    try:
        outcome = await _orchestrator(request).process_photo(photo_id)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except PersistenceFailure as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    return PhotoOutcome(photo_id=photo_id, outcome=outcome).model_dump(mode="json")


@router.post("/api/photos/{photo_id}/assign")
async def assign_photo(photo_id: str, body: AssignRequest, request: Request) -> dict[str, Any]:
    """Manually assign a photo to a property."""
    try:
        outcome = await _orchestrator(request).manually_assign_photo(photo_id, body.property_id)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except PersistenceFailure as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    return PhotoOutcome(photo_id=photo_id, outcome=outcome).model_dump(mode="json")


@router.post("/api/geocode/consensus")
async def consensus_geocode(body: ConsensusRequest, request: Request) -> dict[str, Any]:
    """Resolve a noisy coordinate to its most likely street address."""
    sampler = getattr(request.app.state, "consensus_geocoder", None)
    if sampler is None:
        raise HTTPException(status_code=503, detail="Geocoder not available")
    try:
        result = await sampler.sample(body.latitude, body.longitude, body.gps_accuracy_meters)
    except InvalidCoordinate as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return result.model_dump(mode="json")


@router.post("/api/properties/reconcile")
async def reconcile_properties(request: Request) -> dict[str, Any]:
    """Merge duplicate live properties that share a coordinate key."""
    report = await _orchestrator(request).reconcile_duplicates()
    return report.model_dump(mode="json")
