"""Per-photo matching pipeline and the batch entry points built on it.

Pipeline for one photo::

    coordinates -> cached/looked-up parcel -> boundary gate -> confidence
    -> property resolution -> single write-back

Every stage returns early with an ``Unassigned`` outcome; anything
unexpected becomes a ``Failed`` outcome persisted as ``error``. Only a
failed write-back escapes, as ``PersistenceFailure``.
"""

from __future__ import annotations

import asyncio
import logging
import statistics
from datetime import datetime, timezone
from typing import Any, Callable

from parcelmatch.core.config import MatchingConfig, Settings
from parcelmatch.core.errors import NotFound, PersistenceFailure
from parcelmatch.core.types import MatchMethod, ProcessingStatus
from parcelmatch.geo.geometry import point_in_polygon, square_polygon, validate_coordinate
from parcelmatch.geo.models import Coordinate
from parcelmatch.governance.audit import MatchAuditLog
from parcelmatch.matching.models import (
    Failed,
    Matched,
    MatchOutcome,
    PhotoOutcome,
    Unassigned,
    ValidationReport,
)
from parcelmatch.matching.scoring import ConfidenceScorer
from parcelmatch.parcels.cache import ParcelCache
from parcelmatch.parcels.client import ParcelLookupClient, create_parcel_client
from parcelmatch.parcels.models import ParcelRecord
from parcelmatch.photos.models import PhotoRecord
from parcelmatch.properties.classifier import KeywordOwnerClassifier
from parcelmatch.properties.models import PropertyRecord
from parcelmatch.properties.resolver import PropertyResolver, ReconcileReport
from parcelmatch.repositories import resolve
from parcelmatch.repositories.protocols import PhotoRepository, PropertyRepository

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MatchOrchestrator:
    """Owns the parcel cache and drives photos through the pipeline.

    Args:
        photos: Photo repository.
        properties: Property repository.
        parcel_client: Parcel lookup client (its limiter is shared by all workers).
        cache: Parcel cache; a fresh 24 h cache if omitted.
        scorer: Confidence scorer.
        resolver: Property resolver; built over ``properties`` if omitted.
        config: Worker pool size, per-photo timeout and manual box size.
        audit: Optional decision log.
        clock: Source of ``processed_at`` timestamps.
    """

    def __init__(
        self,
        photos: PhotoRepository,
        properties: PropertyRepository,
        parcel_client: ParcelLookupClient,
        cache: ParcelCache | None = None,
        scorer: ConfidenceScorer | None = None,
        resolver: PropertyResolver | None = None,
        config: MatchingConfig | None = None,
        audit: MatchAuditLog | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._photos = photos
        self._properties = properties
        self._parcels = parcel_client
        self.cache = cache or ParcelCache()
        self.scorer = scorer or ConfidenceScorer()
        self.resolver = resolver or PropertyResolver(properties, photos=photos)
        self.config = config or MatchingConfig()
        self._audit = audit
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        photos: PhotoRepository,
        properties: PropertyRepository,
    ) -> MatchOrchestrator:
        """Wire an orchestrator from configuration."""
        classifier = KeywordOwnerClassifier.from_yaml(settings.owner_rules_path)
        return cls(
            photos=photos,
            properties=properties,
            parcel_client=create_parcel_client(settings.parcels),
            cache=ParcelCache.from_config(settings.cache),
            scorer=ConfidenceScorer(settings.scoring),
            resolver=PropertyResolver(
                properties,
                photos=photos,
                classifier=classifier,
                precision=settings.cache.precision,
            ),
            config=settings.matching,
            audit=MatchAuditLog(settings.audit) if settings.audit.enabled else None,
        )

    @property
    def photos(self) -> PhotoRepository:
        return self._photos

    @property
    def properties(self) -> PropertyRepository:
        return self._properties

    @property
    def parcel_client(self) -> ParcelLookupClient:
        return self._parcels

    async def close(self) -> None:
        await self._parcels.close()

    # ------------------------------------------------------------------
    # Single photo
    # ------------------------------------------------------------------

    async def process_photo(self, photo_id: str) -> MatchOutcome:
        """Match one photo and persist the outcome.

        Raises:
            NotFound: The photo does not exist.
            PersistenceFailure: The outcome could not be written; the stored
                photo is unchanged.
        """
        photo = await self._get_photo(photo_id)
        timeout = self.config.photo_timeout_seconds
        try:
            outcome = await asyncio.wait_for(self._match(photo), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Matching photo %s timed out after %.1fs", photo_id, timeout)
            outcome = Failed(message=f"timed out after {timeout:g}s")
        except Exception as exc:
            logger.exception("Matching photo %s failed", photo_id)
            outcome = Failed(message=str(exc) or type(exc).__name__)

        await self._persist(photo, outcome)
        return outcome

    async def _match(self, photo: PhotoRecord) -> MatchOutcome:
        if photo.latitude is None or photo.longitude is None:
            return Unassigned(method=MatchMethod.NO_COORDINATES, reason="no coordinates")

        coord = validate_coordinate(photo.latitude, photo.longitude, photo.altitude)
        if coord is None:
            return Unassigned(method=MatchMethod.NO_COORDINATES, reason="invalid coordinates")

        parcel = await self._find_parcel(coord)
        if parcel is None:
            return Unassigned(method=MatchMethod.NO_PARCEL_DATA, reason="no parcel data")

        if not point_in_polygon(coord, parcel.boundary):
            return Unassigned(
                method=MatchMethod.COORDINATE_OUTSIDE_PARCEL,
                reason=f"coordinate outside parcel {parcel.parcel_number or parcel.provider_id}",
                factors={"parcel_number": parcel.parcel_number},
            )

        reference_altitude = await self._reference_altitude(photo)
        report = self.scorer.score(coord, parcel, photo.taken_at, reference_altitude)
        factors = self._factors(report, parcel, reference_altitude)
        if not report.accepted:
            return Unassigned(
                method=MatchMethod.LOW_CONFIDENCE,
                reason=(
                    f"confidence {report.confidence:.4f} below threshold "
                    f"{self.scorer.config.acceptance_threshold}"
                ),
                confidence=report.confidence,
                factors=factors,
            )

        property_id = await self.resolver.resolve(parcel)
        return Matched(
            property_id=property_id,
            confidence=report.confidence,
            method=MatchMethod.PARCEL_MATCH,
            factors=factors,
        )

    async def _find_parcel(self, coord: Coordinate) -> ParcelRecord | None:
        key = self.cache.key_for(coord.latitude, coord.longitude)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        radius = await self._parcels.search_radius(coord.latitude, coord.longitude)
        parcel = await self._parcels.lookup(coord.latitude, coord.longitude, radius)
        if parcel is not None:
            self.cache.put(key, parcel)
        return parcel

    async def _reference_altitude(self, photo: PhotoRecord) -> float | None:
        """Median altitude of the photo's batch siblings, if any report one."""
        if photo.batch_id is None or photo.altitude is None:
            return None
        siblings = await resolve(self._photos.list_batch_photos(photo.batch_id))
        altitudes = [
            p.altitude for p in siblings
            if p.id != photo.id and p.altitude is not None
        ]
        return statistics.median(altitudes) if altitudes else None

    @staticmethod
    def _factors(
        report: ValidationReport,
        parcel: ParcelRecord,
        reference_altitude: float | None,
    ) -> dict[str, Any]:
        factors = report.model_dump(mode="json")
        factors["parcel_number"] = parcel.parcel_number
        factors["reference_altitude"] = reference_altitude
        return factors

    # ------------------------------------------------------------------
    # Write-back
    # ------------------------------------------------------------------

    async def _persist(self, photo: PhotoRecord, outcome: MatchOutcome) -> PhotoRecord:
        now = self._clock()
        metadata = dict(photo.metadata)

        if isinstance(outcome, Matched):
            metadata.pop("unassigned_reason", None)
            match_result: dict[str, Any] = {
                "method": outcome.method.value,
                "processed_at": now.isoformat(),
                "confidence": outcome.confidence,
                "factors": outcome.factors,
            }
            if outcome.method == MatchMethod.MANUAL_ASSIGNMENT:
                match_result["manual_override"] = True
                match_result["validation_details"] = outcome.factors.get("validation_details")
            metadata["match_result"] = match_result
            update = {
                "status": ProcessingStatus.PROCESSED,
                "property_id": outcome.property_id,
                "match_confidence": outcome.confidence,
            }
        else:
            metadata.pop("match_result", None)
            if isinstance(outcome, Unassigned):
                reason = outcome.reason
                status = ProcessingStatus.PENDING
                metadata["match_factors"] = outcome.factors
            else:
                reason = f"error: {outcome.message}"
                status = ProcessingStatus.ERROR
                metadata.pop("match_factors", None)
            metadata["unassigned_reason"] = reason
            metadata["match_method"] = outcome.method.value
            metadata["updated_at"] = now.isoformat()
            update = {"status": status, "property_id": None, "match_confidence": None}

        updated = photo.model_copy(update={**update, "metadata": metadata, "updated_at": now})
        try:
            await resolve(self._photos.save_photo(updated))
        except Exception as exc:
            logger.error("Could not save outcome for photo %s: %s", photo.id, exc)
            raise PersistenceFailure(f"Could not save photo {photo.id}: {exc}") from exc

        logger.info(
            "Photo %s -> %s (%s)", photo.id, outcome.kind, outcome.method.value,
        )
        if self._audit is not None:
            # The photo is already saved; a failed audit write must not change the outcome.
            try:
                self._audit.record_decision(
                    photo.id,
                    outcome.kind,
                    outcome.model_dump(mode="json"),
                    actor="operator" if outcome.method == MatchMethod.MANUAL_ASSIGNMENT else "system",
                )
            except Exception:
                logger.exception("Could not record audit entry for photo %s", photo.id)
        return updated

    # ------------------------------------------------------------------
    # Batch entry points
    # ------------------------------------------------------------------

    async def process_photos(self, photo_ids: list[str]) -> list[PhotoOutcome]:
        """Process photos through a bounded worker pool, one outcome per id."""
        semaphore = asyncio.Semaphore(max(1, self.config.max_workers))

        async def _run(photo_id: str) -> PhotoOutcome:
            async with semaphore:
                try:
                    outcome = await self.process_photo(photo_id)
                except Exception as exc:
                    logger.error("Photo %s could not be processed: %s", photo_id, exc)
                    outcome = Failed(message=str(exc) or type(exc).__name__)
                return PhotoOutcome(photo_id=photo_id, outcome=outcome)

        return list(await asyncio.gather(*(_run(pid) for pid in photo_ids)))

    async def process_pending_photos(
        self,
        include_errors: bool = False,
        limit: int | None = None,
    ) -> list[PhotoOutcome]:
        """Process every pending photo (and errored ones if ``include_errors``)."""
        photos = await resolve(self._photos.list_photos_by_status(ProcessingStatus.PENDING))
        if include_errors:
            photos += await resolve(self._photos.list_photos_by_status(ProcessingStatus.ERROR))
        if limit is not None:
            photos = photos[:limit]
        logger.info("Processing %d pending photos", len(photos))
        return await self.process_photos([p.id for p in photos])

    async def revalidate_photo_assignments(self, skip_manual: bool = False) -> list[PhotoOutcome]:
        """Re-run matching for every assigned photo.

        Manual assignments are re-run too and may be replaced by an automatic
        outcome; pass ``skip_manual`` to leave operator overrides in place.
        """
        photos = await resolve(self._photos.list_assigned_photos())
        if skip_manual:
            photos = [
                p for p in photos
                if not (p.metadata.get("match_result") or {}).get("manual_override")
            ]
        logger.info("Revalidating %d assigned photos", len(photos))
        return await self.process_photos([p.id for p in photos])

    async def get_unassigned_photos(self) -> list[PhotoRecord]:
        return await resolve(self._photos.list_unassigned_photos())

    async def manually_assign_photo(self, photo_id: str, property_id: str) -> Matched:
        """Assign a photo to a property without lookup or threshold.

        The photo is still scored against a small box around the property so
        the record shows how far the operator overrode the automatic checks.
        """
        photo = await self._get_photo(photo_id)
        prop: PropertyRecord | None = await resolve(self._properties.get_property(property_id))
        if prop is None or prop.is_deleted:
            raise NotFound(f"Property '{property_id}' not found.")

        validation: dict[str, Any] | None = None
        coord = validate_coordinate(photo.latitude, photo.longitude, photo.altitude)
        if coord is not None:
            box = ParcelRecord(
                parcel_number=prop.parcel_number,
                boundary=square_polygon(prop.latitude, prop.longitude, self.config.manual_box_degrees),
                centroid=Coordinate(latitude=prop.latitude, longitude=prop.longitude),
            )
            reference_altitude = await self._reference_altitude(photo)
            report = self.scorer.score(coord, box, photo.taken_at, reference_altitude)
            validation = report.model_dump(mode="json")

        outcome = Matched(
            property_id=prop.id,
            confidence=validation["confidence"] if validation else 0.0,
            method=MatchMethod.MANUAL_ASSIGNMENT,
            factors={"manual_override": True, "validation_details": validation},
        )
        await self._persist(photo, outcome)
        return outcome

    async def reconcile_duplicates(self) -> ReconcileReport:
        report = await self.resolver.reconcile_duplicates()
        if report.merged_properties:
            logger.info(
                "Reconciled %d duplicate groups, merged %d properties, moved %d photos",
                report.duplicate_groups, report.merged_properties, report.photos_moved,
            )
        return report

    async def _get_photo(self, photo_id: str) -> PhotoRecord:
        photo = await resolve(self._photos.get_photo(photo_id))
        if photo is None:
            raise NotFound(f"Photo '{photo_id}' not found.")
        return photo
