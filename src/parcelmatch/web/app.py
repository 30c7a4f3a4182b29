"""FastAPI application for the parcel matching engine.

Exposes the bulk matching entry points, consensus geocoding and a
health check. Storage is in-memory unless a database URL is configured.

Run with::

    uvicorn parcelmatch.web.app:create_app --factory --port 8080
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from parcelmatch import __version__
from parcelmatch.core.config import Settings
from parcelmatch.db.engine import DatabaseManager
from parcelmatch.geocoding.client import create_geocoder
from parcelmatch.geocoding.sampler import ConsensusGeocoder
from parcelmatch.matching.orchestrator import MatchOrchestrator
from parcelmatch.photos.store import PhotoStore
from parcelmatch.properties.store import PropertyStore
from parcelmatch.web.photo_router import router as photo_router


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
    version: str = __version__
    parcel_provider: str
    parcel_provider_available: bool
    geocoder_provider: str
    cache: dict[str, int]


def create_app(
    settings: Settings | None = None,
    orchestrator: MatchOrchestrator | None = None,
    consensus_geocoder: ConsensusGeocoder | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Uses the factory pattern so tests can create isolated app instances
    with mock dependencies.

    Args:
        settings: Application settings. Defaults to Settings().
        orchestrator: Optional pre-built MatchOrchestrator.
        consensus_geocoder: Optional pre-built ConsensusGeocoder.
    """
    if settings is None:
        settings = Settings()

    db_manager: DatabaseManager | None = None
    if orchestrator is None:
        if settings.db.database_url:
            from parcelmatch.repositories.postgres import (
                PostgresPhotoRepository,
                PostgresPropertyRepository,
            )

            db_manager = DatabaseManager.from_config(settings.db)
            photo_repo = PostgresPhotoRepository(db_manager)
            property_repo = PostgresPropertyRepository(db_manager)
        else:
            photo_repo = PhotoStore()
            property_repo = PropertyStore()
        orchestrator = MatchOrchestrator.from_settings(settings, photo_repo, property_repo)
    else:
        photo_repo = orchestrator.photos
        property_repo = orchestrator.properties

    if consensus_geocoder is None:
        consensus_geocoder = ConsensusGeocoder(create_geocoder(settings.geocoder), settings.geocoder)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await orchestrator.close()
        await consensus_geocoder.geocoder.close()
        if db_manager is not None:
            await db_manager.close()

    app = FastAPI(
        title="parcelmatch",
        description="Drone photo to land parcel matching engine",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://localhost:3001"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.orchestrator = orchestrator
    app.state.consensus_geocoder = consensus_geocoder
    app.state.photo_store = photo_repo
    app.state.property_store = property_repo
    if db_manager is not None:
        app.state.db_manager = db_manager

    app.include_router(photo_router)

    @app.get("/api/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Health check endpoint."""
        available = await orchestrator.parcel_client.is_available()
        return HealthResponse(
            status="ok" if available else "degraded",
            service="parcelmatch",
            parcel_provider=settings.parcels.provider,
            parcel_provider_available=available,
            geocoder_provider=settings.geocoder.provider,
            cache=orchestrator.cache.stats(),
        )

    return app
