"""Application configuration loaded from environment and config files."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class ParcelProviderConfig(BaseSettings):
    """Parcel-data provider configuration."""

    model_config = {"env_prefix": "PARCELMATCH_PARCELS_"}

    provider: str = "mock"
    base_url: str = "https://app.regrid.com/api/v2"
    api_key: str | None = None
    timeout_seconds: int = 30
    max_retries: int = 2
    max_concurrency: int = 4
    min_interval_seconds: float = 0.0
    density_radius_meters: float = 50.0
    density_threshold: int = 3
    density_limit: int = 10
    dense_radius_meters: float = 50.0
    sparse_radius_meters: float = 20.0


class GeocoderConfig(BaseSettings):
    """Reverse-geocoding provider and consensus sampler configuration."""

    model_config = {"env_prefix": "PARCELMATCH_GEOCODER_"}

    provider: str = "mock"
    base_url: str = "https://maps.googleapis.com/maps/api"
    api_key: str | None = None
    timeout_seconds: int = 15
    max_retries: int = 1
    max_concurrency: int = 1
    throttle_seconds: float = 0.1
    num_samples: int = 100
    default_error_meters: float = 15.0


class CacheConfig(BaseSettings):
    """Parcel cache configuration."""

    model_config = {"env_prefix": "PARCELMATCH_CACHE_"}

    ttl_seconds: float = 24 * 60 * 60
    precision: int = 6
    max_entries: int | None = None


class ScoringConfig(BaseSettings):
    """Confidence scoring weights and thresholds."""

    model_config = {"env_prefix": "PARCELMATCH_SCORING_"}

    acceptance_threshold: float = 0.99
    spatial_weight: float = 0.7
    metadata_weight: float = 0.3

    coordinate_weight: float = 0.50
    distance_weight: float = 0.35
    bearing_weight: float = 0.10
    boundary_weight: float = 0.05

    timestamp_weight: float = 0.50
    altitude_weight: float = 0.30
    orientation_weight: float = 0.20

    max_coordinate_delta: float = 0.00008
    max_distance_meters: float = 15.0
    reference_heading: float = 0.0
    bearing_tolerance: float = 45.0
    max_altitude_delta_meters: float = 100.0
    max_photo_age_days: int = 365


class MatchingConfig(BaseSettings):
    """Batch processing configuration."""

    model_config = {"env_prefix": "PARCELMATCH_MATCHING_"}

    max_workers: int = 4
    photo_timeout_seconds: float = 120.0
    manual_box_degrees: float = 0.0001


class DBConfig(BaseSettings):
    """Database configuration. Without a URL the in-memory stores are used."""

    model_config = {"env_prefix": "PARCELMATCH_DB_"}

    database_url: str | None = None
    echo: bool = False
    pool_size: int = 5


class AuditConfig(BaseSettings):
    """Match decision audit log configuration."""

    model_config = {"env_prefix": "PARCELMATCH_AUDIT_"}

    enabled: bool = False
    log_dir: str = "data/audit"


class Settings(BaseSettings):
    """Root application settings."""

    model_config = {"env_prefix": "PARCELMATCH_"}

    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    owner_rules_path: str | None = None

    parcels: ParcelProviderConfig = Field(default_factory=ParcelProviderConfig)
    geocoder: GeocoderConfig = Field(default_factory=GeocoderConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    db: DBConfig = Field(default_factory=DBConfig)
    audit: AuditConfig = Field(default_factory=AuditConfig)
