"""SQL (PostgreSQL, or SQLite in tests) repository implementations."""

from parcelmatch.repositories.postgres.photos import PostgresPhotoRepository
from parcelmatch.repositories.postgres.properties import PostgresPropertyRepository

__all__ = ["PostgresPhotoRepository", "PostgresPropertyRepository"]
