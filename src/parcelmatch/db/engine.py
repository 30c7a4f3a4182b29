"""Async database engine and session management."""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from parcelmatch.core.config import DBConfig


class DatabaseManager:
    """Owns the async engine shared by the photo and property repositories.

    Usage::

        db = DatabaseManager.from_config(settings.db)
        photos = PostgresPhotoRepository(db)
        ...
        await db.close()

    SQLite URLs skip pool sizing; tests run against ``sqlite+aiosqlite:///:memory:``.
    """

    def __init__(
        self,
        database_url: str,
        echo: bool = False,
        pool_size: int = 5,
    ) -> None:
        kwargs: dict[str, Any] = {"echo": echo}
        if "sqlite" not in database_url:
            kwargs["pool_size"] = pool_size
            kwargs["pool_pre_ping"] = True
        self._engine: AsyncEngine = create_async_engine(database_url, **kwargs)
        self._session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self._engine,
            expire_on_commit=False,
        )

    @classmethod
    def from_config(cls, config: DBConfig) -> DatabaseManager:
        if not config.database_url:
            raise ValueError("PARCELMATCH_DB_DATABASE_URL is not set")
        return cls(config.database_url, echo=config.echo, pool_size=config.pool_size)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    def session(self) -> AsyncSession:
        """Create a new async session."""
        return self._session_factory()

    async def create_all(self) -> None:
        """Create missing tables. Migrations own the schema in production."""
        from parcelmatch.db.base import Base
        import parcelmatch.db.models  # noqa: F401

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Dispose of the engine connection pool."""
        await self._engine.dispose()
