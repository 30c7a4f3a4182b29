"""Database layer for parcelmatch: SQLAlchemy 2.0 async."""

from __future__ import annotations

from parcelmatch.db.base import Base
from parcelmatch.db.engine import DatabaseManager

__all__ = ["Base", "DatabaseManager"]
