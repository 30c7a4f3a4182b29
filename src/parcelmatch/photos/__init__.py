"""Photo records and their in-memory store."""

from parcelmatch.photos.models import PhotoRecord
from parcelmatch.photos.store import PhotoStore

__all__ = ["PhotoRecord", "PhotoStore"]
