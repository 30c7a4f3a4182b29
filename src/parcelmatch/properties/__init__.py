"""Property records: model, owner classification, storage and resolution."""

from parcelmatch.properties.classifier import KeywordOwnerClassifier, OwnerClassifier
from parcelmatch.properties.models import PropertyRecord
from parcelmatch.properties.resolver import PropertyResolver, ReconcileReport
from parcelmatch.properties.store import PropertyStore

__all__ = [
    "KeywordOwnerClassifier",
    "OwnerClassifier",
    "PropertyRecord",
    "PropertyResolver",
    "PropertyStore",
    "ReconcileReport",
]
