"""Photo-to-parcel matching: outcomes, scoring and orchestration."""

from parcelmatch.matching.models import (
    Failed,
    Matched,
    MatchOutcome,
    PhotoOutcome,
    Unassigned,
    ValidationReport,
)
from parcelmatch.matching.scoring import ConfidenceScorer

__all__ = [
    "ConfidenceScorer",
    "Failed",
    "MatchOutcome",
    "Matched",
    "PhotoOutcome",
    "Unassigned",
    "ValidationReport",
]
