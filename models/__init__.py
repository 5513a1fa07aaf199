"""
Data Models
"""
from .schemas import (
    Author,
    ImageAnalysis,
    ImageAsset,
    Note,
    SearchResultNote,
    SearchResult,
    VerdictSource,
    SufficiencyVerdict,
    FetchFailure,
    BatchResult,
    RetrievalStatus,
    RetrievalState,
    IterationRecord,
    RetrievalOutcome,
)

__all__ = [
    "Author",
    "ImageAnalysis",
    "ImageAsset",
    "Note",
    "SearchResultNote",
    "SearchResult",
    "VerdictSource",
    "SufficiencyVerdict",
    "FetchFailure",
    "BatchResult",
    "RetrievalStatus",
    "RetrievalState",
    "IterationRecord",
    "RetrievalOutcome",
]
