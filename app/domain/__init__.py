"""
app/domain package marker.
"""

from app.domain.errors import (
    AnalysisInputError,
    EmptyInputError,
    GenerationError,
    GenerationTimeoutError,
    PriceAnalysisError,
    ScrapeError,
    ScrapeTimeoutError,
    SessionCancelledError,
    StepTimeoutError,
)
from app.domain.price_analysis import (
    AnalysisRequest,
    AnalysisResult,
    ListingRecord,
    PriceStatistics,
    Recommendation,
)

__all__ = [
    "AnalysisInputError",
    "AnalysisRequest",
    "AnalysisResult",
    "EmptyInputError",
    "GenerationError",
    "GenerationTimeoutError",
    "ListingRecord",
    "PriceAnalysisError",
    "PriceStatistics",
    "Recommendation",
    "ScrapeError",
    "ScrapeTimeoutError",
    "SessionCancelledError",
    "StepTimeoutError",
]
