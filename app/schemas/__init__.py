"""
app/schemas package marker.
"""

from app.schemas.price_analysis import (
    AnalysisRequestBody,
    AnalysisResultResponse,
    CompleteEvent,
    ConnectedEvent,
    ErrorDetail,
    ErrorEvent,
    HealthResponse,
    PriceAnalysisEnvelope,
    ProgressEvent,
    ProgressUpdateEvent,
    QuickCheckEnvelope,
    QuickCheckRequestBody,
    SellerAnalysisEnvelope,
)

__all__ = [
    "AnalysisRequestBody",
    "AnalysisResultResponse",
    "CompleteEvent",
    "ConnectedEvent",
    "ErrorDetail",
    "ErrorEvent",
    "HealthResponse",
    "PriceAnalysisEnvelope",
    "ProgressEvent",
    "ProgressUpdateEvent",
    "QuickCheckEnvelope",
    "QuickCheckRequestBody",
    "SellerAnalysisEnvelope",
]
