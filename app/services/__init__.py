"""
app/services package marker.
"""

from app.services.price_analysis_orchestrator import (
    AnalysisPipeline,
    AnalysisSession,
    PriceAnalysisOrchestrator,
    SessionState,
)
from app.services.price_analysis_service import (
    PriceAnalysisService,
    get_price_analysis_service,
)
from app.services.query_optimizer import QueryOptimizer
from app.services.recommendation_service import RecommendationGenerator, build_llm_adapter
from app.services.seller_guidance_service import SellerGuidanceService
from app.services.statistics_service import compute_statistics

__all__ = [
    "AnalysisPipeline",
    "AnalysisSession",
    "PriceAnalysisOrchestrator",
    "PriceAnalysisService",
    "QueryOptimizer",
    "RecommendationGenerator",
    "SellerGuidanceService",
    "SessionState",
    "build_llm_adapter",
    "compute_statistics",
    "get_price_analysis_service",
]
