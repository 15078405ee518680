"""
app/services/price_analysis_service.py

Entry point used by the API layer: validates caller input and builds one
orchestrator per request around shared, stateless collaborators.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from app.config import (
    PriceAnalysisSettings,
    get_llm_settings,
    get_marketplace_scraping_settings,
    get_price_analysis_settings,
)
from app.domain.errors import PriceAnalysisError
from app.domain.price_analysis import AnalysisRequest, AnalysisResult
from app.scraping.adapter import MarketplaceScraperAdapter
from app.services.price_analysis_orchestrator import (
    AnalysisPipeline,
    ListingScraper,
    PriceAnalysisOrchestrator,
    QueryRewriter,
    RecommendationSource,
)
from app.services.query_optimizer import QueryOptimizer
from app.services.recommendation_service import RecommendationGenerator, build_llm_adapter
from app.streaming.sinks import EventSink, InMemoryEventSink

logger = logging.getLogger(__name__)


class PriceAnalysisService:
    """
    Service boundary for price analysis.
    """

    def __init__(
        self,
        *,
        scraper: ListingScraper,
        generator: RecommendationSource,
        settings: PriceAnalysisSettings | None = None,
        query_optimizer: QueryRewriter | None = None,
    ) -> None:
        self.settings = settings or PriceAnalysisSettings()
        self._pipeline = AnalysisPipeline(
            scraper=scraper,
            generator=generator,
            settings=self.settings,
            query_optimizer=query_optimizer,
        )

    def build_request(
        self,
        *,
        query: object,
        limit: object = None,
        user_price: object = None,
        min_query_length: int = 1,
    ) -> AnalysisRequest:
        """
        Validate raw input against the configured limit bounds.

        Raises:
            AnalysisInputError: when any field is malformed.
        """

        return AnalysisRequest.create(
            query=query,
            limit=limit,
            user_price=user_price,
            default_limit=self.settings.default_limit,
            max_limit=self.settings.max_limit,
            min_query_length=min_query_length,
        )

    def create_orchestrator(self, sink: EventSink) -> PriceAnalysisOrchestrator:
        return PriceAnalysisOrchestrator(sink, self._pipeline)

    async def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        """
        Run one analysis without streaming.

        Raises:
            PriceAnalysisError: the failure the session ended with.
        """

        orchestrator = self.create_orchestrator(InMemoryEventSink())
        result = await orchestrator.run(request)
        if result is None:
            raise orchestrator.failure or PriceAnalysisError("Price analysis was cancelled.")
        return result


@lru_cache(maxsize=1)
def get_price_analysis_service() -> PriceAnalysisService:
    """
    Return the process-wide service built from environment settings.
    """

    llm_settings = get_llm_settings()
    adapter = build_llm_adapter(llm_settings)
    return PriceAnalysisService(
        scraper=MarketplaceScraperAdapter(settings=get_marketplace_scraping_settings()),
        generator=RecommendationGenerator(
            adapter,
            format_max_retries=llm_settings.format_max_retries,
        ),
        settings=get_price_analysis_settings(),
        query_optimizer=QueryOptimizer(adapter),
    )
