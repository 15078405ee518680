"""
app/services/recommendation_service.py

Turns market statistics into a pricing recommendation via the configured
LLM adapter.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Sequence

from app.config import LLMSettings
from app.domain.errors import GenerationError
from app.domain.price_analysis import ListingRecord, PriceStatistics, Recommendation
from app.logging_utils import log_event
from llm_synthesis.adapter import BaseLLMAdapter, LLMAdapterError, MockLLMAdapter, OpenAILLMAdapter
from llm_synthesis.formatting import format_rupiah
from llm_synthesis.prompt_builder import PRICING_SYSTEM_MESSAGE, PricingPromptBuilder
from llm_synthesis.retry import LLMRetryExhaustedError, generate_with_retry
from llm_synthesis.schema import RecommendationOutput
from llm_synthesis.validator import LLMOutputValidationError

logger = logging.getLogger(__name__)


def build_llm_adapter(settings: LLMSettings) -> BaseLLMAdapter:
    """Instantiate the adapter selected by ``settings.adapter``.

    mock   -> MockLLMAdapter  (testing, no API key required)
    openai -> OpenAILLMAdapter (default)
    """
    if settings.adapter == "mock":
        return MockLLMAdapter()

    return OpenAILLMAdapter(
        model=settings.model,
        max_tokens=settings.max_tokens,
        temperature=settings.temperature,
        api_key=settings.api_key,
        base_url=settings.base_url,
        timeout_seconds=settings.timeout_seconds,
    )


def describe_budget_position(statistics: PriceStatistics, user_price: float | None) -> str | None:
    """
    Return an insight flagging a budget outside the observed market range,
    or ``None`` when the budget is absent or inside ``[min, max]``.
    """

    if user_price is None:
        return None
    market_range = f"{format_rupiah(statistics.min)} - {format_rupiah(statistics.max)}"
    if user_price < statistics.min:
        return (
            f"Your budget of {format_rupiah(user_price)} is below the observed market "
            f"range ({market_range}); expect few or no listings at that price."
        )
    if user_price > statistics.max:
        return (
            f"Your budget of {format_rupiah(user_price)} is above the observed market "
            f"range ({market_range}); you can likely pay less."
        )
    return None


class RecommendationGenerator:
    """
    Generates a ``Recommendation`` from statistics and an optional user price.
    """

    def __init__(
        self,
        adapter: BaseLLMAdapter,
        *,
        prompt_builder: PricingPromptBuilder | None = None,
        format_max_retries: int = 0,
    ) -> None:
        self._adapter = adapter
        self._prompt_builder = prompt_builder or PricingPromptBuilder()
        self._format_max_retries = format_max_retries

    def generate_recommendation(
        self,
        statistics: PriceStatistics,
        user_price: float | None = None,
        *,
        query: str = "",
        listings: Sequence[ListingRecord] = (),
    ) -> Recommendation:
        """
        Raises:
            GenerationError: when the adapter fails or its output does not
                validate against ``RecommendationOutput``.
        """

        prompt = self._prompt_builder.build_prompt(
            query=query,
            statistics=asdict(statistics),
            listings=[asdict(listing) for listing in listings if listing.has_valid_price],
            user_price=user_price,
        )
        try:
            output = generate_with_retry(
                self._adapter,
                prompt,
                model=RecommendationOutput,
                system=PRICING_SYSTEM_MESSAGE,
                max_retries=self._format_max_retries,
            )
        except LLMAdapterError as exc:
            log_event(logger, logging.ERROR, "recommendation_adapter_failed", error=str(exc))
            raise GenerationError("The recommendation service is currently unavailable.") from exc
        except (LLMOutputValidationError, LLMRetryExhaustedError) as exc:
            log_event(logger, logging.ERROR, "recommendation_output_invalid", error=str(exc))
            raise GenerationError(
                "The recommendation service returned an invalid response."
            ) from exc

        insights = list(output.insights)
        budget_note = describe_budget_position(statistics, user_price)
        if budget_note is not None:
            insights.insert(0, budget_note)

        suggested = output.suggested_price
        if suggested is not None and not statistics.min <= suggested <= statistics.max:
            log_event(
                logger,
                logging.WARNING,
                "suggested_price_outside_market_range",
                suggested_price=suggested,
                market_min=statistics.min,
                market_max=statistics.max,
            )

        return Recommendation(
            recommendation=output.recommendation,
            insights=insights,
            suggested_price=suggested,
        )
