"""
Best-effort rewrite of a user query into a more specific marketplace search.
"""

from __future__ import annotations

import logging

from app.logging_utils import log_event
from llm_synthesis.adapter import BaseLLMAdapter, LLMAdapterError
from llm_synthesis.prompt_builder import PricingPromptBuilder
from llm_synthesis.retry import LLMRetryExhaustedError, generate_with_retry
from llm_synthesis.schema import QueryRewriteOutput
from llm_synthesis.validator import LLMOutputValidationError

logger = logging.getLogger(__name__)


class QueryOptimizer:
    def __init__(
        self,
        adapter: BaseLLMAdapter,
        *,
        prompt_builder: PricingPromptBuilder | None = None,
    ) -> None:
        self._adapter = adapter
        self._prompt_builder = prompt_builder or PricingPromptBuilder()

    def optimize(self, query: str) -> str:
        """
        Return the rewritten query, or ``query`` itself when the rewrite
        fails or comes back empty. Never raises for adapter or output errors.
        """

        prompt = self._prompt_builder.build_query_optimization_prompt(query)
        try:
            output = generate_with_retry(self._adapter, prompt, model=QueryRewriteOutput)
        except (LLMAdapterError, LLMOutputValidationError, LLMRetryExhaustedError) as exc:
            log_event(
                logger,
                logging.WARNING,
                "query_optimization_failed",
                query=query,
                error=str(exc),
            )
            return query

        optimized = " ".join(output.optimized_query.strip("\"'").split())
        if not optimized:
            return query
        if optimized != query:
            log_event(
                logger,
                logging.INFO,
                "query_optimized",
                query=query,
                optimized_query=optimized,
            )
        return optimized
