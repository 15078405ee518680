"""Re-ask the model when its output is malformed; transport errors propagate."""

import logging
from typing import Optional, Type, TypeVar

from pydantic import BaseModel

from llm_synthesis.adapter import BaseLLMAdapter
from llm_synthesis.schema import RecommendationOutput
from llm_synthesis.validator import LLMOutputValidationError, validate_llm_output

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class LLMRetryExhaustedError(Exception):
    """Raised when every attempt returned malformed output."""

    def __init__(self, attempts: int, last_error: LLMOutputValidationError) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"LLM output still invalid after {attempts} attempt(s): {last_error}")


def generate_with_retry(
    adapter: BaseLLMAdapter,
    prompt: str,
    *,
    model: Type[ModelT] = RecommendationOutput,
    system: Optional[str] = None,
    max_retries: int = 0,
) -> ModelT:
    """
    Call ``adapter`` and validate the reply against ``model``, making up to
    ``max_retries`` extra calls while the reply is malformed.

    ``LLMAdapterError`` from the adapter is never retried.
    """
    attempts = 1 + max(0, max_retries)
    last_error: Optional[LLMOutputValidationError] = None

    for attempt in range(1, attempts + 1):
        raw = adapter.generate(prompt, system=system)
        try:
            return validate_llm_output(raw, model)
        except LLMOutputValidationError as exc:
            last_error = exc
            logger.warning(
                "LLM output rejected (attempt %d/%d, %s): %s",
                attempt,
                attempts,
                exc.stage,
                "; ".join(exc.errors),
            )

    raise LLMRetryExhaustedError(attempts, last_error)
