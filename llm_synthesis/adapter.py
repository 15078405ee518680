"""LLM adapters for pricing text generation.

Provides a base interface and concrete adapters for OpenAI-compatible
APIs and a deterministic mock for testing.
"""

import json
import os
from abc import ABC, abstractmethod
from typing import Optional


class LLMAdapterError(RuntimeError):
    """Raised when the underlying text-generation service call fails."""


class BaseLLMAdapter(ABC):
    """Abstract base for all LLM adapters."""

    @abstractmethod
    def generate(self, prompt: str, *, system: Optional[str] = None) -> str:
        """Send a prompt to the LLM and return the raw response text.

        Args:
            prompt: The fully formatted prompt string.
            system: Optional system message.

        Returns:
            Raw string response from the model (expected to be JSON).

        Raises:
            LLMAdapterError: If the service is unreachable or errors out.
        """


class OpenAILLMAdapter(BaseLLMAdapter):
    """Adapter for OpenAI-compatible chat completion APIs.

    Works with any provider exposing the chat completions endpoint
    (OpenAI, NVIDIA, GLM, ...) through ``base_url``.
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        max_tokens: int = 1000,
        temperature: float = 0.7,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_seconds: float = 45.0,
    ) -> None:
        """Initialise the OpenAI adapter.

        Args:
            model: Model identifier.
            max_tokens: Maximum tokens in the completion.
            temperature: Sampling temperature.
            api_key: API key. Falls back to OPENAI_API_KEY env var.
            base_url: Optional base URL for OpenAI-compatible endpoints.
            timeout_seconds: Per-request timeout enforced by the client.
        """
        try:
            from openai import OpenAI, OpenAIError  # type: ignore[import-untyped]
        except ImportError as exc:
            raise ImportError(
                "openai package is required for OpenAILLMAdapter. "
                "Install it with: pip install openai"
            ) from exc

        resolved_key = api_key or os.environ.get("OPENAI_API_KEY", "")
        client_kwargs: dict = {
            "api_key": resolved_key,
            "timeout": timeout_seconds,
            "max_retries": 0,
        }
        if base_url:
            client_kwargs["base_url"] = base_url

        self._client = OpenAI(**client_kwargs)
        self._error_type = OpenAIError
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature

    def generate(self, prompt: str, *, system: Optional[str] = None) -> str:
        """Call the chat completion API.

        Args:
            prompt: The fully formatted prompt string.
            system: Optional system message prepended to the conversation.

        Returns:
            Raw string content from the model response.
        """
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        try:
            response = self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                stream=False,
            )
        except self._error_type as exc:
            raise LLMAdapterError(f"Text generation request failed: {exc}") from exc

        if not response.choices:
            raise LLMAdapterError("Text generation returned no choices.")
        return response.choices[0].message.content or ""


# ---------------------------------------------------------------------------
# Fixed mock response used for local testing.
# ---------------------------------------------------------------------------
_MOCK_RESPONSE = {
    "recommendation": "Price close to the market median to stay competitive.",
    "insights": [
        "Mock insight for testing purposes.",
        "Listings cluster around the median price.",
        "Seller reputation and ratings differentiate similar offers.",
    ],
    "suggested_price": None,
}

_MOCK_RESPONSE_JSON = json.dumps(_MOCK_RESPONSE, indent=2)


class MockLLMAdapter(BaseLLMAdapter):
    """Deterministic adapter that returns a fixed response.

    Used for local testing and CI pipelines where no LLM API
    is available.
    """

    def __init__(self, response: Optional[str] = None) -> None:
        self._response = response if response is not None else _MOCK_RESPONSE_JSON

    def generate(self, prompt: str, *, system: Optional[str] = None) -> str:
        """Return the fixed response regardless of input.

        Args:
            prompt: Ignored - present only to satisfy the interface.
            system: Ignored.

        Returns:
            The configured response string.
        """
        return self._response
