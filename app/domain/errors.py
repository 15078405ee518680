"""
app/domain/errors.py

Price analysis pipeline exceptions.

Every subclass carries a single user-facing message and a failure code from
``app.failure_codes``; internals belong in ``details`` and in the logs.
"""

from __future__ import annotations

from typing import Any

from app import failure_codes


class PriceAnalysisError(Exception):
    """Base exception for price analysis failures surfaced to callers."""

    default_code = failure_codes.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(message)


class AnalysisInputError(PriceAnalysisError):
    """Raised when caller input is malformed, before any I/O begins."""

    default_code = failure_codes.VALIDATION_ERROR


class ScrapeError(PriceAnalysisError):
    """Raised when every marketplace source failed or no listings came back."""

    default_code = failure_codes.SCRAPE_FAILED

    def __init__(
        self,
        message: str,
        *,
        source_errors: dict[str, str] | None = None,
        code: str | None = None,
    ) -> None:
        self.source_errors = dict(source_errors or {})
        super().__init__(message, code=code, details={"sources": self.source_errors})


class EmptyInputError(PriceAnalysisError):
    """Raised when statistics are requested over zero valid prices."""

    default_code = failure_codes.NO_RESULTS


class GenerationError(PriceAnalysisError):
    """Raised when the text-generation step fails or returns unusable output."""

    default_code = failure_codes.GENERATION_FAILED


class StepTimeoutError(PriceAnalysisError):
    """Raised when a pipeline step exceeds its configured time bound."""

    default_code = failure_codes.STEP_TIMEOUT


class ScrapeTimeoutError(StepTimeoutError, ScrapeError):
    """The scrape step did not finish within its bound."""


class GenerationTimeoutError(StepTimeoutError, GenerationError):
    """The text-generation step did not finish within its bound."""


class SessionCancelledError(Exception):
    """Raised inside a session once its event consumer has gone away."""
