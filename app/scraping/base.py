"""
Base marketplace source abstraction.
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Any

import requests

from app.config import MarketplaceScrapingSettings
from app.logging_utils import log_event
from app.scraping.config.models import MarketplaceSourceConfig
from app.scraping.parsing.listing_parser import ListingParseError, parse_listing
from app.scraping.rate_limiter import DomainRateLimiter
from app.scraping.types import SourceFetchResult

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class SourceFetchError(RuntimeError):
    """
    Raised when a marketplace source cannot produce raw listings.
    """


class MarketplaceSource(ABC):
    """
    Base class implementing fetch mechanics and listing normalization for one
    marketplace source.
    """

    def __init__(
        self,
        *,
        config: MarketplaceSourceConfig,
        settings: MarketplaceScrapingSettings,
        session: requests.Session,
        rate_limiter: DomainRateLimiter,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self.config = config
        self.settings = settings
        self.session = session
        self.rate_limiter = rate_limiter
        self.cancel_event = cancel_event
        self.request_headers = {"User-Agent": settings.user_agent, **config.headers}

    @property
    def name(self) -> str:
        return self.config.name

    def fetch(self, *, query: str, limit: int) -> SourceFetchResult:
        """
        Fetch up to ``limit`` listings for ``query`` from this source.

        Items failing boundary validation are dropped and counted; items with
        an unparseable price are kept.
        """

        raw_items = self.fetch_raw_items(query=query, limit=limit)
        listings = []
        dropped = 0
        for item in raw_items:
            if len(listings) >= limit:
                break
            try:
                listings.append(parse_listing(item, source=self.name))
            except ListingParseError as exc:
                dropped += 1
                log_event(
                    logger,
                    logging.DEBUG,
                    "listing_dropped",
                    source=self.name,
                    errors=exc.errors,
                )

        log_event(
            logger,
            logging.INFO,
            "source_fetch_completed",
            source=self.name,
            listings=len(listings),
            dropped_items=dropped,
        )
        return SourceFetchResult(source=self.name, listings=listings, dropped_items=dropped)

    @abstractmethod
    def fetch_raw_items(self, *, query: str, limit: int) -> list[Any]:
        """
        Return raw listing items for ``query`` as produced by the source.
        """

    def _request_with_retry(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
    ) -> requests.Response:
        last_error: Exception | None = None

        for attempt in range(self.settings.max_retries + 1):
            self._raise_if_cancelled()
            self.rate_limiter.wait(
                url=url,
                rate_limit_per_second=self.config.rate_limit_per_second,
                cancel_event=self.cancel_event,
            )
            self._raise_if_cancelled()
            try:
                response = self.session.get(
                    url,
                    params=params,
                    headers=self.request_headers,
                    timeout=self.settings.timeout_seconds,
                    allow_redirects=True,
                )
                if response.status_code in RETRYABLE_STATUS_CODES:
                    raise requests.HTTPError(
                        f"Retryable status={response.status_code}",
                        response=response,
                    )
                response.raise_for_status()
                return response
            except (requests.Timeout, requests.ConnectionError, requests.HTTPError) as exc:
                last_error = exc
                if isinstance(exc, requests.HTTPError):
                    status_code = exc.response.status_code if exc.response is not None else None
                    if status_code not in RETRYABLE_STATUS_CODES:
                        raise SourceFetchError(
                            f"{self.name} returned HTTP {status_code}"
                        ) from exc

            if attempt >= self.settings.max_retries:
                break

            backoff_seconds = self.settings.backoff_initial_seconds * (
                self.settings.backoff_multiplier**attempt
            )
            log_event(
                logger,
                logging.WARNING,
                "source_request_retry",
                source=self.name,
                attempt=attempt + 1,
                max_retries=self.settings.max_retries,
                wait_seconds=backoff_seconds,
                error=str(last_error),
            )
            if self.cancel_event is not None:
                self.cancel_event.wait(backoff_seconds)
            else:
                time.sleep(backoff_seconds)

        raise SourceFetchError(f"{self.name} request failed: {last_error}") from last_error

    def _raise_if_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise SourceFetchError(f"{self.name} fetch cancelled")
