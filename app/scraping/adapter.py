"""
Marketplace scraper adapter.

Fans one query out to every enabled marketplace source, tolerates partial
source failure and returns the combined listings in source order.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Sequence
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait

import requests

from app import failure_codes
from app.config import MarketplaceScrapingSettings
from app.domain.errors import ScrapeError, SessionCancelledError
from app.domain.price_analysis import ListingRecord
from app.logging_utils import log_event
from app.scraping.config import MarketplaceSourceConfig, load_marketplace_sources
from app.scraping.rate_limiter import DomainRateLimiter
from app.scraping.registry import SourceRegistry
from app.scraping.types import ScrapeOutcome, SourceFetchResult

logger = logging.getLogger(__name__)

_POLL_INTERVAL_SECONDS = 0.25


def allocate_quotas(limit: int, source_count: int) -> list[int]:
    """
    Split ``limit`` across sources so the quotas sum to exactly ``limit``.

    The remainder goes to the first sources; sources may get a zero quota
    when ``limit < source_count``.
    """

    if source_count <= 0:
        return []
    base, remainder = divmod(limit, source_count)
    return [base + (1 if index < remainder else 0) for index in range(source_count)]


class MarketplaceScraperAdapter:
    """
    Fetches listings for a query from the configured marketplace sources.

    Holds configuration only; every call builds its own sessions, rate
    limiter and worker pool.
    """

    def __init__(
        self,
        *,
        settings: MarketplaceScrapingSettings,
        sources: Sequence[MarketplaceSourceConfig] | None = None,
        registry: SourceRegistry | None = None,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ) -> None:
        self._settings = settings
        self._sources = list(sources) if sources is not None else None
        self._registry = registry or SourceRegistry()
        self._session_factory = session_factory

    def fetch_listings(
        self,
        query: str,
        limit: int,
        *,
        cancel_event: threading.Event | None = None,
    ) -> list[ListingRecord]:
        """
        Return up to ``limit`` listings across all sources combined.

        Raises:
            ScrapeError: when every source failed or no listings came back.
        """

        return self.fetch_listings_detailed(query, limit, cancel_event=cancel_event).listings

    def fetch_listings_detailed(
        self,
        query: str,
        limit: int,
        *,
        cancel_event: threading.Event | None = None,
    ) -> ScrapeOutcome:
        if limit <= 0:
            raise ValueError("limit must be a positive integer.")

        configs = self._enabled_sources()
        if not configs:
            raise ScrapeError("No marketplace sources are configured.")

        quotas = allocate_quotas(limit, len(configs))
        planned = [(config, quota) for config, quota in zip(configs, quotas) if quota > 0]
        rate_limiter = DomainRateLimiter(
            default_rate_limit_per_second=self._settings.rate_limit_per_second
        )

        results: dict[str, SourceFetchResult] = {}
        source_errors: dict[str, str] = {}
        executor = ThreadPoolExecutor(
            max_workers=min(self._settings.max_workers, len(planned)),
            thread_name_prefix="marketplace-scrape",
        )
        try:
            futures: dict[Future[SourceFetchResult], MarketplaceSourceConfig] = {
                executor.submit(
                    self._fetch_one,
                    config=config,
                    query=query,
                    quota=quota,
                    rate_limiter=rate_limiter,
                    cancel_event=cancel_event,
                ): config
                for config, quota in planned
            }
            pending = set(futures)
            deadline = time.monotonic() + self._source_deadline_seconds()
            while pending:
                if cancel_event is not None and cancel_event.is_set():
                    for future in pending:
                        future.cancel()
                    raise SessionCancelledError("Scrape cancelled by caller.")
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                done, pending = wait(
                    pending,
                    timeout=min(remaining, _POLL_INTERVAL_SECONDS),
                    return_when=FIRST_COMPLETED,
                )
                for future in done:
                    config = futures[future]
                    try:
                        results[config.name] = future.result()
                    except Exception as exc:
                        source_errors[config.name] = str(exc) or type(exc).__name__
                        log_event(
                            logger,
                            logging.WARNING,
                            "source_fetch_failed",
                            source=config.name,
                            error=source_errors[config.name],
                        )

            for future in pending:
                config = futures[future]
                future.cancel()
                source_errors[config.name] = (
                    f"{config.name} timed out after {self._source_deadline_seconds():.0f}s"
                )
                log_event(
                    logger,
                    logging.WARNING,
                    "source_fetch_timed_out",
                    source=config.name,
                )
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        return self._combine(
            query=query,
            limit=limit,
            planned=planned,
            results=results,
            source_errors=source_errors,
        )

    def _fetch_one(
        self,
        *,
        config: MarketplaceSourceConfig,
        query: str,
        quota: int,
        rate_limiter: DomainRateLimiter,
        cancel_event: threading.Event | None,
    ) -> SourceFetchResult:
        session = self._session_factory()
        try:
            source = self._registry.create_source(
                config=config,
                settings=self._settings,
                session=session,
                rate_limiter=rate_limiter,
                cancel_event=cancel_event,
            )
            return source.fetch(query=query, limit=quota)
        finally:
            session.close()

    def _combine(
        self,
        *,
        query: str,
        limit: int,
        planned: list[tuple[MarketplaceSourceConfig, int]],
        results: dict[str, SourceFetchResult],
        source_errors: dict[str, str],
    ) -> ScrapeOutcome:
        if not results:
            log_event(
                logger,
                logging.ERROR,
                "marketplace_scrape_failed",
                query=query,
                source_errors=source_errors,
            )
            raise ScrapeError(
                "Failed to fetch listings from every marketplace source.",
                source_errors=source_errors,
            )

        listings: list[ListingRecord] = []
        dropped = 0
        succeeded: list[str] = []
        for config, _ in planned:
            result = results.get(config.name)
            if result is None:
                continue
            succeeded.append(config.name)
            listings.extend(result.listings)
            dropped += result.dropped_items
        listings = listings[:limit]

        if not listings:
            raise ScrapeError(
                f"No listings found for '{query}'.",
                source_errors=source_errors,
                code=failure_codes.NO_RESULTS,
            )

        outcome = ScrapeOutcome(
            listings=listings,
            succeeded_sources=succeeded,
            source_errors=source_errors,
            dropped_items=dropped,
        )
        log_event(
            logger,
            logging.INFO,
            "marketplace_scrape_completed",
            query=query,
            listings=len(listings),
            valid_prices=outcome.valid_price_count,
            succeeded_sources=succeeded,
            failed_sources=sorted(source_errors),
            dropped_items=dropped,
        )
        return outcome

    def _enabled_sources(self) -> list[MarketplaceSourceConfig]:
        sources = self._sources
        if sources is None:
            sources = load_marketplace_sources(config_path=self._settings.sources_config_path)
        return [config for config in sources if config.enabled]

    def _source_deadline_seconds(self) -> float:
        attempts = self._settings.max_retries + 1
        backoff = sum(
            self._settings.backoff_initial_seconds * (self._settings.backoff_multiplier**attempt)
            for attempt in range(self._settings.max_retries)
        )
        return self._settings.timeout_seconds * attempts + backoff
