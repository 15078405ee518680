"""
app/services/price_analysis_orchestrator.py

Per-session state machine driving one price analysis and reporting its
progress to an ``EventSink``.

States
------
idle -> connected -> optimizing -> scraping -> computing -> generating -> complete
any non-terminal state -> failed | cancelled

Each orchestrator serves exactly one request. Blocking steps (marketplace
scrape, LLM calls) run in worker threads with an upper time bound; the
statistics step runs inline.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Protocol

from app.config import PriceAnalysisSettings
from app.domain.errors import (
    GenerationTimeoutError,
    PriceAnalysisError,
    ScrapeTimeoutError,
    SessionCancelledError,
)
from app.domain.price_analysis import (
    AnalysisRequest,
    AnalysisResult,
    PriceStatistics,
    Recommendation,
    valid_prices,
)
from app.logging_utils import log_event
from app.schemas.price_analysis import (
    AnalysisResultResponse,
    CompleteEvent,
    ConnectedEvent,
    ErrorEvent,
    ProgressEvent,
    ProgressUpdateEvent,
)
from app.scraping.types import ScrapeOutcome
from app.services.statistics_service import compute_statistics
from app.streaming.sinks import EventSink

logger = logging.getLogger(__name__)

_STEP_POLL_SECONDS = 0.1
_UNEXPECTED_FAILURE_MESSAGE = "Price analysis failed unexpectedly. Please try again later."


class SessionState(str, Enum):
    IDLE = "idle"
    CONNECTED = "connected"
    OPTIMIZING = "optimizing"
    SCRAPING = "scraping"
    COMPUTING = "computing"
    GENERATING = "generating"
    COMPLETE = "complete"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATES = frozenset({SessionState.COMPLETE, SessionState.FAILED, SessionState.CANCELLED})


class ListingScraper(Protocol):
    def fetch_listings_detailed(
        self,
        query: str,
        limit: int,
        *,
        cancel_event: threading.Event | None = None,
    ) -> ScrapeOutcome: ...


class RecommendationSource(Protocol):
    def generate_recommendation(
        self,
        statistics: PriceStatistics,
        user_price: float | None = None,
        *,
        query: str = "",
        listings: Any = (),
    ) -> Recommendation: ...


class QueryRewriter(Protocol):
    def optimize(self, query: str) -> str: ...


@dataclass(frozen=True)
class AnalysisPipeline:
    """
    Collaborators shared by every session. Holds no per-session state.
    """

    scraper: ListingScraper
    generator: RecommendationSource
    settings: PriceAnalysisSettings = field(default_factory=PriceAnalysisSettings)
    query_optimizer: QueryRewriter | None = None


@dataclass
class AnalysisSession:
    """
    Mutable context owned by exactly one orchestrator.
    """

    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    state: SessionState = SessionState.IDLE
    last_progress: int = 0
    cancel_event: threading.Event = field(default_factory=threading.Event)


class PriceAnalysisOrchestrator:
    """
    Runs query optimisation, scrape, statistics and generation for one
    request, emitting ``ProgressEvent``s in production order.
    """

    def __init__(
        self,
        sink: EventSink,
        pipeline: AnalysisPipeline,
        *,
        session: AnalysisSession | None = None,
    ) -> None:
        self._sink = sink
        self._pipeline = pipeline
        self.session = session or AnalysisSession()
        self.failure: PriceAnalysisError | None = None
        self._run_started = False

    @property
    def state(self) -> SessionState:
        return self.session.state

    async def open(self) -> None:
        """
        Announce the session to the consumer.
        """

        if self.state is not SessionState.IDLE:
            raise RuntimeError(f"Cannot open a session in state '{self.state.value}'.")
        self._transition(SessionState.CONNECTED)
        try:
            await self._emit(ConnectedEvent())
        except SessionCancelledError:
            self._mark_cancelled()

    async def run(self, request: AnalysisRequest) -> AnalysisResult | None:
        """
        Execute the pipeline for ``request``.

        Returns the result on success and ``None`` when the session failed or
        was cancelled; the failure is kept on ``self.failure``.
        """

        if self._run_started:
            raise RuntimeError("An orchestrator serves exactly one request.")
        self._run_started = True

        if self.state is SessionState.IDLE:
            await self.open()
        if self.state in TERMINAL_STATES:
            return None

        log_event(
            logger,
            logging.INFO,
            "analysis_started",
            session_id=self.session.session_id,
            query=request.query,
            limit=request.limit,
            has_user_price=request.user_price is not None,
        )
        try:
            result = await self._execute(request)
            await self._emit(CompleteEvent(data=AnalysisResultResponse.from_domain(result)))
        except SessionCancelledError:
            self._mark_cancelled()
            return None
        except asyncio.CancelledError:
            self._mark_cancelled()
            raise
        except PriceAnalysisError as exc:
            await self.fail(exc)
            return None
        except Exception as exc:
            logger.exception(
                "Unexpected failure in analysis session %s: %s",
                self.session.session_id,
                exc,
            )
            await self.fail(PriceAnalysisError(_UNEXPECTED_FAILURE_MESSAGE))
            return None

        self._transition(SessionState.COMPLETE)
        log_event(
            logger,
            logging.INFO,
            "analysis_completed",
            session_id=self.session.session_id,
            products=len(result.products),
            valid_prices=result.statistics.total_products,
        )
        await self._sink.close()
        return result

    async def fail(self, error: PriceAnalysisError) -> None:
        """
        Move to ``failed``, emit one ``error`` event and close the sink.
        """

        if self.state in TERMINAL_STATES:
            return
        self.failure = error
        self._transition(SessionState.FAILED)
        log_event(
            logger,
            logging.WARNING,
            "analysis_failed",
            session_id=self.session.session_id,
            code=error.code,
            error=error.message,
            details=error.details or None,
        )
        try:
            await self._emit(ErrorEvent(message=error.message, code=error.code))
        except SessionCancelledError:
            return
        await self._sink.close()

    async def _execute(self, request: AnalysisRequest) -> AnalysisResult:
        settings = self._pipeline.settings
        search_query = request.query

        optimizer = self._pipeline.query_optimizer
        if optimizer is not None and settings.query_optimization_enabled:
            self._transition(SessionState.OPTIMIZING)
            await self._progress(10, "Optimizing search query...")
            search_query = await self._optimize_query(optimizer, request.query)

        self._transition(SessionState.SCRAPING)
        await self._progress(25, f"Fetching listings for '{search_query}' from marketplaces...")
        outcome: ScrapeOutcome = await self._run_blocking(
            lambda: self._pipeline.scraper.fetch_listings_detailed(
                search_query,
                request.limit,
                cancel_event=self.session.cancel_event,
            ),
            timeout_seconds=settings.scrape_timeout_seconds,
            timeout_error=ScrapeTimeoutError("Fetching marketplace listings timed out."),
        )
        await self._progress(
            50,
            f"Fetched {len(outcome.listings)} listings from "
            f"{len(outcome.succeeded_sources)} of {outcome.attempted_sources} sources",
        )

        self._transition(SessionState.COMPUTING)
        await self._progress(55, "Computing price statistics...")
        statistics = compute_statistics(valid_prices(outcome.listings))

        self._transition(SessionState.GENERATING)
        await self._progress(75, "Generating pricing recommendation...")
        recommendation: Recommendation = await self._run_blocking(
            lambda: self._pipeline.generator.generate_recommendation(
                statistics,
                request.user_price,
                query=search_query,
                listings=outcome.listings,
            ),
            timeout_seconds=settings.generation_timeout_seconds,
            timeout_error=GenerationTimeoutError("Generating the recommendation timed out."),
        )

        await self._progress(90, "Finalizing analysis...", step="finalizing")
        result = AnalysisResult(
            query=request.query,
            optimized_query=search_query if search_query != request.query else None,
            products=list(outcome.listings),
            statistics=statistics,
            analysis=recommendation,
        )
        await self._progress(100, "Analysis complete", step="finalizing")
        return result

    async def _optimize_query(self, optimizer: QueryRewriter, query: str) -> str:
        try:
            return await self._run_blocking(
                lambda: optimizer.optimize(query),
                timeout_seconds=self._pipeline.settings.generation_timeout_seconds,
                timeout_error=GenerationTimeoutError("Query optimization timed out."),
                cancel_on_timeout=False,
            )
        except GenerationTimeoutError as exc:
            log_event(
                logger,
                logging.WARNING,
                "query_optimization_skipped",
                session_id=self.session.session_id,
                error=exc.message,
            )
            return query

    async def _run_blocking(
        self,
        func: Callable[[], Any],
        *,
        timeout_seconds: float,
        timeout_error: PriceAnalysisError,
        cancel_on_timeout: bool = True,
    ) -> Any:
        """
        Run ``func`` in a worker thread, watching for consumer disconnection
        and enforcing ``timeout_seconds``.

        A timed-out step sets the session cancel event unless
        ``cancel_on_timeout`` is false, as for the best-effort query rewrite.
        """

        worker = asyncio.ensure_future(asyncio.to_thread(func))
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout_seconds
        try:
            while True:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    if cancel_on_timeout:
                        self.session.cancel_event.set()
                    raise timeout_error
                done, _ = await asyncio.wait({worker}, timeout=min(remaining, _STEP_POLL_SECONDS))
                if worker in done:
                    return worker.result()
                if not self._sink.is_open:
                    raise SessionCancelledError("Event consumer disconnected.")
        finally:
            if not worker.done():
                worker.cancel()

    async def _progress(self, progress: int, message: str, *, step: str | None = None) -> None:
        clamped = max(self.session.last_progress, min(100, progress))
        self.session.last_progress = clamped
        await self._emit(
            ProgressUpdateEvent(progress=clamped, message=message, step=step or self.state.value)
        )

    async def _emit(self, event: ProgressEvent) -> None:
        if not self._sink.is_open:
            raise SessionCancelledError("Event consumer disconnected.")
        await self._sink.send(event)

    def _transition(self, state: SessionState) -> None:
        if self.state in TERMINAL_STATES:
            raise RuntimeError(
                f"Session {self.session.session_id} is already {self.state.value}."
            )
        log_event(
            logger,
            logging.DEBUG,
            "session_state_changed",
            session_id=self.session.session_id,
            previous=self.state.value,
            state=state.value,
        )
        self.session.state = state

    def _mark_cancelled(self) -> None:
        self.session.cancel_event.set()
        if self.state in TERMINAL_STATES:
            return
        self.session.state = SessionState.CANCELLED
        log_event(
            logger,
            logging.INFO,
            "analysis_cancelled",
            session_id=self.session.session_id,
            last_progress=self.session.last_progress,
        )
