"""
app/api/routers/price_analysis.py

Price analysis endpoints: non-streaming GET/POST and the WebSocket stream.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from app.api.responses import error_response
from app.domain.errors import AnalysisInputError, PriceAnalysisError
from app.domain.price_analysis import AnalysisRequest
from app.logging_utils import log_event
from app.schemas.price_analysis import (
    AnalysisRequestBody,
    AnalysisResultResponse,
    PriceAnalysisEnvelope,
)
from app.services.price_analysis_orchestrator import PriceAnalysisOrchestrator
from app.services.price_analysis_service import PriceAnalysisService, get_price_analysis_service
from app.streaming.sinks import WebSocketEventSink

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/price-analysis", tags=["price-analysis"])

START_ANALYSIS_MESSAGE = "start-analysis"


async def _analyze(
    service: PriceAnalysisService,
    *,
    query: object,
    limit: object,
    user_price: object,
) -> PriceAnalysisEnvelope | JSONResponse:
    try:
        request = service.build_request(query=query, limit=limit, user_price=user_price)
        result = await service.analyze(request)
    except PriceAnalysisError as exc:
        return error_response(exc)

    return PriceAnalysisEnvelope(
        success=True,
        message="Price analysis completed successfully",
        data=AnalysisResultResponse.from_domain(result),
    )


@router.get("", response_model=PriceAnalysisEnvelope)
async def analyze_prices(
    query: str | None = Query(default=None, description="Product search query"),
    limit: int | None = Query(default=None, description="Maximum listings across all sources"),
    user_price: float | None = Query(
        default=None,
        alias="userPrice",
        description="Optional target price in Rupiah",
    ),
    service: PriceAnalysisService = Depends(get_price_analysis_service),
) -> PriceAnalysisEnvelope | JSONResponse:
    """
    Scrape marketplaces, compute statistics and generate a recommendation.
    """

    return await _analyze(service, query=query, limit=limit, user_price=user_price)


@router.post("", response_model=PriceAnalysisEnvelope)
async def analyze_prices_from_body(
    body: AnalysisRequestBody,
    service: PriceAnalysisService = Depends(get_price_analysis_service),
) -> PriceAnalysisEnvelope | JSONResponse:
    return await _analyze(service, query=body.query, limit=body.limit, user_price=body.user_price)


def _parse_start_message(service: PriceAnalysisService, raw_message: str) -> AnalysisRequest:
    try:
        payload = json.loads(raw_message)
    except json.JSONDecodeError as exc:
        raise AnalysisInputError("Message must be valid JSON.") from exc
    if not isinstance(payload, dict):
        raise AnalysisInputError("Message must be a JSON object.")
    if payload.get("type") != START_ANALYSIS_MESSAGE:
        raise AnalysisInputError(
            f"Unknown message type. Expected '{START_ANALYSIS_MESSAGE}'."
        )
    return service.build_request(
        query=payload.get("query"),
        limit=payload.get("limit"),
        user_price=payload.get("userPrice"),
    )


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


async def _run_until_disconnect(
    websocket: WebSocket,
    sink: WebSocketEventSink,
    orchestrator: PriceAnalysisOrchestrator,
    request: AnalysisRequest,
) -> None:
    run_task = asyncio.create_task(orchestrator.run(request))
    disconnect_task = asyncio.create_task(_wait_for_disconnect(websocket))
    try:
        done, _ = await asyncio.wait(
            {run_task, disconnect_task},
            return_when=asyncio.FIRST_COMPLETED,
        )
    except asyncio.CancelledError:
        sink.mark_disconnected()
        run_task.cancel()
        disconnect_task.cancel()
        raise

    if run_task in done:
        disconnect_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await disconnect_task
        run_task.result()
        return

    sink.mark_disconnected()
    run_task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await run_task


@router.websocket("/stream")
async def stream_price_analysis(
    websocket: WebSocket,
    service: PriceAnalysisService = Depends(get_price_analysis_service),
) -> None:
    """
    Streaming analysis: ``connected``, then progress events and exactly one
    ``complete`` or ``error`` event after a ``start-analysis`` message.
    """

    await websocket.accept()
    sink = WebSocketEventSink(websocket)
    orchestrator = service.create_orchestrator(sink)
    session_id = orchestrator.session.session_id
    log_event(logger, logging.INFO, "websocket_session_opened", session_id=session_id)

    await orchestrator.open()
    try:
        raw_message = await websocket.receive_text()
    except WebSocketDisconnect:
        sink.mark_disconnected()
        log_event(logger, logging.INFO, "websocket_session_abandoned", session_id=session_id)
        return

    try:
        request = _parse_start_message(service, raw_message)
    except AnalysisInputError as exc:
        await orchestrator.fail(exc)
        return

    await _run_until_disconnect(websocket, sink, orchestrator, request)
    log_event(
        logger,
        logging.INFO,
        "websocket_session_closed",
        session_id=session_id,
        state=orchestrator.state.value,
    )
