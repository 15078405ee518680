"""
Event sink implementations.

The orchestrator produces ``ProgressEvent`` models; a sink consumes them.
Sinks never raise transport exceptions to the producer: a consumer that has
gone away surfaces as ``SessionCancelledError``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from fastapi import WebSocket, WebSocketDisconnect
from fastapi.websockets import WebSocketState

from app.domain.errors import SessionCancelledError
from app.schemas.price_analysis import ProgressEvent

logger = logging.getLogger(__name__)


class EventSink(ABC):
    """
    Consumer of progress events for exactly one analysis session.
    """

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """
        Whether the consumer still accepts events.
        """

    @abstractmethod
    async def send(self, event: ProgressEvent) -> None:
        """
        Deliver one event, in production order.
        """

    @abstractmethod
    async def close(self) -> None:
        """
        End the session from the producer side.
        """


class InMemoryEventSink(EventSink):
    """
    Records events in memory; used by tests and the non-streaming endpoint.
    """

    def __init__(self) -> None:
        self.events: list[ProgressEvent] = []
        self.closed = False
        self.disconnected = False
        self.writes_after_disconnect = 0

    @property
    def is_open(self) -> bool:
        return not self.closed and not self.disconnected

    def disconnect(self) -> None:
        """
        Simulate the consumer going away.
        """

        self.disconnected = True

    async def send(self, event: ProgressEvent) -> None:
        if self.disconnected:
            self.writes_after_disconnect += 1
            raise SessionCancelledError("Event consumer disconnected.")
        if self.closed:
            raise RuntimeError("Cannot send on a closed event sink.")
        self.events.append(event)

    async def close(self) -> None:
        self.closed = True

    @property
    def payloads(self) -> list[dict]:
        return [event.to_wire() for event in self.events]


class WebSocketEventSink(EventSink):
    """
    Sends events as JSON text frames over an accepted WebSocket.
    """

    def __init__(self, websocket: WebSocket) -> None:
        self._websocket = websocket
        self._closed = False

    @property
    def is_open(self) -> bool:
        return (
            not self._closed
            and self._websocket.client_state == WebSocketState.CONNECTED
            and self._websocket.application_state == WebSocketState.CONNECTED
        )

    def mark_disconnected(self) -> None:
        self._closed = True

    async def send(self, event: ProgressEvent) -> None:
        if not self.is_open:
            raise SessionCancelledError("WebSocket is no longer connected.")
        try:
            await self._websocket.send_json(event.to_wire())
        except (WebSocketDisconnect, RuntimeError) as exc:
            self._closed = True
            raise SessionCancelledError("WebSocket is no longer connected.") from exc

    async def close(self) -> None:
        if not self.is_open:
            self._closed = True
            return
        self._closed = True
        try:
            await self._websocket.close()
        except RuntimeError as exc:
            logger.debug("WebSocket already closed: %s", exc)
