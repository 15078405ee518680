"""
Event sinks decoupling the analysis pipeline from its transport.
"""

from app.streaming.sinks import EventSink, InMemoryEventSink, WebSocketEventSink

__all__ = ["EventSink", "InMemoryEventSink", "WebSocketEventSink"]
