"""Streaming client for the realtime and delayed WebSocket feeds."""

from .channels import Channel, EventType, channel, parse_channel
from .events import Aggregate, FrameKind, Quote, Trade, to_market_event
from .handler import BaseStreamHandler, StreamHandler
from .session import (
    DELAYED_URL,
    REALTIME_URL,
    SessionState,
    StreamSession,
    resolve_url,
    start_session,
)

__all__ = [
    "Channel",
    "EventType",
    "channel",
    "parse_channel",
    "Aggregate",
    "FrameKind",
    "Quote",
    "Trade",
    "to_market_event",
    "BaseStreamHandler",
    "StreamHandler",
    "DELAYED_URL",
    "REALTIME_URL",
    "SessionState",
    "StreamSession",
    "resolve_url",
    "start_session",
]
