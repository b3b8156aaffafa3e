"""Decoding and classification of inbound stream frames.

Frames arrive as a JSON object or a JSON array of objects. Status objects
(``{"ev": "status", ...}``) drive the session handshake; everything else is a
market data event and is handed to the user handler untouched. Typed views
over those maps are available through :func:`to_market_event` for handlers
that prefer attributes to raw keys.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

STATUS_EVENT = "status"
STATUS_CONNECTED = "connected"
STATUS_AUTH_SUCCESS = "auth_success"


class FrameKind(str, Enum):
    CONNECTION_STATUS = "connection_status"
    AUTH_SUCCESS = "auth_success"
    STATUS = "status"
    MARKET_DATA = "market_data"


@dataclass
class StatusEvent:
    """A status message that carries a human readable explanation."""

    status: str
    message: str


def decode_frame(raw: Union[str, bytes]) -> Optional[List[Any]]:
    """Parse a text frame into a batch of elements.

    Returns ``None`` when the frame is not valid JSON. A lone object becomes a
    one element batch; an array keeps its order.
    """

    try:
        decoded = json.loads(raw)
    except (TypeError, ValueError):
        return None
    if isinstance(decoded, list):
        return decoded
    return [decoded]


def classify(element: Any) -> FrameKind:
    if isinstance(element, dict) and element.get("ev") == STATUS_EVENT:
        status = element.get("status")
        if status == STATUS_CONNECTED:
            return FrameKind.CONNECTION_STATUS
        if status == STATUS_AUTH_SUCCESS:
            return FrameKind.AUTH_SUCCESS
        if "status" in element and "message" in element:
            return FrameKind.STATUS
    return FrameKind.MARKET_DATA


def encode_command(action: str, params: str) -> str:
    """Serialize an outbound ``auth``/``subscribe``/``unsubscribe`` command."""

    return json.dumps({"action": action, "params": params}, separators=(",", ":"))


# --- Typed views ----------------------------------------------------------


@dataclass
class Trade:
    symbol: str
    price: Optional[float]
    size: Optional[float]
    timestamp: Optional[datetime]
    exchange: Optional[int] = None
    trade_id: Optional[str] = None
    conditions: List[int] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Quote:
    symbol: str
    bid_price: Optional[float]
    bid_size: Optional[float]
    ask_price: Optional[float]
    ask_size: Optional[float]
    timestamp: Optional[datetime]
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Aggregate:
    symbol: str
    open: Optional[float]
    high: Optional[float]
    low: Optional[float]
    close: Optional[float]
    volume: Optional[float]
    vwap: Optional[float]
    start: Optional[datetime]
    end: Optional[datetime]
    raw: Dict[str, Any] = field(default_factory=dict)


MarketEvent = Union[Trade, Quote, Aggregate]

_TRADE_CODES = {"T", "XT"}
_QUOTE_CODES = {"Q", "XQ", "C"}
_AGGREGATE_CODES = {"AM", "A", "XA", "XAS", "CA", "CAS"}


def to_market_event(message: Dict[str, Any]) -> Optional[MarketEvent]:
    """Build a typed view of a market data map, or ``None`` for unknown codes."""

    code = message.get("ev")
    symbol = str(message.get("sym") or message.get("pair") or "")
    if code in _TRADE_CODES:
        return Trade(
            symbol=symbol,
            price=_safe_float(message.get("p")),
            size=_safe_float(message.get("s")),
            timestamp=_parse_timestamp(message.get("t")),
            exchange=_safe_int(message.get("x")),
            trade_id=str(message["i"]) if message.get("i") is not None else None,
            conditions=list(message.get("c") or []),
            raw=message,
        )
    if code in _QUOTE_CODES:
        if code == "C":
            # forex quotes carry the pair under "p" and no sizes
            return Quote(
                symbol=symbol or str(message.get("p") or ""),
                bid_price=_safe_float(message.get("b")),
                bid_size=None,
                ask_price=_safe_float(message.get("a")),
                ask_size=None,
                timestamp=_parse_timestamp(message.get("t")),
                raw=message,
            )
        return Quote(
            symbol=symbol,
            bid_price=_safe_float(message.get("bp")),
            bid_size=_safe_float(message.get("bs")),
            ask_price=_safe_float(message.get("ap")),
            ask_size=_safe_float(message.get("as")),
            timestamp=_parse_timestamp(message.get("t")),
            raw=message,
        )
    if code in _AGGREGATE_CODES:
        return Aggregate(
            symbol=symbol,
            open=_safe_float(message.get("o")),
            high=_safe_float(message.get("h")),
            low=_safe_float(message.get("l")),
            close=_safe_float(message.get("c")),
            volume=_safe_float(message.get("v")),
            vwap=_safe_float(message.get("vw")),
            start=_parse_timestamp(message.get("s")),
            end=_parse_timestamp(message.get("e")),
            raw=message,
        )
    return None


def _parse_timestamp(value: Any) -> Optional[datetime]:
    """Feed timestamps are Unix epochs, usually in milliseconds."""

    numeric = _safe_float(value)
    if numeric is None:
        return None
    if numeric > 1e17:
        numeric /= 1e9
    elif numeric > 1e14:
        numeric /= 1e6
    elif numeric > 1e11:
        numeric /= 1e3
    return datetime.fromtimestamp(numeric, tz=timezone.utc)


def _safe_float(value: Any) -> Optional[float]:
    try:
        if value is None:
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def _safe_int(value: Any) -> Optional[int]:
    try:
        if value is None:
            return None
        return int(value)
    except (TypeError, ValueError):
        return None


__all__ = [
    "FrameKind",
    "StatusEvent",
    "Trade",
    "Quote",
    "Aggregate",
    "MarketEvent",
    "decode_frame",
    "classify",
    "encode_command",
    "to_market_event",
]
