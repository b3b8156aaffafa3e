"""Channel identifiers for streaming subscriptions.

A channel is ``<event-type>.<symbol>``, e.g. ``AM.AAPL`` for minute
aggregates of Apple or ``T.*`` for every trade on the feed.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Sequence, Union

WILDCARD = "*"
SEPARATOR = "."


class EventType(str, Enum):
    """Event codes accepted by the streaming feed."""

    MINUTE_AGGREGATE = "AM"
    SECOND_AGGREGATE = "A"
    TRADE = "T"
    QUOTE = "Q"
    LIMIT_UP_LIMIT_DOWN = "LULD"
    FAIR_MARKET_VALUE = "FMV"
    INDEX_VALUE = "V"
    FOREX_QUOTE = "C"
    FOREX_AGGREGATE = "CA"
    CRYPTO_TRADE = "XT"
    CRYPTO_QUOTE = "XQ"
    CRYPTO_AGGREGATE = "XA"
    CRYPTO_SECOND_AGGREGATE = "XAS"


@dataclass(frozen=True)
class Channel:
    """A parsed subscription key."""

    event_type: str
    symbol: str

    @property
    def is_wildcard(self) -> bool:
        return self.symbol == WILDCARD

    def topic(self) -> str:
        """Return the wire form of the channel."""

        return f"{self.event_type}{SEPARATOR}{self.symbol}"

    def __str__(self) -> str:
        return self.topic()


def channel(event_type: Union[EventType, str], symbol: str = WILDCARD) -> str:
    """Build the wire form for an event type and symbol."""

    code = event_type.value if isinstance(event_type, EventType) else str(event_type)
    return Channel(code, symbol).topic()


def parse_channel(text: str) -> Channel:
    """Split ``AM.AAPL`` into its event type and symbol.

    Raises ``ValueError`` unless the text holds exactly one separator with a
    non-empty part on each side.
    """

    if text.count(SEPARATOR) != 1:
        raise ValueError(f"Channel {text!r} must contain exactly one {SEPARATOR!r}")
    event_type, symbol = text.split(SEPARATOR)
    if not event_type or not symbol:
        raise ValueError(f"Channel {text!r} is missing an event type or symbol")
    return Channel(event_type, symbol)


def normalize_channels(channels: Union[str, Iterable[str]]) -> List[str]:
    """Accept a single channel or a sequence of them, keeping order."""

    if isinstance(channels, str):
        return [channels]
    return [str(item) for item in channels]


def join_channels(channels: Sequence[str]) -> str:
    return ",".join(channels)


__all__ = [
    "WILDCARD",
    "EventType",
    "Channel",
    "channel",
    "parse_channel",
    "normalize_channels",
    "join_channels",
]
