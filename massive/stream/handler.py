"""Callback interface a stream session dispatches to."""

from __future__ import annotations

from typing import Any, Dict, Protocol, runtime_checkable


@runtime_checkable
class StreamHandler(Protocol):
    """Capability required by :class:`~massive.stream.session.StreamSession`.

    Each callback receives the current handler state and returns the new one.
    Returning ``None`` keeps the previous state. Callbacks may be plain
    functions or coroutines.
    """

    def on_message(self, message: Dict[str, Any], state: Any) -> Any:
        """Handle one market data event."""

    def on_connect(self, state: Any) -> Any:
        """Called once authentication succeeds."""

    def on_disconnect(self, reason: Any, state: Any) -> Any:
        """Called when the transport drops; the return value is not stored."""


class BaseStreamHandler:
    """Convenience base class whose callbacks leave the state untouched."""

    def on_message(self, message: Dict[str, Any], state: Any) -> Any:
        return state

    def on_connect(self, state: Any) -> Any:
        return state

    def on_disconnect(self, reason: Any, state: Any) -> Any:
        return state


__all__ = ["StreamHandler", "BaseStreamHandler"]
