"""Streaming session manager for the Massive WebSocket feed.

A :class:`StreamSession` owns one connection. Two tasks cooperate:

* the transport task connects, pumps inbound frames into the session mailbox
  and reconnects with backoff when the socket drops;
* the actor task is the only code that touches session state. It consumes the
  mailbox in order: transport events, subscribe/unsubscribe commands and
  subscription queries.

Because the actor serializes everything, the subscription set, the
authentication flag and the handler state need no locks.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import random
from enum import Enum
from typing import Any, AsyncContextManager, Callable, Dict, Iterable, Optional, Set, Tuple, Union

import websockets
from websockets.exceptions import WebSocketException

from ..errors import ConfigurationError, StreamTimeoutError
from ..infra.config import BackoffConfig, MassiveConfig
from .channels import join_channels, normalize_channels
from .events import FrameKind, StatusEvent, classify, decode_frame, encode_command
from .handler import StreamHandler

REALTIME_URL = "wss://socket.massive.com/stocks"
DELAYED_URL = "wss://delayed.massive.com/stocks"

# disconnect reasons that are not transport exceptions
DISCONNECT_CLOSED = "closed"
DISCONNECT_LOCAL = "local"

Connector = Callable[[str], AsyncContextManager[Any]]

_CONNECTING = "connecting"
_CONNECTED = "connected"
_FRAME = "frame"
_DISCONNECTED = "disconnected"
_SUBSCRIBE = "subscribe"
_UNSUBSCRIBE = "unsubscribe"
_QUERY = "query"
_CLOSE = "close"


class SessionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED_UNAUTHENTICATED = "connected_unauthenticated"
    AUTHENTICATED = "authenticated"


def resolve_url(realtime: bool = False, url: Optional[str] = None) -> str:
    """Pick the feed address: an explicit ``url`` wins over the realtime flag."""

    if url:
        return url
    return REALTIME_URL if realtime else DELAYED_URL


def default_connector(url: str) -> AsyncContextManager[Any]:
    return websockets.connect(url, ping_interval=20, ping_timeout=20)


class StreamSession:
    """One logical connection to the streaming feed.

    The session authenticates as soon as the socket opens, keeps the set of
    channels the caller asked for and hands every market data event to
    ``handler``. Subscribing before authentication completes is ignored, both
    on the wire and in the subscription set; subscribe from
    ``handler.on_connect`` to (re)establish channels after each handshake.
    """

    def __init__(
        self,
        api_key: Optional[str],
        handler: StreamHandler,
        handler_state: Any = None,
        *,
        realtime: bool = False,
        url: Optional[str] = None,
        reconnect: bool = True,
        backoff: Optional[BackoffConfig] = None,
        query_timeout: Optional[float] = 5.0,
        connector: Optional[Connector] = None,
        metrics_callback: Optional[Callable[[str, Dict[str, float]], None]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if handler is None:
            raise ConfigurationError("A stream handler is required")
        if not isinstance(handler, StreamHandler):
            raise ConfigurationError(
                f"{handler!r} must provide on_message, on_connect and on_disconnect callbacks"
            )

        self.api_key = api_key
        self.handler = handler
        self.handler_state = {} if handler_state is None else handler_state
        self.url = resolve_url(realtime, url)
        self.reconnect = reconnect
        self.backoff = backoff or BackoffConfig()
        self.query_timeout = query_timeout
        self.metrics_callback = metrics_callback
        self.logger = logger or logging.getLogger(__name__)
        self._connector = connector or default_connector

        self._subscriptions: Set[str] = set()
        self._authenticated = False
        self._state = SessionState.DISCONNECTED
        self._socket: Any = None
        self._closing = False
        self._mailbox: asyncio.Queue[Tuple[str, Any]] = asyncio.Queue()
        self._actor_task: Optional[asyncio.Task] = None
        self._transport_task: Optional[asyncio.Task] = None

    @classmethod
    def from_config(
        cls,
        config: MassiveConfig,
        handler: StreamHandler,
        handler_state: Any = None,
        **kwargs: Any,
    ) -> "StreamSession":
        options: Dict[str, Any] = {
            "realtime": config.stream.realtime,
            "url": config.stream.url,
            "reconnect": config.stream.reconnect,
            "backoff": config.stream.backoff,
            "query_timeout": config.stream.query_timeout,
        }
        options.update(kwargs)
        return cls(config.api_key, handler, handler_state, **options)

    # --- Public surface ---------------------------------------------------
    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def authenticated(self) -> bool:
        return self._authenticated

    @property
    def running(self) -> bool:
        return self._actor_task is not None and not self._actor_task.done()

    async def start(self) -> "StreamSession":
        """Schedule the connection and return without waiting for the handshake."""

        if self._actor_task is not None:
            raise RuntimeError("Stream session already started")
        self._state = SessionState.CONNECTING
        self._actor_task = asyncio.create_task(self._run_actor(), name=f"massive-stream-actor:{self.url}")
        self._actor_task.add_done_callback(self._on_actor_done)
        self._transport_task = asyncio.create_task(
            self._run_transport(), name=f"massive-stream-transport:{self.url}"
        )
        self._transport_task.add_done_callback(self._on_transport_done)
        return self

    def subscribe(self, channels: Union[str, Iterable[str]]) -> None:
        """Queue a subscribe command; returns immediately."""

        self._post(_SUBSCRIBE, normalize_channels(channels))

    def unsubscribe(self, channels: Union[str, Iterable[str]]) -> None:
        """Queue an unsubscribe command; returns immediately."""

        self._post(_UNSUBSCRIBE, normalize_channels(channels))

    def _post(self, tag: str, payload: Any) -> None:
        if self._actor_task is not None and self._actor_task.done():
            raise RuntimeError("Stream session is closed")
        self._mailbox.put_nowait((tag, payload))

    async def get_subscriptions(self, timeout: Optional[float] = None) -> Set[str]:
        """Return a copy of the desired subscription set.

        The query is answered by the actor after everything queued before it.
        Raises :class:`StreamTimeoutError` after ``timeout`` (default
        ``query_timeout``) seconds. Handler callbacks run on the actor and
        get the current set immediately.
        """

        if not self.running or asyncio.current_task() is self._actor_task:
            return set(self._subscriptions)

        reply: asyncio.Future = asyncio.get_running_loop().create_future()
        self._mailbox.put_nowait((_QUERY, reply))
        limit = self.query_timeout if timeout is None else timeout
        try:
            return await asyncio.wait_for(reply, limit)
        except asyncio.TimeoutError as exc:
            raise StreamTimeoutError(f"No answer from stream session within {limit} seconds") from exc

    async def close(self) -> None:
        """Tear the connection down and stop the session.

        A callback already running completes first. Handler faults are not
        raised here; use :meth:`wait_closed` to observe them.
        """

        if self._actor_task is None:
            return
        if not self._actor_task.done():
            self._mailbox.put_nowait((_CLOSE, None))
        await asyncio.wait([self._actor_task])

    async def wait_closed(self) -> None:
        """Wait for the session to stop, re-raising a handler fault if one killed it."""

        if self._actor_task is not None:
            await self._actor_task

    async def __aenter__(self) -> "StreamSession":
        return await self.start()

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # --- Actor ------------------------------------------------------------
    async def _run_actor(self) -> None:
        try:
            while True:
                tag, payload = await self._mailbox.get()
                if tag == _CLOSE:
                    await self._shutdown()
                    return
                await self._dispatch(tag, payload)
        finally:
            self._closing = True
            if self._transport_task is not None and not self._transport_task.done():
                self._transport_task.cancel()
            self._answer_pending_queries()

    async def _dispatch(self, tag: str, payload: Any) -> None:
        if tag == _FRAME:
            await self._handle_frame(payload)
        elif tag == _SUBSCRIBE:
            await self._handle_subscribe(payload)
        elif tag == _UNSUBSCRIBE:
            await self._handle_unsubscribe(payload)
        elif tag == _QUERY:
            if not payload.done():
                payload.set_result(set(self._subscriptions))
        elif tag == _CONNECTING:
            if self._state == SessionState.DISCONNECTED:
                self._state = SessionState.CONNECTING
        elif tag == _CONNECTED:
            await self._handle_transport_connect(payload)
        elif tag == _DISCONNECTED:
            await self._handle_transport_disconnect(payload)

    async def _handle_transport_connect(self, socket: Any) -> None:
        self._socket = socket
        self._state = SessionState.CONNECTED_UNAUTHENTICATED
        self.logger.info("Connected to %s, authenticating", self.url, extra={"event": "stream_connected"})
        await self._send("auth", self.api_key or "")

    async def _handle_transport_disconnect(self, reason: Any) -> None:
        self.logger.info(
            "Stream disconnected: %s", reason,
            extra={"event": "stream_disconnected", "reason": str(reason)},
        )
        # the return value of on_disconnect is not stored
        await self._invoke(self.handler.on_disconnect, reason, self.handler_state)
        self._socket = None
        self._authenticated = False
        self._state = SessionState.DISCONNECTED

    async def _handle_frame(self, raw: Any) -> None:
        batch = decode_frame(raw)
        if batch is None:
            self.logger.debug("Dropping undecodable frame", extra={"event": "frame_dropped"})
            self._emit_metrics("frame_dropped", {"size": float(len(raw))})
            return
        for element in batch:
            await self._handle_element(element)

    async def _handle_element(self, element: Any) -> None:
        kind = classify(element)
        if kind is FrameKind.CONNECTION_STATUS:
            self.logger.debug("Feed acknowledged connection", extra={"event": "stream_status"})
        elif kind is FrameKind.AUTH_SUCCESS:
            self._authenticated = True
            self._state = SessionState.AUTHENTICATED
            self.logger.info("Stream authenticated", extra={"event": "stream_authenticated"})
            new_state = await self._invoke(self.handler.on_connect, self.handler_state)
            if new_state is not None:
                self.handler_state = new_state
        elif kind is FrameKind.STATUS:
            status = StatusEvent(status=str(element["status"]), message=str(element["message"]))
            self.logger.warning(
                "WebSocket status: %s - %s", status.status, status.message,
                extra={"event": "stream_status", "status": status.status},
            )
            self._emit_metrics("status_warning", {})
        elif isinstance(element, dict):
            new_state = await self._invoke(self.handler.on_message, element, self.handler_state)
            if new_state is not None:
                self.handler_state = new_state
            self._emit_metrics("market_event", {})
        else:
            self.logger.debug("Ignoring non-object element %r", element, extra={"event": "frame_dropped"})
            self._emit_metrics("frame_dropped", {})

    async def _handle_subscribe(self, channels: list) -> None:
        if not self._authenticated:
            self.logger.warning(
                "Subscribe to %s ignored: session is not authenticated", join_channels(channels),
                extra={"event": "subscribe_ignored"},
            )
            return
        await self._send("subscribe", join_channels(channels))
        self._subscriptions.update(channels)

    async def _handle_unsubscribe(self, channels: list) -> None:
        await self._send("unsubscribe", join_channels(channels))
        self._subscriptions.difference_update(channels)

    async def _send(self, action: str, params: str) -> bool:
        if self._socket is None:
            self.logger.debug("No open connection, %s command not sent", action)
            return False
        try:
            await self._socket.send(encode_command(action, params))
        except (OSError, WebSocketException) as exc:
            self.logger.warning("Failed to send %s command: %s", action, exc, extra={"event": "send_failed"})
            return False
        if action != "auth":
            self.logger.info("Sent %s %s", action, params, extra={"event": action})
        return True

    async def _invoke(self, callback: Callable[..., Any], *args: Any) -> Any:
        result = callback(*args)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def _shutdown(self) -> None:
        self._closing = True
        if self._transport_task is not None and not self._transport_task.done():
            self._transport_task.cancel()
            await asyncio.gather(self._transport_task, return_exceptions=True)
        if self._socket is not None:
            await self._handle_transport_disconnect(DISCONNECT_LOCAL)
        self._state = SessionState.DISCONNECTED
        self.logger.info("Stream session closed", extra={"event": "stream_closed"})

    def _answer_pending_queries(self) -> None:
        while not self._mailbox.empty():
            tag, payload = self._mailbox.get_nowait()
            if tag == _QUERY and not payload.done():
                payload.set_result(set(self._subscriptions))

    def _on_actor_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.logger.error(
                "Stream session stopped by handler failure: %r", exc,
                exc_info=exc, extra={"event": "stream_failed"},
            )

    def _on_transport_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        self.logger.error(
            "Stream transport stopped: %r", exc,
            exc_info=exc, extra={"event": "transport_failed"},
        )
        if self.running:
            self._mailbox.put_nowait((_DISCONNECTED, exc))

    # --- Transport --------------------------------------------------------
    async def _run_transport(self) -> None:
        delay = self.backoff.initial
        while not self._closing:
            await self._mailbox.put((_CONNECTING, None))
            reason: Any = DISCONNECT_CLOSED
            try:
                async with self._connector(self.url) as socket:
                    delay = self.backoff.initial
                    await self._mailbox.put((_CONNECTED, socket))
                    async for raw in socket:
                        await self._mailbox.put((_FRAME, raw))
            except (OSError, asyncio.TimeoutError, WebSocketException) as exc:
                reason = exc
                self.logger.warning("Stream transport failure: %s", exc, extra={"event": "transport_error"})
            await self._mailbox.put((_DISCONNECTED, reason))

            if not self.reconnect or self._closing:
                return
            sleep_for = min(delay, self.backoff.maximum) + random.uniform(0, self.backoff.jitter)
            self.logger.info(
                "Reconnecting to stream",
                extra={"event": "reconnect", "sleep_seconds": sleep_for},
            )
            self._emit_metrics("reconnect", {"sleep_seconds": sleep_for})
            await asyncio.sleep(sleep_for)
            delay = min(delay * self.backoff.factor, self.backoff.maximum)

    def _emit_metrics(self, name: str, values: Dict[str, float]) -> None:
        if not self.metrics_callback:
            return
        try:
            self.metrics_callback(name, values)
        except Exception as exc:  # pragma: no cover - external callback safety
            self.logger.debug("Metric callback failed for %s: %s", name, exc)


async def start_session(
    api_key: Optional[str],
    handler: StreamHandler,
    handler_state: Any = None,
    **kwargs: Any,
) -> StreamSession:
    """Build a :class:`StreamSession` and start it."""

    session = StreamSession(api_key, handler, handler_state, **kwargs)
    return await session.start()


__all__ = [
    "REALTIME_URL",
    "DELAYED_URL",
    "DISCONNECT_CLOSED",
    "DISCONNECT_LOCAL",
    "SessionState",
    "StreamSession",
    "resolve_url",
    "start_session",
]
