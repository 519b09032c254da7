"""JsonRpcWebSocketSession — one MCP handshake plus one request over WebSocket.

A session is created for a single discovery or invocation and never reused.
Its lifecycle is an explicit state machine::

    IDLE -> CONNECTING -> HANDSHAKING -> READY <-> AWAITING_REPLY
                  \\             \\          \\            /
                   +-------------+----------+---> CLOSING -> CLOSED | FAILED

Every exit path goes through ``CLOSING``; the session ends ``CLOSED`` when
the operation succeeded and ``FAILED`` otherwise.
"""

from __future__ import annotations

import asyncio
import enum
import itertools
import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit, urlunsplit

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from toolbridge.config import ClientSettings
from toolbridge.protocols.errors import ProtocolError, ReplyTimeoutError, SessionStateError, TransportError
from toolbridge.protocols.mcp.models import (
    JsonRpcErrorResponse,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    decode_frame,
    dump_message,
    ids_match,
    initialize_request,
    initialized_notification,
    parse_message,
)
from toolbridge.utils.telemetry import ATTR_DISCARDED, ATTR_METHOD, ATTR_TRANSPORT, ATTR_URL, get_tracer

if TYPE_CHECKING:
    from toolbridge.protocols.mcp.models import JsonRpcReply, RequestId

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

_WS_SCHEMES = {"http": "ws", "https": "wss"}


class SessionState(enum.Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    HANDSHAKING = "handshaking"
    READY = "ready"
    AWAITING_REPLY = "awaiting_reply"
    CLOSING = "closing"
    CLOSED = "closed"
    FAILED = "failed"


TRANSITIONS: dict[SessionState, frozenset[SessionState]] = {
    SessionState.IDLE: frozenset({SessionState.CONNECTING, SessionState.CLOSING}),
    SessionState.CONNECTING: frozenset({SessionState.HANDSHAKING, SessionState.CLOSING}),
    SessionState.HANDSHAKING: frozenset({SessionState.READY, SessionState.CLOSING}),
    SessionState.READY: frozenset({SessionState.AWAITING_REPLY, SessionState.CLOSING}),
    SessionState.AWAITING_REPLY: frozenset({SessionState.READY, SessionState.CLOSING}),
    SessionState.CLOSING: frozenset({SessionState.CLOSED, SessionState.FAILED}),
    SessionState.CLOSED: frozenset(),
    SessionState.FAILED: frozenset(),
}

TERMINAL_STATES = frozenset({SessionState.CLOSED, SessionState.FAILED})


def websocket_url(base_url: str, path: str = "/ws") -> str:
    """Derive the WebSocket endpoint from a server's HTTP(S) base URL.

    ``http://example.com/api`` becomes ``ws://example.com/api/ws`` and
    ``https://example.com`` becomes ``wss://example.com/ws``.

    Raises:
        ValueError: If *base_url* is not an http(s) URL.
    """
    parts = urlsplit(base_url)
    scheme = _WS_SCHEMES.get(parts.scheme.lower())
    if scheme is None or not parts.netloc:
        msg = f"Cannot derive a WebSocket URL from {base_url!r}: expected http(s)://host[/path]"
        raise ValueError(msg)
    suffix = "/" + path.lstrip("/")
    return urlunsplit((scheme, parts.netloc, parts.path.rstrip("/") + suffix, parts.query, ""))


class JsonRpcWebSocketSession:
    """A single-use MCP session over WebSocket.

    Usage::

        async with JsonRpcWebSocketSession("https://mcp.example.com") as session:
            result = await session.request("tools/list")

    ``__aenter__`` connects and performs the ``initialize`` handshake;
    ``__aexit__`` always closes.  Inbound notifications and replies whose
    id is not the one being awaited are discarded.
    """

    def __init__(self, base_url: str, settings: ClientSettings | None = None) -> None:
        self._base_url = base_url
        self._settings = settings or ClientSettings()
        self._url: str | None = None
        self._ws: Any = None  # websockets ClientConnection
        self._state = SessionState.IDLE
        self._ids = itertools.count(1)
        self._error: BaseException | None = None
        self._server_info: Any = None

    async def __aenter__(self) -> JsonRpcWebSocketSession:
        try:
            await self.connect()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type: object, exc: BaseException | None, tb: object) -> None:
        if exc is not None and self._error is None:
            self._error = exc
        await self.close()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def url(self) -> str | None:
        return self._url

    @property
    def server_info(self) -> Any:
        """The ``result`` of the server's ``initialize`` reply."""
        return self._server_info

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the connection and complete the ``initialize`` handshake.

        Raises:
            TransportError: The connection or upgrade failed.
            JsonRpcServerError: The server rejected ``initialize``.
            ReplyTimeoutError: No ``initialize`` reply in time.
        """
        self._transition(SessionState.CONNECTING)
        try:
            self._url = websocket_url(self._base_url, self._settings.websocket_path)
            logger.debug("Connecting to MCP WebSocket %s", self._url)
            self._ws = await websockets.connect(
                self._url,
                open_timeout=self._settings.websocket_open_timeout,
                close_timeout=self._settings.websocket_close_timeout,
                max_size=self._settings.websocket_max_size,
            )
        except (ValueError, OSError, WebSocketException) as exc:
            self._error = TransportError(f"WebSocket connect to {self._url or self._base_url} failed: {exc}")
            raise self._error from exc
        except BaseException as exc:
            self._error = exc
            raise

        self._transition(SessionState.HANDSHAKING)
        try:
            init = initialize_request(
                client_name=self._settings.client_name,
                client_version=self._settings.client_version,
                protocol_version=self._settings.protocol_version,
                request_id=next(self._ids),
            )
            await self._send(init)
            reply = await self._await_reply(init.id, init.method)
            if isinstance(reply, JsonRpcErrorResponse):
                reply.raise_error()
            self._server_info = reply.result
            if self._settings.send_initialized_notification:
                # Servers are not required to acknowledge this.
                await self._send(initialized_notification())
        except BaseException as exc:
            self._error = exc
            raise

        self._transition(SessionState.READY)
        logger.debug("MCP session %s ready", self._url)

    async def request(self, method: str, params: dict[str, Any] | None = None) -> Any:
        """Send one request and wait for its correlated reply.

        Returns the reply's ``result`` verbatim.

        Raises:
            JsonRpcServerError: The reply carried an ``error`` object.
            ReplyTimeoutError: No correlated reply within the reply timeout.
            TransportError: The connection dropped.
            ProtocolError: An inbound frame was not valid JSON-RPC.
        """
        self._require(SessionState.READY)
        request = JsonRpcRequest(id=next(self._ids), method=method, params=params or {})
        self._transition(SessionState.AWAITING_REPLY)

        with _tracer.start_as_current_span("mcp.websocket.request") as span:
            span.set_attribute(ATTR_TRANSPORT, "websocket")
            span.set_attribute(ATTR_METHOD, method)
            span.set_attribute(ATTR_URL, self._url or "")
            try:
                await self._send(request)
                reply = await self._await_reply(request.id, method, span=span)
            except BaseException as exc:
                self._error = exc
                raise

        self._transition(SessionState.READY)
        if isinstance(reply, JsonRpcErrorResponse):
            try:
                reply.raise_error()
            except BaseException as exc:
                self._error = exc
                raise
        return reply.result

    async def close(self) -> None:
        """Close the connection.  Safe to call on every exit path.

        Close failures are logged and never raised.
        """
        if self._state in TERMINAL_STATES or self._state is SessionState.CLOSING:
            return
        self._transition(SessionState.CLOSING)
        ws, self._ws = self._ws, None
        try:
            if ws is not None:
                await asyncio.wait_for(ws.close(), timeout=self._settings.websocket_close_timeout)
        except Exception as exc:
            logger.warning("Error closing MCP WebSocket %s: %s", self._url, exc)
        finally:
            final = SessionState.FAILED if self._error is not None else SessionState.CLOSED
            self._transition(final)
            logger.debug("MCP session %s %s", self._url, final.value)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _transition(self, target: SessionState) -> None:
        if target not in TRANSITIONS[self._state]:
            raise SessionStateError(self._state.value, target.value)
        self._state = target

    def _require(self, expected: SessionState) -> None:
        if self._state is not expected:
            raise SessionStateError(self._state.value, SessionState.AWAITING_REPLY.value)

    async def _send(self, message: JsonRpcRequest | JsonRpcNotification) -> None:
        payload = dump_message(message)
        try:
            await self._ws.send(payload)
        except ConnectionClosed as exc:
            raise TransportError(f"WebSocket {self._url} closed while sending {message.method}: {exc}") from exc
        logger.debug("Sent MCP message: %s", payload)

    async def _await_reply(self, request_id: RequestId, method: str, *, span: Any = None) -> JsonRpcReply:
        """Receive until the reply to *request_id* arrives or time runs out."""
        timeout = self._settings.websocket_reply_timeout
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        discarded = 0

        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise ReplyTimeoutError(timeout, method=method, discarded=discarded)
            try:
                raw = await asyncio.wait_for(self._ws.recv(), timeout=remaining)
            except TimeoutError as exc:
                raise ReplyTimeoutError(timeout, method=method, discarded=discarded) from exc
            except ConnectionClosed as exc:
                raise TransportError(
                    f"WebSocket {self._url} closed while waiting for {method} reply: {exc}"
                ) from exc

            logger.debug("Received MCP message: %s", raw)
            # Classify on the raw object; only the awaited reply is validated.
            data = decode_frame(raw)

            if "method" in data:
                logger.debug("Discarding server message %s while awaiting %s", data["method"], method)
            elif not ids_match(request_id, data.get("id")):
                logger.debug(
                    "Discarding reply with id %r while awaiting %s id %r", data.get("id"), method, request_id
                )
            else:
                message = parse_message(data)
                if not isinstance(message, (JsonRpcResponse, JsonRpcErrorResponse)):
                    raise ProtocolError(f"Expected a reply to {method}, got a {message.kind}")
                if span is not None:
                    span.set_attribute(ATTR_DISCARDED, discarded)
                return message
            discarded += 1
