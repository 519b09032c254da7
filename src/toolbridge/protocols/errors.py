"""Shared error types for the protocol layer."""

from __future__ import annotations

from typing import Any


class MCPError(Exception):
    """Base error for all MCP client failures."""


class TransportError(MCPError):
    """The channel to the server failed (refused, DNS, upgrade rejected, bad status)."""

    def __init__(self, detail: str, *, status_code: int | None = None) -> None:
        self.detail = detail
        self.status_code = status_code
        super().__init__(detail)


class ProtocolError(MCPError):
    """The server answered, but not with a usable JSON-RPC message."""


class JsonRpcServerError(ProtocolError):
    """The server returned a JSON-RPC ``error`` object."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        self.code = code
        self.message = message
        self.data = data
        super().__init__(message)


class CorrelationError(ProtocolError):
    """A reply carried an id that does not belong to the request it answers."""

    def __init__(self, expected: int | str, received: object) -> None:
        self.expected = expected
        self.received = received
        super().__init__(f"Reply id {received!r} does not match request id {expected!r}")


class ReplyTimeoutError(MCPError, TimeoutError):
    """No correlated reply arrived within the allotted time.

    Also a builtin :class:`TimeoutError`, so generic timeout handlers catch it.
    """

    def __init__(self, timeout: float, *, method: str = "", discarded: int = 0) -> None:
        self.timeout = timeout
        self.method = method
        self.discarded = discarded
        what = f" to {method}" if method else ""
        msg = f"No reply{what} within {timeout}s"
        if discarded:
            msg += f" ({discarded} uncorrelated message(s) discarded)"
        super().__init__(msg)


class SessionStateError(MCPError):
    """A WebSocket session was driven through a transition it does not allow."""

    def __init__(self, current: object, target: object) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Illegal session transition: {current} -> {target}")


class ServerNotFoundError(MCPError):
    """The caller referenced a server handle the registry does not know."""

    def __init__(self, server_id: object) -> None:
        self.server_id = server_id
        super().__init__(f"MCP server not found: {server_id}")


class DiscoveryError(MCPError):
    """Tool discovery failed over every transport."""

    def __init__(
        self,
        server: str,
        *,
        http_error: BaseException | None = None,
        websocket_error: BaseException | None = None,
    ) -> None:
        self.server = server
        self.http_error = http_error
        self.websocket_error = websocket_error
        super().__init__(
            f"Tool discovery failed for {server}: "
            f"HTTP: {_describe(http_error)}; WebSocket: {_describe(websocket_error)}"
        )


class InvocationError(MCPError):
    """A tool invocation failed terminally.

    ``failures`` maps each transport that was tried (``"http"``,
    ``"websocket"``) to the error it produced.  ``code`` is set when the
    server itself reported a JSON-RPC error.
    """

    def __init__(
        self,
        tool_name: str,
        detail: str,
        *,
        code: int | None = None,
        failures: dict[str, BaseException] | None = None,
    ) -> None:
        self.tool_name = tool_name
        self.detail = detail
        self.code = code
        self.failures = dict(failures or {})
        msg = f"Tool invocation failed: {tool_name} - {detail}"
        if code is not None:
            msg += f" (code {code})"
        super().__init__(msg)


def _describe(exc: BaseException | None) -> str:
    if exc is None:
        return "not attempted"
    return f"{type(exc).__name__}: {exc}"
