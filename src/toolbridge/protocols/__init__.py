"""Protocol layer — MCP transports, sessions and the shared error taxonomy."""

from toolbridge.protocols.errors import (
    CorrelationError,
    DiscoveryError,
    InvocationError,
    JsonRpcServerError,
    MCPError,
    ProtocolError,
    ReplyTimeoutError,
    ServerNotFoundError,
    SessionStateError,
    TransportError,
)

__all__ = [
    "CorrelationError",
    "DiscoveryError",
    "InvocationError",
    "JsonRpcServerError",
    "MCPError",
    "ProtocolError",
    "ReplyTimeoutError",
    "ServerNotFoundError",
    "SessionStateError",
    "TransportError",
]
