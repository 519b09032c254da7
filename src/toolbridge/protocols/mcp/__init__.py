"""MCP protocol — Model Context Protocol client over HTTP and WebSocket."""

from toolbridge.protocols.mcp.discovery import DiscoveryCoordinator
from toolbridge.protocols.mcp.http import JsonRpcHttpTransport
from toolbridge.protocols.mcp.invoker import ToolInvoker
from toolbridge.protocols.mcp.models import (
    JsonRpcError,
    JsonRpcErrorResponse,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    parse_message,
)
from toolbridge.protocols.mcp.session import JsonRpcWebSocketSession, SessionState, websocket_url

__all__ = [
    "DiscoveryCoordinator",
    "JsonRpcError",
    "JsonRpcErrorResponse",
    "JsonRpcHttpTransport",
    "JsonRpcNotification",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "JsonRpcWebSocketSession",
    "SessionState",
    "ToolInvoker",
    "parse_message",
    "websocket_url",
]
