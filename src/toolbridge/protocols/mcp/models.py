"""MCP models — JSON-RPC 2.0 messages and MCP handshake payloads.

Implements the envelope format used by the Model Context Protocol for the
``initialize`` handshake, tool discovery (``tools/list``) and execution
(``tools/call``).  Inbound frames are classified into a tagged union by
:func:`parse_message`.
"""

from __future__ import annotations

import json
from typing import Any, Literal, NoReturn, Union

from pydantic import BaseModel, Field, StrictInt, StrictStr, ValidationError

from toolbridge.protocols.errors import JsonRpcServerError, ProtocolError

PROTOCOL_VERSION = "2024-11-05"
INITIALIZE_REQUEST_ID = 1

RequestId = Union[StrictInt, StrictStr]

# ---------------------------------------------------------------------------
# JSON-RPC 2.0 envelope
# ---------------------------------------------------------------------------


class JsonRpcRequest(BaseModel):
    """A JSON-RPC 2.0 request message."""

    kind: Literal["request"] = Field(default="request", exclude=True)
    jsonrpc: str = "2.0"
    id: RequestId
    method: str
    params: dict[str, Any] | list[Any] = {}


class JsonRpcNotification(BaseModel):
    """A JSON-RPC 2.0 notification (a request without an id)."""

    kind: Literal["notification"] = Field(default="notification", exclude=True)
    jsonrpc: str = "2.0"
    method: str
    params: dict[str, Any] | list[Any] = {}


class JsonRpcError(BaseModel):
    """A JSON-RPC 2.0 error object."""

    code: int
    message: str
    data: Any = None


class JsonRpcResponse(BaseModel):
    """A successful JSON-RPC 2.0 response; ``result`` is kept verbatim."""

    kind: Literal["response"] = Field(default="response", exclude=True)
    jsonrpc: str = "2.0"
    id: RequestId | None = None
    result: Any = None


class JsonRpcErrorResponse(BaseModel):
    """A JSON-RPC 2.0 response carrying an ``error`` object."""

    kind: Literal["error"] = Field(default="error", exclude=True)
    jsonrpc: str = "2.0"
    id: RequestId | None = None
    error: JsonRpcError

    def raise_error(self) -> NoReturn:
        raise JsonRpcServerError(self.error.code, self.error.message, self.error.data)


JsonRpcMessage = Union[JsonRpcRequest, JsonRpcNotification, JsonRpcResponse, JsonRpcErrorResponse]
JsonRpcReply = Union[JsonRpcResponse, JsonRpcErrorResponse]


def ids_match(expected: object, received: object) -> bool:
    """Compare two request ids by value *and* wire type.

    ``1`` and ``"1"`` are different ids, and booleans are never ids.
    """
    if isinstance(expected, bool) or isinstance(received, bool):
        return False
    return type(expected) is type(received) and expected == received


def decode_frame(raw: str | bytes | dict[str, Any]) -> dict[str, Any]:
    """Decode one inbound frame into a JSON object without validating it.

    Raises:
        ProtocolError: If the frame is not JSON or not an object.
    """
    if isinstance(raw, dict):
        return raw
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ProtocolError(f"Malformed JSON-RPC frame: {exc}") from exc
    if not isinstance(data, dict):
        raise ProtocolError(f"JSON-RPC frame must be an object, got {type(data).__name__}")
    return data


def parse_message(raw: str | bytes | dict[str, Any]) -> JsonRpcMessage:
    """Classify one inbound JSON-RPC frame.

    Raises:
        ProtocolError: If the frame is not JSON, not an object, or matches
            no JSON-RPC message shape.
    """
    data = decode_frame(raw)
    try:
        if "method" in data:
            if data.get("id") is None:
                return JsonRpcNotification.model_validate(_envelope(data, "method", "params"))
            return JsonRpcRequest.model_validate(_envelope(data, "id", "method", "params"))
        if data.get("error") is not None:
            return JsonRpcErrorResponse.model_validate(_envelope(data, "id", "error"))
        if "result" in data:
            return JsonRpcResponse.model_validate(_envelope(data, "id", "result"))
    except ValidationError as exc:
        raise ProtocolError(f"Invalid JSON-RPC message: {exc}") from exc

    raise ProtocolError("JSON-RPC frame has neither 'method', 'result' nor 'error'")


def _envelope(data: dict[str, Any], *keys: str) -> dict[str, Any]:
    picked = {k: data[k] for k in keys if k in data}
    if picked.get("params") is None:
        picked.pop("params", None)
    return picked


# ---------------------------------------------------------------------------
# MCP-specific requests
# ---------------------------------------------------------------------------


def initialize_request(
    *,
    client_name: str,
    client_version: str,
    protocol_version: str = PROTOCOL_VERSION,
    request_id: int | str = INITIALIZE_REQUEST_ID,
) -> JsonRpcRequest:
    """Build the ``initialize`` handshake request."""
    return JsonRpcRequest(
        id=request_id,
        method="initialize",
        params={
            "protocolVersion": protocol_version,
            "capabilities": {"tools": {}},
            "clientInfo": {"name": client_name, "version": client_version},
        },
    )


def initialized_notification() -> JsonRpcNotification:
    """Build the ``notifications/initialized`` notification."""
    return JsonRpcNotification(method="notifications/initialized")


def tools_list_request(request_id: int | str) -> JsonRpcRequest:
    return JsonRpcRequest(id=request_id, method="tools/list")


def tools_call_request(request_id: int | str, name: str, arguments: dict[str, Any]) -> JsonRpcRequest:
    return JsonRpcRequest(
        id=request_id,
        method="tools/call",
        params={"name": name, "arguments": arguments},
    )


def dump_message(message: JsonRpcRequest | JsonRpcNotification) -> str:
    """Serialize an outbound message to its compact wire form."""
    return json.dumps(message.model_dump(), separators=(",", ":"))

