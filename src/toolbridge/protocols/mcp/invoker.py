"""ToolInvoker — executes one ``tools/call`` against an MCP server.

The call goes out over HTTP first (POST to the tool's invoke endpoint, with
the transport's retry policy).  If HTTP fails for any reason other than the
server answering with a JSON-RPC error, exactly one WebSocket attempt follows
in a fresh, fully handshaken session.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from toolbridge.config import ClientSettings
from toolbridge.protocols.errors import InvocationError, JsonRpcServerError, MCPError
from toolbridge.protocols.mcp.http import JsonRpcHttpTransport
from toolbridge.protocols.mcp.models import tools_call_request
from toolbridge.protocols.mcp.session import JsonRpcWebSocketSession
from toolbridge.utils.telemetry import ATTR_SERVER_ID, ATTR_TOOL_NAME, ATTR_TRANSPORT, get_tracer

if TYPE_CHECKING:
    from toolbridge.catalog.models import ServerEndpoint

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class ToolInvoker:
    """Calls tools on MCP servers and returns their raw JSON results.

    The tool name is sent exactly as given; callers that address tools by
    ``scope.name`` pass the qualified form themselves.

    Usage::

        async with ToolInvoker(settings) as invoker:
            text = await invoker.call(server, "kb_search", '{"query": "mcp"}')
    """

    def __init__(
        self,
        settings: ClientSettings | None = None,
        *,
        http: JsonRpcHttpTransport | None = None,
    ) -> None:
        self._settings = settings or ClientSettings()
        self._http = http or JsonRpcHttpTransport(self._settings)
        self._owns_http = http is None

    async def __aenter__(self) -> ToolInvoker:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def call(self, server: ServerEndpoint, tool_name: str, args_json: str) -> str:
        """Invoke *tool_name* with the JSON object in *args_json*.

        Returns the ``result`` of the reply as compact JSON text.

        Raises:
            InvocationError: Bad arguments, a JSON-RPC error from the server,
                or failure of both transports (see ``failures``).
        """
        arguments = parse_arguments(tool_name, args_json)

        with _tracer.start_as_current_span("mcp.call") as span:
            span.set_attribute(ATTR_SERVER_ID, server.id)
            span.set_attribute(ATTR_TOOL_NAME, tool_name)
            failures: dict[str, BaseException] = {}

            try:
                result = await self.call_via_http(server, tool_name, arguments)
                transport = "http"
            except JsonRpcServerError as exc:
                failures["http"] = exc
                raise InvocationError(tool_name, exc.message, code=exc.code, failures=failures) from exc
            except MCPError as http_exc:
                failures["http"] = http_exc
                logger.warning(
                    "HTTP call of %s on %s failed, falling back to WebSocket: %s",
                    tool_name,
                    server.label,
                    http_exc,
                )
                try:
                    result = await self.call_via_websocket(server, tool_name, arguments)
                except JsonRpcServerError as exc:
                    failures["websocket"] = exc
                    raise InvocationError(
                        tool_name, exc.message, code=exc.code, failures=failures
                    ) from exc
                except MCPError as ws_exc:
                    failures["websocket"] = ws_exc
                    logger.error("MCP %s failed on every transport for %s", tool_name, server.label)
                    raise InvocationError(tool_name, _summarize(failures), failures=failures) from ws_exc
                transport = "websocket"

            span.set_attribute(ATTR_TRANSPORT, transport)

        return json.dumps(result, separators=(",", ":"), ensure_ascii=False)

    async def call_via_http(self, server: ServerEndpoint, tool_name: str, arguments: dict[str, Any]) -> Any:
        url = self._settings.invoke_url(server.base_url, tool_name)
        return await self._http.send(url, tools_call_request(uuid4().hex, tool_name, arguments))

    async def call_via_websocket(
        self, server: ServerEndpoint, tool_name: str, arguments: dict[str, Any]
    ) -> Any:
        async with JsonRpcWebSocketSession(server.base_url, self._settings) as session:
            return await session.request("tools/call", {"name": tool_name, "arguments": arguments})


def parse_arguments(tool_name: str, args_json: str) -> dict[str, Any]:
    """Decode serialized tool arguments; blank input means no arguments.

    Raises:
        InvocationError: The text is not a JSON object.
    """
    if not args_json or not args_json.strip():
        return {}
    try:
        arguments = json.loads(args_json)
    except json.JSONDecodeError as exc:
        raise InvocationError(tool_name, f"arguments are not valid JSON: {exc}") from exc
    if not isinstance(arguments, dict):
        raise InvocationError(tool_name, f"arguments must be a JSON object, got {type(arguments).__name__}")
    return arguments


def _summarize(failures: dict[str, BaseException]) -> str:
    return "; ".join(f"{transport}: {type(exc).__name__}: {exc}" for transport, exc in failures.items())
