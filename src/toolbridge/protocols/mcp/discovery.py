"""DiscoveryCoordinator — fetches a server's tool catalog.

HTTP is tried first (one ``tools/list`` POST to the base URL).  Any failure
there falls back to a fresh WebSocket session.  Only a successful run touches
the catalog store, and it replaces the server's tools in one step.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from toolbridge.catalog.mapper import map_tools
from toolbridge.catalog.store import InMemoryCatalogStore
from toolbridge.config import ClientSettings
from toolbridge.protocols.errors import DiscoveryError, MCPError
from toolbridge.protocols.mcp.http import JsonRpcHttpTransport
from toolbridge.protocols.mcp.models import tools_list_request
from toolbridge.protocols.mcp.session import JsonRpcWebSocketSession
from toolbridge.utils.telemetry import ATTR_SERVER_ID, ATTR_TOOL_COUNT, ATTR_TRANSPORT, get_tracer

if TYPE_CHECKING:
    from toolbridge.catalog.models import ServerEndpoint, ToolDescriptor
    from toolbridge.catalog.store import CatalogStore

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class DiscoveryCoordinator:
    """Discovers tools over HTTP, falling back to WebSocket.

    Usage::

        coordinator = DiscoveryCoordinator(store)
        tools = await coordinator.discover(server)
    """

    def __init__(
        self,
        store: CatalogStore | None = None,
        settings: ClientSettings | None = None,
        *,
        http: JsonRpcHttpTransport | None = None,
    ) -> None:
        self._store = store if store is not None else InMemoryCatalogStore()
        self._settings = settings or ClientSettings()
        self._http = http or JsonRpcHttpTransport(self._settings)
        self._owns_http = http is None

    async def __aenter__(self) -> DiscoveryCoordinator:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    @property
    def store(self) -> CatalogStore:
        return self._store

    async def discover(self, server: ServerEndpoint) -> list[ToolDescriptor]:
        """Discover *server*'s tools and replace its catalog with them.

        Raises:
            DiscoveryError: Both transports failed; the store is unchanged.
        """
        with _tracer.start_as_current_span("mcp.discover") as span:
            span.set_attribute(ATTR_SERVER_ID, server.id)
            try:
                tools = await self.discover_via_http(server)
                transport = "http"
            except MCPError as http_exc:
                logger.warning(
                    "HTTP discovery failed for %s, falling back to WebSocket: %s", server.label, http_exc
                )
                try:
                    tools = await self.discover_via_websocket(server)
                except MCPError as ws_exc:
                    logger.error("All discovery methods failed for %s", server.label)
                    raise DiscoveryError(
                        server.label, http_error=http_exc, websocket_error=ws_exc
                    ) from ws_exc
                transport = "websocket"

            span.set_attribute(ATTR_TRANSPORT, transport)
            span.set_attribute(ATTR_TOOL_COUNT, len(tools))

        self._store.replace_tools(server.id, tools)
        logger.info("Discovered %d tool(s) on %s via %s", len(tools), server.label, transport)
        return tools

    async def discover_via_http(self, server: ServerEndpoint) -> list[ToolDescriptor]:
        """POST ``tools/list`` to the server's base URL.  Does not touch the store."""
        result = await self._http.send(server.base_url, tools_list_request(uuid4().hex))
        return self._map(result, server)

    async def discover_via_websocket(self, server: ServerEndpoint) -> list[ToolDescriptor]:
        """Run ``tools/list`` in a fresh WebSocket session.  Does not touch the store."""
        async with JsonRpcWebSocketSession(server.base_url, self._settings) as session:
            result = await session.request("tools/list")
        return self._map(result, server)

    def _map(self, result: Any, server: ServerEndpoint) -> list[ToolDescriptor]:
        skipped: list[str] = []
        tools = map_tools(result, server.id, default_scope=self._settings.default_scope, warnings=skipped)
        if skipped:
            logger.warning("Skipped %d malformed tool entries from %s", len(skipped), server.label)
        return tools
