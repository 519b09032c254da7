"""ToolGateway — handle-based entry point used by the orchestrator.

Resolves opaque server ids through a :class:`ServerRegistry` before running
discovery into a :class:`CatalogStore` or invoking a tool.  Post-call hooks run as
supervised background tasks so their failures are recorded, not lost.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from toolbridge.config import ClientSettings
from toolbridge.protocols.errors import InvocationError, ServerNotFoundError
from toolbridge.protocols.mcp.discovery import DiscoveryCoordinator
from toolbridge.protocols.mcp.http import JsonRpcHttpTransport
from toolbridge.protocols.mcp.invoker import ToolInvoker
from toolbridge.utils.tasks import TaskOutcome, TaskSupervisor

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

    from toolbridge.catalog.models import ServerEndpoint, ToolDescriptor
    from toolbridge.catalog.store import CatalogStore, ServerRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallRecord:
    """What a post-call hook learns about one finished invocation."""

    server_id: str
    tool_name: str
    arguments_json: str
    result: str | None = None
    error: InvocationError | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class ToolGateway:
    """Discovers and calls tools on servers identified by id.

    Usage::

        async with ToolGateway(registry, store) as gateway:
            await gateway.discover("srv-1")
            text = await gateway.call("srv-1", "kb_search", '{"query": "x"}')
    """

    def __init__(
        self,
        registry: ServerRegistry,
        store: CatalogStore | None = None,
        settings: ClientSettings | None = None,
        *,
        http: JsonRpcHttpTransport | None = None,
        post_call_hooks: Iterable[Callable[[CallRecord], Awaitable[object]]] = (),
    ) -> None:
        self._registry = registry
        self._settings = settings or ClientSettings()
        self._http = http or JsonRpcHttpTransport(self._settings)
        self._owns_http = http is None
        self._coordinator = DiscoveryCoordinator(store, self._settings, http=self._http)
        self._invoker = ToolInvoker(self._settings, http=self._http)
        self._hooks = list(post_call_hooks)
        self._supervisor = TaskSupervisor()

    async def __aenter__(self) -> ToolGateway:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Cancel outstanding hooks and release the pooled HTTP client."""
        await self._supervisor.shutdown()
        if self._owns_http:
            await self._http.aclose()

    @property
    def store(self) -> CatalogStore:
        return self._coordinator.store

    @property
    def supervisor(self) -> TaskSupervisor:
        return self._supervisor

    def resolve(self, server_id: str) -> ServerEndpoint:
        """Look up *server_id* in the registry.

        Raises:
            ServerNotFoundError: The registry does not know the id.
        """
        server = self._registry.get_server(server_id)
        if server is None:
            raise ServerNotFoundError(server_id)
        return server

    async def discover(self, server_id: str) -> list[ToolDescriptor]:
        return await self._coordinator.discover(self.resolve(server_id))

    def tools(self, server_id: str) -> list[ToolDescriptor]:
        """Return the catalog last discovered for *server_id*."""
        return self.store.list_tools(self.resolve(server_id).id)

    async def call(self, server_id: str, tool_name: str, args_json: str) -> str:
        """Invoke a tool and schedule post-call hooks with the outcome."""
        server = self.resolve(server_id)
        try:
            result = await self._invoker.call(server, tool_name, args_json)
        except InvocationError as exc:
            self._after_call(CallRecord(server.id, tool_name, args_json, error=exc))
            raise
        self._after_call(CallRecord(server.id, tool_name, args_json, result=result))
        return result

    async def drain(self) -> list[TaskOutcome]:
        """Wait for all scheduled post-call hooks and return their outcomes."""
        return await self._supervisor.drain()

    def _after_call(self, record: CallRecord) -> list[TaskOutcome]:
        outcomes = []
        for hook in self._hooks:
            name = f"post-call:{getattr(hook, '__name__', type(hook).__name__)}:{record.tool_name}"
            outcomes.append(self._supervisor.spawn(hook(record), name=name))
        if outcomes:
            logger.debug("Scheduled %d post-call hook(s) for %s", len(outcomes), record.tool_name)
        return outcomes
