"""Catalog store and server registry — the collaborators discovery writes to.

Persistence is owned by the host application.  This module defines the two
interfaces the MCP client consumes and thread-safe in-memory implementations
used by the CLI and by tests.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable

    from toolbridge.catalog.models import ServerEndpoint, ToolDescriptor


@runtime_checkable
class CatalogStore(Protocol):
    """Holds the discovered tool set of each server."""

    def replace_tools(self, server_id: str, tools: list[ToolDescriptor]) -> None:
        """Replace every tool of *server_id* with *tools* in one step."""
        ...

    def list_tools(self, server_id: str) -> list[ToolDescriptor]:
        """Return the current tool set of *server_id*."""
        ...


@runtime_checkable
class ServerRegistry(Protocol):
    """Resolves opaque server handles to endpoints."""

    def get_server(self, server_id: str) -> ServerEndpoint | None: ...


class InMemoryCatalogStore:
    """Dict-backed :class:`CatalogStore`.

    Each server's tools are stored as an immutable tuple that is swapped
    under a lock, so readers see either the old set or the new one.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tools: dict[str, tuple[ToolDescriptor, ...]] = {}

    def replace_tools(self, server_id: str, tools: list[ToolDescriptor]) -> None:
        snapshot = tuple(tools)
        with self._lock:
            self._tools[server_id] = snapshot

    def list_tools(self, server_id: str) -> list[ToolDescriptor]:
        with self._lock:
            snapshot = self._tools.get(server_id, ())
        return list(snapshot)

    def servers(self) -> list[str]:
        with self._lock:
            return list(self._tools)


class InMemoryServerRegistry:
    """Dict-backed :class:`ServerRegistry`."""

    def __init__(self, servers: Iterable[ServerEndpoint] = ()) -> None:
        self._servers: dict[str, ServerEndpoint] = {s.id: s for s in servers}

    def add(self, server: ServerEndpoint) -> None:
        self._servers[server.id] = server

    def get_server(self, server_id: str) -> ServerEndpoint | None:
        return self._servers.get(server_id)
