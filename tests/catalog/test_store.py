"""Tests for the in-memory catalog store and server registry."""

from __future__ import annotations

import threading

from toolbridge.catalog.models import ServerEndpoint, ToolDescriptor
from toolbridge.catalog.store import (
    CatalogStore,
    InMemoryCatalogStore,
    InMemoryServerRegistry,
    ServerRegistry,
)


def _tools(server_id: str, *names: str) -> list[ToolDescriptor]:
    return [ToolDescriptor.create(server_id=server_id, name=n) for n in names]


class TestInMemoryCatalogStore:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(InMemoryCatalogStore(), CatalogStore)

    def test_unknown_server_is_empty(self) -> None:
        assert InMemoryCatalogStore().list_tools("nope") == []

    def test_replace_overwrites_previous_set(self) -> None:
        store = InMemoryCatalogStore()
        store.replace_tools("s", _tools("s", "a", "b"))
        store.replace_tools("s", _tools("s", "c"))
        assert [t.name for t in store.list_tools("s")] == ["c"]

    def test_replace_with_empty_clears(self) -> None:
        store = InMemoryCatalogStore()
        store.replace_tools("s", _tools("s", "a"))
        store.replace_tools("s", [])
        assert store.list_tools("s") == []
        assert store.servers() == ["s"]

    def test_servers_are_independent(self) -> None:
        store = InMemoryCatalogStore()
        store.replace_tools("s1", _tools("s1", "a"))
        store.replace_tools("s2", _tools("s2", "b"))
        assert [t.name for t in store.list_tools("s1")] == ["a"]
        assert sorted(store.servers()) == ["s1", "s2"]

    def test_caller_mutation_does_not_leak(self) -> None:
        store = InMemoryCatalogStore()
        tools = _tools("s", "a")
        store.replace_tools("s", tools)
        tools.append(ToolDescriptor.create(server_id="s", name="b"))
        store.list_tools("s").clear()
        assert [t.name for t in store.list_tools("s")] == ["a"]

    def test_readers_never_see_partial_sets(self) -> None:
        store = InMemoryCatalogStore()
        old = _tools("s", *[f"old{i}" for i in range(50)])
        new = _tools("s", *[f"new{i}" for i in range(50)])
        store.replace_tools("s", old)
        seen: list[set[str]] = []

        def reader() -> None:
            for _ in range(200):
                seen.append({t.name[:3] for t in store.list_tools("s")})

        thread = threading.Thread(target=reader)
        thread.start()
        for _ in range(100):
            store.replace_tools("s", new)
            store.replace_tools("s", old)
        thread.join()

        assert all(len(prefixes) == 1 for prefixes in seen)


class TestInMemoryServerRegistry:
    def test_lookup(self) -> None:
        server = ServerEndpoint(id="srv-1", base_url="https://mcp.example")
        registry = InMemoryServerRegistry([server])
        assert isinstance(registry, ServerRegistry)
        assert registry.get_server("srv-1") is server
        assert registry.get_server("srv-2") is None

    def test_add(self) -> None:
        registry = InMemoryServerRegistry()
        registry.add(ServerEndpoint(id="s", base_url="http://x"))
        assert registry.get_server("s") is not None
