"""Tests for mapping tools/list results into descriptors."""

from __future__ import annotations

import logging

import pytest

from toolbridge.catalog.mapper import extract_tool_entries, map_tools
from toolbridge.catalog.models import tool_id
from toolbridge.protocols.errors import ProtocolError


class TestExtractToolEntries:
    def test_object_with_tools(self) -> None:
        assert extract_tool_entries({"tools": [{"name": "a"}]}) == [{"name": "a"}]

    def test_pascal_case_key(self) -> None:
        assert extract_tool_entries({"Tools": []}) == []

    def test_bare_array(self) -> None:
        assert extract_tool_entries([{"name": "a"}]) == [{"name": "a"}]

    @pytest.mark.parametrize("result", [None, {}, {"tools": "nope"}, "tools", 3])
    def test_missing_array(self, result: object) -> None:
        with pytest.raises(ProtocolError, match="no 'tools' array"):
            extract_tool_entries(result)


class TestMapTools:
    def test_lowercase_fields(self) -> None:
        schema = {"type": "object", "properties": {"q": {"type": "string"}}}
        [tool] = map_tools(
            {"tools": [{"name": "kb_search", "description": "Search", "inputSchema": schema}]},
            "srv-1",
        )
        assert tool.name == "kb_search"
        assert tool.description == "Search"
        assert tool.input_schema == schema
        assert tool.scope == "global"
        assert tool.server_id == "srv-1"
        assert tool.id == tool_id("srv-1", "kb_search")

    def test_pascal_case_fields(self) -> None:
        [tool] = map_tools(
            {"tools": [{"Name": "x", "Description": "d", "Namespace": "kb", "InputSchema": {}}]},
            "srv-1",
        )
        assert (tool.name, tool.description, tool.scope, tool.input_schema) == ("x", "d", "kb", {})

    def test_lowercase_wins(self) -> None:
        [tool] = map_tools([{"name": "low", "Name": "High", "scope": "a", "Namespace": "b"}], "s")
        assert tool.name == "low"
        assert tool.scope == "a"

    def test_namespace_used_as_scope(self) -> None:
        [tool] = map_tools([{"name": "t", "namespace": "files"}], "s")
        assert tool.scope == "files"

    def test_custom_default_scope(self) -> None:
        [tool] = map_tools([{"name": "t"}], "s", default_scope="local")
        assert tool.scope == "local"

    def test_schema_kept_verbatim(self) -> None:
        schema = {"type": "object", "x-custom": [1, {"deep": None}]}
        [tool] = map_tools([{"name": "t", "input_schema": schema}], "s")
        assert tool.input_schema == schema

    def test_empty_catalog(self) -> None:
        assert map_tools({"tools": []}, "s") == []

    def test_skips_invalid_entries(self, caplog: pytest.LogCaptureFixture) -> None:
        warnings: list[str] = []
        with caplog.at_level(logging.WARNING, logger="toolbridge.catalog.mapper"):
            tools = map_tools(
                {"tools": [{"name": "ok"}, {"description": "nameless"}, "junk", {"name": "  "}]},
                "srv-1",
                warnings=warnings,
            )

        assert [t.name for t in tools] == ["ok"]
        assert warnings == [
            "entry #1: missing or empty 'name'",
            "entry #2: entry is a str, not an object",
            "entry #3: missing or empty 'name'",
        ]
        assert "Skipping tool entry #1 from server srv-1" in caplog.text

    def test_duplicate_names_keep_first(self) -> None:
        warnings: list[str] = []
        tools = map_tools(
            [{"name": "t", "description": "first"}, {"name": "t", "description": "second"}],
            "s",
            warnings=warnings,
        )
        assert len(tools) == 1
        assert tools[0].description == "first"
        assert warnings == ["entry #1: duplicate tool name 't'"]

    def test_non_string_description_stringified(self) -> None:
        [tool] = map_tools([{"name": "t", "description": 42}], "s")
        assert tool.description == "42"
