"""Tests for catalog models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from toolbridge.catalog.models import GLOBAL_SCOPE, ServerEndpoint, ToolDescriptor, tool_id


class TestServerEndpoint:
    def test_defaults(self) -> None:
        server = ServerEndpoint(id="srv-1", base_url="https://mcp.example")
        assert server.auth_type == "none"
        assert server.label == "https://mcp.example"

    def test_label_with_name(self) -> None:
        server = ServerEndpoint(id="srv-1", base_url="https://mcp.example", name="kb")
        assert server.label == "kb (https://mcp.example)"

    def test_frozen(self) -> None:
        server = ServerEndpoint(id="srv-1", base_url="https://mcp.example")
        with pytest.raises(ValidationError):
            server.base_url = "https://other"  # type: ignore[misc]

    def test_rejects_unknown_auth_type(self) -> None:
        with pytest.raises(ValidationError):
            ServerEndpoint(id="s", base_url="https://x", auth_type="basic")  # type: ignore[arg-type]


class TestToolDescriptor:
    def test_create_derives_stable_id(self) -> None:
        a = ToolDescriptor.create(server_id="srv-1", name="kb_search")
        b = ToolDescriptor.create(server_id="srv-1", name="kb_search")
        assert a.id == b.id == tool_id("srv-1", "kb_search")
        assert a == b

    def test_ids_differ_per_server(self) -> None:
        assert tool_id("srv-1", "t") != tool_id("srv-2", "t")

    def test_defaults(self) -> None:
        tool = ToolDescriptor.create(server_id="s", name="t")
        assert tool.scope == GLOBAL_SCOPE
        assert tool.description is None
        assert tool.input_schema is None
        assert tool.input_schema_json is None

    def test_qualified_name(self) -> None:
        assert ToolDescriptor.create(server_id="s", name="t").qualified_name == "t"
        assert ToolDescriptor.create(server_id="s", name="t", scope="kb").qualified_name == "kb.t"

    def test_input_schema_json(self) -> None:
        tool = ToolDescriptor.create(
            server_id="s", name="t", input_schema={"type": "object", "required": ["q"]}
        )
        assert tool.input_schema_json == '{"type":"object","required":["q"]}'
