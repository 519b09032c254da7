"""Catalog models — MCP server endpoints and the tools they expose.

A :class:`ServerEndpoint` is owned by the external server registry and is
passed around by value.  A :class:`ToolDescriptor` is the canonical, locally
held description of one remote tool, produced by discovery.
"""

from __future__ import annotations

import json
import uuid
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

GLOBAL_SCOPE = "global"

# Namespace for deterministic tool ids; rediscovering an unchanged catalog
# must reproduce the same descriptors.
_TOOL_ID_NAMESPACE = uuid.UUID("6f0f4a52-3b57-4f9a-9a53-8d8c0e3c51b1")

AuthType = Literal["none", "apikey", "oauth"]


class ServerEndpoint(BaseModel):
    """A remote MCP server, as registered by the application."""

    model_config = ConfigDict(frozen=True)

    id: str
    base_url: str
    auth_type: AuthType = "none"
    name: str = ""

    @property
    def label(self) -> str:
        """Human-readable identifier for logs and error messages."""
        return f"{self.name} ({self.base_url})" if self.name else self.base_url


class ToolDescriptor(BaseModel):
    """A tool discovered on an MCP server."""

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID
    server_id: str
    name: str
    description: str | None = None
    scope: str | None = GLOBAL_SCOPE
    input_schema: Any = Field(default=None)

    @classmethod
    def create(
        cls,
        *,
        server_id: str,
        name: str,
        description: str | None = None,
        scope: str | None = GLOBAL_SCOPE,
        input_schema: Any = None,
    ) -> ToolDescriptor:
        """Build a descriptor whose id is derived from ``(server_id, name)``."""
        return cls(
            id=tool_id(server_id, name),
            server_id=server_id,
            name=name,
            description=description,
            scope=scope,
            input_schema=input_schema,
        )

    @property
    def qualified_name(self) -> str:
        """``scope.name``, or the bare name for tools in the global scope."""
        if not self.scope or self.scope == GLOBAL_SCOPE:
            return self.name
        return f"{self.scope}.{self.name}"

    @property
    def input_schema_json(self) -> str | None:
        """The input schema as raw JSON text, as persisted by catalog stores."""
        if self.input_schema is None:
            return None
        return json.dumps(self.input_schema, separators=(",", ":"))


def tool_id(server_id: str, name: str) -> uuid.UUID:
    """Return the stable local id for tool *name* on server *server_id*."""
    return uuid.uuid5(_TOOL_ID_NAMESPACE, f"{server_id}\x00{name}")
