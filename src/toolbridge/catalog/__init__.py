"""Tool catalog — endpoint/descriptor models, mapping, and stores."""

from toolbridge.catalog.mapper import map_tools
from toolbridge.catalog.models import GLOBAL_SCOPE, ServerEndpoint, ToolDescriptor
from toolbridge.catalog.store import (
    CatalogStore,
    InMemoryCatalogStore,
    InMemoryServerRegistry,
    ServerRegistry,
)

__all__ = [
    "GLOBAL_SCOPE",
    "CatalogStore",
    "InMemoryCatalogStore",
    "InMemoryServerRegistry",
    "ServerEndpoint",
    "ServerRegistry",
    "ToolDescriptor",
    "map_tools",
]
