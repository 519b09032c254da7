"""toolbridge — MCP client engine for discovering and invoking remote tools."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from toolbridge.gateway import ToolGateway as ToolGateway
    from toolbridge.protocols.mcp.discovery import DiscoveryCoordinator as DiscoveryCoordinator
    from toolbridge.protocols.mcp.invoker import ToolInvoker as ToolInvoker

_LAZY_EXPORTS = {
    "ToolGateway": "toolbridge.gateway",
    "DiscoveryCoordinator": "toolbridge.protocols.mcp.discovery",
    "ToolInvoker": "toolbridge.protocols.mcp.invoker",
}


def __getattr__(name: str) -> object:
    module_path = _LAZY_EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'toolbridge' has no attribute {name!r}")
