"""CatalogMapper — converts raw ``tools/list`` results into ToolDescriptors.

Servers disagree on field casing: the protocol documents ``name``,
``description``, ``inputSchema`` and ``scope``/``namespace``, but some
servers emit PascalCase (``Name``, ``Namespace``, ``InputSchema``).  Both are
accepted; the lowercase key wins when a server sends both.
"""

from __future__ import annotations

import logging
from typing import Any

from toolbridge.catalog.models import GLOBAL_SCOPE, ToolDescriptor
from toolbridge.protocols.errors import ProtocolError

logger = logging.getLogger(__name__)

_NAME_KEYS = ("name", "Name")
_DESCRIPTION_KEYS = ("description", "Description")
_SCOPE_KEYS = ("scope", "namespace", "Scope", "Namespace")
_SCHEMA_KEYS = ("inputSchema", "input_schema", "InputSchema")


def extract_tool_entries(result: Any) -> list[Any]:
    """Pull the ``tools`` array out of a ``tools/list`` result.

    Raises:
        ProtocolError: If *result* carries no tools array.
    """
    if isinstance(result, list):
        return result
    if isinstance(result, dict):
        for key in ("tools", "Tools"):
            tools = result.get(key)
            if isinstance(tools, list):
                return tools
    raise ProtocolError("tools/list result has no 'tools' array")


def map_tools(
    result: Any,
    server_id: str,
    *,
    default_scope: str = GLOBAL_SCOPE,
    warnings: list[str] | None = None,
) -> list[ToolDescriptor]:
    """Map a ``tools/list`` result (object or bare array) to descriptors.

    Unusable entries are skipped: each skip is logged and, when *warnings*
    is given, appended to it.  Later entries reusing an earlier name are
    dropped so that names stay unique per server.
    """
    descriptors: list[ToolDescriptor] = []
    seen: set[str] = set()

    for index, entry in enumerate(extract_tool_entries(result)):
        problem: str | None = None
        descriptor: ToolDescriptor | None = None

        if not isinstance(entry, dict):
            problem = f"entry is a {type(entry).__name__}, not an object"
        else:
            name = _first(entry, _NAME_KEYS)
            if not isinstance(name, str) or not name.strip():
                problem = "missing or empty 'name'"
            elif name in seen:
                problem = f"duplicate tool name {name!r}"
            else:
                descriptor = ToolDescriptor.create(
                    server_id=server_id,
                    name=name,
                    description=_optional_str(_first(entry, _DESCRIPTION_KEYS)),
                    scope=_optional_str(_first(entry, _SCOPE_KEYS)) or default_scope,
                    input_schema=_first(entry, _SCHEMA_KEYS),
                )

        if descriptor is None:
            logger.warning("Skipping tool entry #%d from server %s: %s", index, server_id, problem)
            if warnings is not None:
                warnings.append(f"entry #{index}: {problem}")
            continue

        seen.add(descriptor.name)
        descriptors.append(descriptor)

    return descriptors


def _first(entry: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = entry.get(key)
        if value is not None:
            return value
    return None


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)
