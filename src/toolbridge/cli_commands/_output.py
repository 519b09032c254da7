"""Shared CLI output formatters."""

from __future__ import annotations

import json

from rich.console import Console
from rich.table import Table

from toolbridge.catalog.models import ToolDescriptor  # noqa: TC001

console = Console()


def print_tools_table(tools: list[ToolDescriptor], *, title: str = "Discovered Tools") -> None:
    """Pretty-print tool descriptors as a table."""
    table = Table(title=title)
    table.add_column("Name", style="cyan")
    table.add_column("Scope")
    table.add_column("Description")

    for tool in tools:
        table.add_row(tool.name, tool.scope or "-", _truncate(tool.description or ""))

    console.print(table)


def print_tools_json(tools: list[ToolDescriptor]) -> None:
    data = [tool.model_dump(mode="json") for tool in tools]
    console.print_json(json.dumps(data))


def print_result(result: str) -> None:
    """Print a tool result, pretty when it is JSON."""
    try:
        console.print_json(result)
    except json.JSONDecodeError:
        console.print(result)


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
