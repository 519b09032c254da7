"""``toolbridge tools`` — discover and call tools on MCP servers."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

from toolbridge.cli_commands._output import console, print_result, print_tools_json, print_tools_table

if TYPE_CHECKING:
    from toolbridge.catalog.models import ServerEndpoint, ToolDescriptor
    from toolbridge.config import ClientSettings

_CLI_SERVER_ID = "cli"

_config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML file with client settings.",
)


@click.group()
def tools() -> None:
    """Discover and call tools."""


@tools.command("discover")
@click.argument("url")
@_config_option
@click.option("--json", "as_json", is_flag=True, help="Print descriptors as JSON.")
def discover(url: str, config_path: str | None, as_json: bool) -> None:
    """Discover the tools exposed by the MCP server at URL."""
    from toolbridge.protocols.mcp.discovery import DiscoveryCoordinator

    settings = _load_settings(config_path)
    server = _server(url)

    async def _discover() -> list[ToolDescriptor]:
        async with DiscoveryCoordinator(settings=settings) as coordinator:
            return await coordinator.discover(server)

    try:
        descriptors = asyncio.run(_discover())
    except Exception as exc:
        console.print(f"[red]Discovery error:[/red] {exc}")
        sys.exit(1)

    if as_json:
        print_tools_json(descriptors)
        return

    if not descriptors:
        console.print("[yellow]No tools discovered.[/yellow]")
        return

    print_tools_table(descriptors)


@tools.command("call")
@click.argument("url")
@click.argument("tool")
@click.argument("args_json", required=False, default="")
@_config_option
def call(url: str, tool: str, args_json: str, config_path: str | None) -> None:
    """Call TOOL on the MCP server at URL with ARGS_JSON (a JSON object)."""
    from toolbridge.protocols.mcp.invoker import ToolInvoker

    settings = _load_settings(config_path)
    server = _server(url)

    async def _call() -> str:
        async with ToolInvoker(settings) as invoker:
            return await invoker.call(server, tool, args_json)

    try:
        result = asyncio.run(_call())
    except Exception as exc:
        console.print(f"[red]Invocation error:[/red] {exc}")
        sys.exit(1)

    print_result(result)


def _load_settings(config_path: str | None) -> ClientSettings:
    from toolbridge.config import ClientSettings, SettingsLoader

    if config_path is None:
        return ClientSettings()
    try:
        return SettingsLoader(Path(config_path)).load()
    except Exception as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        sys.exit(1)


def _server(url: str) -> ServerEndpoint:
    from toolbridge.catalog.models import ServerEndpoint

    return ServerEndpoint(id=_CLI_SERVER_ID, base_url=url)
