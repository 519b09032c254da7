"""toolbridge CLI entrypoint."""

from __future__ import annotations

import logging

import click
from rich.logging import RichHandler

from toolbridge import __version__

_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


@click.group()
@click.version_option(version=__version__, prog_name="toolbridge")
@click.option(
    "--log-level",
    type=click.Choice(_LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging verbosity.",
)
def main(log_level: str) -> None:
    """toolbridge — discover and call tools on MCP servers."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


# Register subcommands
from toolbridge.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
