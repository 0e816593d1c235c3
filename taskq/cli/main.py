"""Main CLI entry point for taskq."""

import asyncio
import logging
import sys
from pathlib import Path

import click
from rich.console import Console

from taskq.cli.config import config
from taskq.cli.run import list_tools, run_tool
from taskq.config import load_settings
from taskq.exceptions import TaskqError

console = Console()


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to a config file",
)
@click.option("--debug/--no-debug", default=False, help="Show debug information")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, debug: bool) -> None:
    """taskq - query a Todoist account from the command line or over MCP."""
    # stdout carries the MCP protocol, so logs always go to stderr
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["debug"] = debug


@cli.command()
@click.pass_context
def serve(ctx: click.Context) -> None:
    """Run the MCP server on stdio."""
    from taskq.mcp.server import get_registry, run_server

    get_registry().set_settings(load_settings(ctx.obj.get("config_path")))
    try:
        asyncio.run(run_server())
    except KeyboardInterrupt:
        print("\ntaskq MCP server shutting down...", file=sys.stderr)


# Register commands
cli.add_command(run_tool)
cli.add_command(list_tools)
cli.add_command(config)


def main() -> None:
    """Main entry point with error handling."""
    try:
        cli()
    except TaskqError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    except Exception as e:
        if "--debug" in sys.argv:
            raise
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
