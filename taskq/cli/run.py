"""Commands that run tools locally, without an MCP client."""

import asyncio
import json
import sys
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from taskq.client import HttpTodoistClient
from taskq.config import Settings, load_settings
from taskq.exceptions import TaskqError
from taskq.handlers import HandlerContext, dispatch
from taskq.mcp.server import remove_null_fields, strip_emails
from taskq.mcp.tools import TOOL_SCHEMAS

console = Console()


def make_client(settings: Settings) -> HttpTodoistClient:
    """Create the remote client for one CLI invocation."""
    return HttpTodoistClient.from_settings(settings)


async def _run(settings: Settings, tool: str, params: dict[str, Any]) -> dict[str, Any]:
    client = make_client(settings)
    try:
        return await dispatch(HandlerContext(client=client, limits=settings.limits), tool, params)
    finally:
        await client.aclose()


@click.command("run")
@click.argument("tool")
@click.option("--args", "args_json", default="{}", help="Tool arguments as a JSON object")
@click.option("--json", "as_json", is_flag=True, help="Also print the structured result")
@click.pass_context
def run_tool(ctx: click.Context, tool: str, args_json: str, as_json: bool) -> None:
    """Run one tool and print its summary.

    Examples:
        taskq run find-tasks --args '{"searchText": "report"}'
        taskq run find-projects --json
    """
    try:
        params = json.loads(args_json)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="--args") from e
    if not isinstance(params, dict):
        raise click.BadParameter("must be a JSON object", param_hint="--args")

    try:
        settings = load_settings(ctx.obj.get("config_path"))
        result = asyncio.run(_run(settings, tool, params))
    except TaskqError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    console.print(result["text"], markup=False, highlight=False, soft_wrap=True)
    if as_json:
        structured = remove_null_fields(result["structured"])
        if settings.features.strip_emails:
            structured = strip_emails(structured)
        console.print_json(json.dumps(structured))


@click.command("tools")
def list_tools() -> None:
    """List the available tools."""
    table = Table(title="Tools")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Description")
    for name, schema in TOOL_SCHEMAS.items():
        table.add_row(name, schema["description"])
    console.print(table)
