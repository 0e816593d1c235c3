"""Config CLI commands for taskq."""

from typing import Any

import click
from rich.console import Console
from rich.tree import Tree

from taskq.config import load_settings

console = Console()


def _format_value(value: Any) -> str:
    """Format a value for display.

    Args:
        value: The value to format.

    Returns:
        Formatted string representation.
    """
    if value is None:
        return "[dim]not set[/dim]"
    if isinstance(value, bool):
        return "[green]true[/green]" if value else "[red]false[/red]"
    return str(value)


def _render_dict_tree(tree: Tree, d: dict[str, Any]) -> None:
    """Recursively render a dictionary as a tree."""
    for key, value in d.items():
        if isinstance(value, dict):
            branch = tree.add(f"[cyan]{key}[/cyan]")
            _render_dict_tree(branch, value)
        else:
            tree.add(f"[cyan]{key}[/cyan]: {_format_value(value)}")


@click.group()
def config() -> None:
    """View configuration."""
    pass


@config.command(name="show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show the effective configuration with the API token masked.

    Examples:
        taskq config show
        taskq --config ./taskq.yaml config show
    """
    settings = load_settings(ctx.obj.get("config_path"))
    tree = Tree("[bold]Configuration[/bold]")
    _render_dict_tree(tree, settings.masked())
    console.print(tree)
