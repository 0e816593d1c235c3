"""MCP server for taskq.

Exposes the find tools over the Model Context Protocol on stdio. Every tool
call is delegated to ``taskq.handlers`` and answered with the text summary
followed by the structured payload.
"""

import asyncio
import json
import logging
import signal
import sys
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool, ToolAnnotations

from taskq.client import HttpTodoistClient, TodoistClient
from taskq.config import Settings, load_settings
from taskq.exceptions import TaskqError
from taskq.handlers import HandlerContext, dispatch
from taskq.mcp.tools import TOOL_SCHEMAS

logger = logging.getLogger(__name__)


class ServiceRegistry:
    """Registry for settings and the remote client.

    Both are created lazily on first use and can be overridden for
    testing.
    """

    def __init__(self) -> None:
        self._settings: Settings | None = None
        self._client: TodoistClient | None = None

    def reset(self) -> None:
        """Forget settings and client. Useful for testing."""
        self._settings = None
        self._client = None

    def set_settings(self, settings: Settings) -> None:
        """Override the settings. Useful for testing."""
        self._settings = settings

    def set_client(self, client: TodoistClient) -> None:
        """Override the remote client. Useful for testing."""
        self._client = client

    @property
    def settings(self) -> Settings:
        """Get the settings, loading them lazily if needed."""
        if self._settings is None:
            self._settings = load_settings()
        return self._settings

    @property
    def client(self) -> TodoistClient:
        """Get the remote client, creating it lazily if needed."""
        if self._client is None:
            self._client = HttpTodoistClient.from_settings(self.settings)
        return self._client

    async def aclose(self) -> None:
        """Close the remote client if one was created."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


# Global registry instance
_registry = ServiceRegistry()


def get_registry() -> ServiceRegistry:
    """Get the global service registry."""
    return _registry


def get_handler_context() -> HandlerContext:
    """Build a HandlerContext from the global registry."""
    return HandlerContext(client=_registry.client, limits=_registry.settings.limits)


def remove_null_fields(value: Any) -> Any:
    """Recursively drop None-valued keys from dictionaries."""
    if isinstance(value, dict):
        return {k: remove_null_fields(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [remove_null_fields(v) for v in value]
    return value


def strip_emails(value: Any) -> Any:
    """Recursively drop "email" keys from dictionaries."""
    if isinstance(value, dict):
        return {k: strip_emails(v) for k, v in value.items() if k != "email"}
    if isinstance(value, list):
        return [strip_emails(v) for v in value]
    return value


def format_tool_result(
    result: dict[str, Any], settings: Settings
) -> list[TextContent] | tuple[list[TextContent], dict[str, Any]]:
    """Convert a handler result into MCP content.

    Args:
        result: Handler output with "text" and "structured" keys.
        settings: Decides email stripping and the structured channel.

    Returns:
        The text block plus a JSON text block, or, with structured content
        enabled, the text block and the structured payload.
    """
    structured = remove_null_fields(result["structured"])
    if settings.features.strip_emails:
        structured = strip_emails(structured)

    text = TextContent(type="text", text=result["text"])
    if settings.structured_content:
        return [text], structured
    return [text, TextContent(type="text", text=json.dumps(structured, indent=2))]


# Create MCP server
server = Server("taskq")


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List available MCP tools."""
    tools = []
    for name, schema in TOOL_SCHEMAS.items():
        annotations = schema.get("annotations")
        tools.append(
            Tool(
                name=name,
                description=schema["description"],
                inputSchema=schema["inputSchema"],
                annotations=ToolAnnotations(**annotations) if annotations else None,
            )
        )
    return tools


@server.call_tool()
async def call_tool(
    name: str, arguments: dict[str, Any]
) -> list[TextContent] | tuple[list[TextContent], dict[str, Any]]:
    """Handle tool invocations.

    Failures propagate; the MCP server turns them into an error result
    (``isError``) carrying the exception message.
    """
    try:
        result = await dispatch(get_handler_context(), name, arguments)
    except TaskqError as e:
        logger.info("Tool %s failed: %s", name, e)
        raise
    except Exception:
        logger.exception("Error handling tool %s", name)
        raise
    return format_tool_result(result, _registry.settings)


async def run_server() -> None:
    """Run the MCP server."""
    # stdout is reserved for the MCP protocol
    print("taskq MCP server starting...", file=sys.stderr)

    try:
        async with stdio_server() as (read_stream, write_stream):
            print("taskq MCP server ready", file=sys.stderr)
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        await _registry.aclose()


def _handle_shutdown(signum: int, frame: Any) -> None:
    """Handle shutdown signals gracefully."""
    print("\ntaskq MCP server shutting down...", file=sys.stderr)
    sys.exit(0)


def main() -> None:
    """Entry point for the taskq-mcp command."""
    signal.signal(signal.SIGINT, _handle_shutdown)
    signal.signal(signal.SIGTERM, _handle_shutdown)

    try:
        asyncio.run(run_server())
    except KeyboardInterrupt:
        print("\ntaskq MCP server shutting down...", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    main()
