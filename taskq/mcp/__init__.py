"""MCP server exposing the taskq find tools."""

from taskq.mcp.server import (
    ServiceRegistry,
    get_handler_context,
    get_registry,
    main,
)

__all__ = [
    "ServiceRegistry",
    "get_registry",
    "get_handler_context",
    "main",
]
