"""Integration tests for the MCP server."""

import asyncio
import json
import types
from contextlib import asynccontextmanager
from unittest.mock import MagicMock

import pytest
from mcp.types import CallToolRequest, CallToolRequestParams, CallToolResult

import taskq.mcp
import taskq.mcp.server as server_module
from taskq.config import Features, Settings
from taskq.exceptions import RemoteFailure, ValidationError
from taskq.mcp.server import (
    ServiceRegistry,
    call_tool,
    format_tool_result,
    get_registry,
    list_tools,
    remove_null_fields,
    run_server,
    server,
    strip_emails,
)
from taskq.mcp.tools import TOOL_SCHEMAS, ToolNames
from taskq.models.paging import PageResult


@pytest.fixture
def mcp_registry(mock_client: MagicMock) -> ServiceRegistry:
    """Point the global registry at the mock client.

    Returns:
        Configured ServiceRegistry.
    """
    registry = get_registry()
    registry.reset()
    registry.set_settings(Settings())
    registry.set_client(mock_client)
    yield registry
    registry.reset()


class TestServiceRegistry:
    """Tests for the ServiceRegistry class."""

    def test_registry_reset(self, mock_client: MagicMock) -> None:
        """reset should clear cached settings and client."""
        registry = ServiceRegistry()
        registry.set_client(mock_client)
        registry.set_settings(Settings(api_token="t"))
        registry.reset()
        assert registry._client is None
        assert registry._settings is None

    def test_settings_loaded_lazily(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TODOIST_API_KEY", "lazy-token")
        assert ServiceRegistry().settings.api_token == "lazy-token"

    def test_client_created_from_settings(self) -> None:
        registry = ServiceRegistry()
        registry.set_settings(Settings(api_token="t"))
        assert registry.client is registry.client

    def test_aclose_closes_client(self, mock_client: MagicMock) -> None:
        registry = ServiceRegistry()
        registry.set_client(mock_client)
        asyncio.run(registry.aclose())
        mock_client.aclose.assert_awaited_once()
        assert registry._client is None

    def test_aclose_without_client(self) -> None:
        asyncio.run(ServiceRegistry().aclose())


class TestPackage:
    """Tests for the taskq.mcp package surface."""

    def test_server_attribute_is_the_module(self) -> None:
        assert isinstance(taskq.mcp.server, types.ModuleType)
        assert taskq.mcp.server is server_module


class TestRunServer:
    """Tests for server shutdown."""

    def test_client_closed_when_transport_fails(
        self, mcp_registry: ServiceRegistry, mock_client: MagicMock, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        @asynccontextmanager
        async def broken_stdio():
            raise OSError("stdin closed")
            yield

        monkeypatch.setattr(server_module, "stdio_server", broken_stdio)
        with pytest.raises(OSError, match="stdin closed"):
            asyncio.run(run_server())
        mock_client.aclose.assert_awaited_once()
        assert mcp_registry._client is None


class TestListTools:
    """Tests for tool listing."""

    def test_every_tool_listed(self) -> None:
        tools = asyncio.run(list_tools())
        assert {t.name for t in tools} == set(TOOL_SCHEMAS)

    def test_find_tools_are_read_only(self) -> None:
        tools = {t.name: t for t in asyncio.run(list_tools())}
        assert tools[ToolNames.FIND_TASKS].annotations.readOnlyHint is True
        assert tools[ToolNames.ADD_SECTIONS].annotations.readOnlyHint is False


class TestCallTool:
    """Tests for call_tool."""

    def test_text_then_json(self, mcp_registry: ServiceRegistry, mock_client: MagicMock) -> None:
        mock_client.get_projects.return_value = PageResult(items=[{"id": "1", "name": "Work"}])
        content = asyncio.run(call_tool("find-projects", {}))
        assert len(content) == 2
        assert content[0].text.startswith("Projects: 1")
        payload = json.loads(content[1].text)
        assert payload["projects"][0]["name"] == "Work"
        # nextCursor was None and is dropped
        assert "nextCursor" not in payload

    def test_structured_channel(self, mcp_registry: ServiceRegistry) -> None:
        mcp_registry.set_settings(Settings(structured_content=True))
        content, structured = asyncio.run(call_tool("find-projects", {}))
        assert len(content) == 1
        assert structured["totalCount"] == 0

    def test_validation_error_propagates(self, mcp_registry: ServiceRegistry, mock_client: MagicMock) -> None:
        with pytest.raises(ValidationError, match="At least one filter"):
            asyncio.run(call_tool("find-tasks", {}))
        mock_client.get_tasks_by_filter.assert_not_called()

    def test_unexpected_error_propagates(self, mcp_registry: ServiceRegistry, mock_client: MagicMock) -> None:
        mock_client.get_projects.side_effect = RuntimeError("socket closed")
        with pytest.raises(RuntimeError, match="socket closed"):
            asyncio.run(call_tool("find-projects", {}))


def _call(name: str, arguments: dict) -> CallToolResult:
    """Send a tools/call request through the server's registered handler."""
    handler = server.request_handlers[CallToolRequest]
    request = CallToolRequest(method="tools/call", params=CallToolRequestParams(name=name, arguments=arguments))
    return asyncio.run(handler(request)).root


class TestCallToolResult:
    """Tests for the result an MCP client receives."""

    def test_success_is_not_an_error(self, mcp_registry: ServiceRegistry) -> None:
        result = _call("find-projects", {})
        assert result.isError is False
        assert result.content[0].text.startswith("Projects: 0")

    def test_validation_failure_is_flagged(self, mcp_registry: ServiceRegistry) -> None:
        result = _call("find-tasks", {})
        assert result.isError is True
        assert result.content[0].text.startswith("At least one filter")

    def test_unknown_tool_is_flagged(self, mcp_registry: ServiceRegistry) -> None:
        result = _call("nope", {})
        assert result.isError is True
        assert result.content[0].text == "Unknown tool: nope"

    def test_remote_failure_is_flagged(self, mcp_registry: ServiceRegistry, mock_client: MagicMock) -> None:
        mock_client.get_projects.side_effect = RemoteFailure("HTTP 503", status_code=503)
        result = _call("find-projects", {})
        assert result.isError is True
        assert result.content[0].text == "HTTP 503"


class TestFormatToolResult:
    """Tests for result post-processing."""

    def test_strip_emails_feature(self) -> None:
        result = {
            "text": "Collaborators",
            "structured": {"collaborators": [{"id": "u2", "name": "John", "email": "john@example.com"}]},
        }
        settings = Settings(features=Features(strip_emails=True), structured_content=True)
        _, structured = format_tool_result(result, settings)
        assert structured == {"collaborators": [{"id": "u2", "name": "John"}]}

    def test_remove_null_fields_is_recursive(self) -> None:
        assert remove_null_fields({"a": None, "b": [{"c": None, "d": 1}]}) == {"b": [{"d": 1}]}

    def test_strip_emails_keeps_other_keys(self) -> None:
        assert strip_emails([{"email": "x", "emailVerified": True}]) == [{"emailVerified": True}]
