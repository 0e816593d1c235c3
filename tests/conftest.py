"""Pytest fixtures for taskq tests."""

from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from taskq.config import Limits
from taskq.handlers import HandlerContext
from taskq.models.paging import PageResult
from taskq.models.user import TzInfo, User

LIST_METHODS = (
    "get_tasks",
    "get_tasks_by_filter",
    "get_completed_tasks_by_completion_date",
    "get_completed_tasks_by_due_date",
    "get_projects",
    "get_sections",
    "get_comments",
    "get_collaborators",
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep real credentials and config files out of every test."""
    for name in (
        "TODOIST_API_KEY",
        "TODOIST_API_TOKEN",
        "TODOIST_BASE_URL",
        "TASKQ_STRIP_EMAILS",
        "USE_STRUCTURED_CONTENT",
        "TASKQ_CONFIG",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("taskq.config.DEFAULT_CONFIG_PATH", tmp_path / "no-config.yaml")


@pytest.fixture
def user() -> User:
    """The authenticated user, two hours ahead of UTC.

    Returns:
        User with inbox project "inbox-123".
    """
    return User(
        id="u1",
        email="me@example.com",
        full_name="Me Myself",
        inbox_project_id="inbox-123",
        tz_info=TzInfo(timezone="Europe/Athens", gmt_string="+02:00"),
    )


@pytest.fixture
def make_task() -> Callable[..., dict[str, Any]]:
    """Factory for raw task records as returned by the API."""

    def _make(task_id: str, content: str = "Task", **fields: Any) -> dict[str, Any]:
        record: dict[str, Any] = {
            "id": task_id,
            "content": content,
            "description": "",
            "project_id": "p1",
            "priority": 1,
            "labels": [],
            "checked": False,
            "child_order": 0,
        }
        record.update(fields)
        return record

    return _make


@pytest.fixture
def collaborators() -> list[dict[str, Any]]:
    """Raw collaborator records."""
    return [
        {"id": "u1", "name": "Me Myself", "email": "me@example.com"},
        {"id": "u2", "name": "John Doe", "email": "john@example.com"},
        {"id": "u3", "name": "Jane Roe", "email": "jane@example.com"},
    ]


@pytest.fixture
def mock_client(user: User, collaborators: list[dict[str, Any]]) -> MagicMock:
    """A TodoistClient double whose list methods return empty pages.

    Returns:
        MagicMock with AsyncMock methods.
    """
    client = MagicMock()
    client.get_user = AsyncMock(return_value=user)
    for name in LIST_METHODS:
        setattr(client, name, AsyncMock(return_value=PageResult(items=[])))
    client.get_collaborators = AsyncMock(return_value=PageResult(items=collaborators))
    client.get_comment = AsyncMock()
    client.get_task = AsyncMock()
    client.get_project = AsyncMock()
    client.add_section = AsyncMock()
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def ctx(mock_client: MagicMock) -> HandlerContext:
    """Handler context around the mock client with default limits."""
    return HandlerContext(client=mock_client, limits=Limits())
