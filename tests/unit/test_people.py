"""Unit tests for responsible-party resolution and assignment filters."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from taskq.exceptions import NotFoundError
from taskq.models.paging import PageResult
from taskq.models.task import Task
from taskq.models.user import ResolvedIdentity
from taskq.services.people import (
    ResponsibleUserFiltering,
    assignee_fragment,
    filter_tasks_by_responsible_user,
    resolve_responsible_user,
)


class TestResolveResponsibleUser:
    """Tests for resolve_responsible_user."""

    def test_no_identifier(self, mock_client: MagicMock) -> None:
        """No identifier should resolve to None without a remote call."""
        assert asyncio.run(resolve_responsible_user(mock_client, None)) is None
        mock_client.get_collaborators.assert_not_called()

    def test_match_by_id(self, mock_client: MagicMock) -> None:
        resolved = asyncio.run(resolve_responsible_user(mock_client, "u2"))
        assert resolved == ResolvedIdentity(id="u2", email="john@example.com", display_name="John Doe")

    def test_email_is_case_insensitive(self, mock_client: MagicMock) -> None:
        resolved = asyncio.run(resolve_responsible_user(mock_client, "JOHN@EXAMPLE.COM"))
        assert resolved is not None
        assert resolved.id == "u2"

    def test_name_is_case_insensitive(self, mock_client: MagicMock) -> None:
        resolved = asyncio.run(resolve_responsible_user(mock_client, "jane roe"))
        assert resolved is not None
        assert resolved.id == "u3"

    def test_id_wins_over_name(self, mock_client: MagicMock) -> None:
        """An exact id match should win even if a name also matches."""
        mock_client.get_collaborators = AsyncMock(
            return_value=PageResult(
                items=[
                    {"id": "x1", "name": "u9", "email": "a@example.com"},
                    {"id": "u9", "name": "Other", "email": "b@example.com"},
                ]
            )
        )
        resolved = asyncio.run(resolve_responsible_user(mock_client, "u9"))
        assert resolved is not None
        assert resolved.email == "b@example.com"

    def test_no_match_names_identifier(self, mock_client: MagicMock) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            asyncio.run(resolve_responsible_user(mock_client, "nobody@example.com"))
        assert "nobody@example.com" in str(exc_info.value)

    def test_no_match_suggests_similar(self, mock_client: MagicMock) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            asyncio.run(resolve_responsible_user(mock_client, "John"))
        assert "John Doe" in exc_info.value.suggestions

    def test_walks_every_collaborator_page(self, mock_client: MagicMock) -> None:
        mock_client.get_collaborators = AsyncMock(
            side_effect=[
                PageResult(items=[{"id": "a", "name": "A"}], next_cursor="c1"),
                PageResult(items=[{"id": "b", "name": "Bee", "email": "bee@example.com"}]),
            ]
        )
        resolved = asyncio.run(resolve_responsible_user(mock_client, "bee"))
        assert resolved is not None
        assert resolved.id == "b"
        assert mock_client.get_collaborators.await_count == 2


class TestAssigneeFragment:
    """Tests for assignee_fragment."""

    def test_resolved_user(self) -> None:
        resolved = ResolvedIdentity(id="u2", email="john@example.com")
        assert assignee_fragment(resolved) == "assigned to: john@example.com"

    def test_resolved_user_wins_over_mode(self) -> None:
        resolved = ResolvedIdentity(id="u2", email="john@example.com")
        assert assignee_fragment(resolved, "all") == "assigned to: john@example.com"

    def test_default_is_unassigned_or_me(self) -> None:
        assert assignee_fragment() == "!assigned to: others"

    def test_assigned(self) -> None:
        assert assignee_fragment(None, ResponsibleUserFiltering.ASSIGNED) == "assigned to: others"

    def test_all_is_empty(self) -> None:
        assert assignee_fragment(None, "all") == ""


class TestFilterTasksByResponsibleUser:
    """Tests for filter_tasks_by_responsible_user."""

    @pytest.fixture
    def tasks(self) -> list[Task]:
        return [
            Task(id="1", content="mine", project_id="p", responsible_uid="u1"),
            Task(id="2", content="theirs", project_id="p", responsible_uid="u2"),
            Task(id="3", content="nobody", project_id="p"),
        ]

    def test_resolved(self, tasks: list[Task]) -> None:
        result = filter_tasks_by_responsible_user(
            tasks, current_user_id="u1", resolved=ResolvedIdentity(id="u2")
        )
        assert [t.id for t in result] == ["2"]

    def test_unassigned_or_me(self, tasks: list[Task]) -> None:
        result = filter_tasks_by_responsible_user(tasks, current_user_id="u1")
        assert [t.id for t in result] == ["1", "3"]

    def test_assigned(self, tasks: list[Task]) -> None:
        result = filter_tasks_by_responsible_user(tasks, current_user_id="u1", filtering="assigned")
        assert [t.id for t in result] == ["2"]

    def test_all(self, tasks: list[Task]) -> None:
        result = filter_tasks_by_responsible_user(tasks, current_user_id="u1", filtering="all")
        assert len(result) == 3
