"""Integration tests for CLI commands."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from click.testing import CliRunner

from taskq.cli.main import cli
from taskq.models.paging import PageResult


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def patched_client(mock_client: MagicMock, monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    """Make every CLI invocation use the mock client."""
    monkeypatch.setattr("taskq.cli.run.make_client", lambda settings: mock_client)
    return mock_client


class TestRunCommand:
    """Tests for taskq run."""

    def test_prints_summary(self, runner: CliRunner, patched_client: MagicMock, make_task) -> None:
        patched_client.get_tasks_by_filter.return_value = PageResult(items=[make_task("1", "Write report")])

        result = runner.invoke(cli, ["run", "find-tasks", "--args", '{"searchText": "report"}'])

        assert result.exit_code == 0
        assert 'Search results for "report": 1' in result.output
        assert "Write report" in result.output
        patched_client.aclose.assert_awaited_once()

    def test_json_output(self, runner: CliRunner, patched_client: MagicMock) -> None:
        patched_client.get_projects.return_value = PageResult(items=[{"id": "1", "name": "Work"}])

        result = runner.invoke(cli, ["run", "find-projects", "--json"])

        assert result.exit_code == 0
        assert '"name": "Work"' in result.output

    def test_validation_error_exits_1(self, runner: CliRunner, patched_client: MagicMock) -> None:
        result = runner.invoke(cli, ["run", "find-comments", "--args", "{}"])

        assert result.exit_code == 1
        assert "Error:" in result.output
        patched_client.aclose.assert_awaited_once()

    def test_bad_json(self, runner: CliRunner, patched_client: MagicMock) -> None:
        result = runner.invoke(cli, ["run", "find-tasks", "--args", "{not json"])

        assert result.exit_code == 2
        assert "not valid JSON" in result.output

    def test_missing_token(self, runner: CliRunner) -> None:
        """Without the patched client a missing token is reported as an error."""
        result = runner.invoke(cli, ["run", "find-projects"])

        assert result.exit_code == 1
        assert "No API token configured" in result.output


class TestToolsCommand:
    """Tests for taskq tools."""

    def test_lists_tools(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["tools"])

        assert result.exit_code == 0
        assert "find-tasks-by-date" in result.output


class TestConfigCommand:
    """Tests for taskq config show."""

    def test_show_masks_token(self, runner: CliRunner, tmp_path: Path) -> None:
        config = tmp_path / "config.yaml"
        config.write_text("apiToken: supersecret\n")

        result = runner.invoke(cli, ["--config", str(config), "config", "show"])

        assert result.exit_code == 0
        assert "supe…" in result.output
        assert "supersecret" not in result.output

    def test_show_defaults(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["config", "show"])

        assert result.exit_code == 0
        assert "not set" in result.output
        assert "https://api.todoist.com/api/v1" in result.output
