"""
Integration tests for the CLI commands.
"""

import json

import pytest
from typer.testing import CliRunner
from unittest.mock import AsyncMock, patch

from eva_qa.core.models import ExplorationResult, Issue, IssueSeverity, StateGraph
from eva_qa.exceptions import BrowserLaunchError


@pytest.fixture
def runner():
    """Create a CLI runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    """Run from an empty directory so no config file is picked up."""
    monkeypatch.chdir(tmp_path)
    with patch("eva_qa.main.setup_logging"):
        yield


def _result(*severities):
    graph = StateGraph()
    graph.seal()
    issues = [
        Issue(type="responsive", severity=severity, rule="rule", description="desc", viewport="mobile")
        for severity in severities
    ]
    return ExplorationResult(graph=graph, issues=issues)


class TestCLIExplore:
    """Test the 'explore' CLI command."""

    def test_explore_help(self, runner):
        """Test help for explore command."""
        from eva_qa.main import app
        result = runner.invoke(app, ["explore", "--help"])
        assert result.exit_code == 0
        assert "--max-depth" in result.stdout
        assert "--viewport" in result.stdout

    def test_invalid_base_url_exits_with_config_error(self, runner):
        from eva_qa.main import EXIT_CONFIG_ERROR, app
        with patch("eva_qa.main._explore_async", new=AsyncMock()) as explore:
            result = runner.invoke(app, ["explore", "not-a-url"])

        assert result.exit_code == EXIT_CONFIG_ERROR
        assert "Configuration error" in result.stdout
        explore.assert_not_called()

    def test_unknown_viewport_exits_with_config_error(self, runner):
        from eva_qa.main import EXIT_CONFIG_ERROR, app
        result = runner.invoke(app, ["explore", "http://localhost:3000", "--viewport", "phablet"])

        assert result.exit_code == EXIT_CONFIG_ERROR

    def test_passing_run_writes_report(self, runner, tmp_path):
        from eva_qa.main import app
        explore = AsyncMock(return_value=_result(IssueSeverity.MINOR))
        with patch("eva_qa.main._explore_async", new=explore):
            result = runner.invoke(app, [
                "explore", "http://localhost:3000",
                "--max-depth", "2",
                "--viewport", "tablet",
                "--output", str(tmp_path / "reports"),
            ])

        assert result.exit_code == 0
        settings = explore.call_args.args[0]
        assert settings.exploration.max_depth == 2
        assert settings.exploration.viewports == ["tablet"]
        report = json.loads((tmp_path / "reports" / "exploration.json").read_text())
        assert report["issue_counts"]["minor"] == 1

    def test_threshold_failure(self, runner, tmp_path):
        from eva_qa.main import EXIT_THRESHOLD_FAILED, app
        with patch("eva_qa.main._explore_async", new=AsyncMock(return_value=_result(IssueSeverity.SERIOUS))):
            result = runner.invoke(app, ["explore", "http://localhost:3000", "-o", str(tmp_path)])

        assert result.exit_code == EXIT_THRESHOLD_FAILED
        assert "threshold" in result.stdout

    def test_threshold_allowance(self, runner, tmp_path):
        from eva_qa.main import app
        with patch("eva_qa.main._explore_async", new=AsyncMock(return_value=_result(IssueSeverity.SERIOUS))):
            result = runner.invoke(app, [
                "explore", "http://localhost:3000", "-o", str(tmp_path), "--max-serious", "1",
            ])

        assert result.exit_code == 0

    def test_browser_launch_failure(self, runner):
        from eva_qa.main import EXIT_THRESHOLD_FAILED, app
        failing = AsyncMock(side_effect=BrowserLaunchError("no chromium"))
        with patch("eva_qa.main._explore_async", new=failing):
            result = runner.invoke(app, ["explore", "http://localhost:3000"])

        assert result.exit_code == EXIT_THRESHOLD_FAILED
        assert "Could not start browser" in result.stdout
