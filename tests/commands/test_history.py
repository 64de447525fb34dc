"""Tests for the history CLI group."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from pipectl.cli import cli
from tests.conftest import FakeRunner


@pytest.mark.usefixtures("_isolated_project")
class TestHistoryCommands:
    def test_list_empty(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["history", "list"])
        assert result.exit_code == 0
        assert "No runs recorded yet." in result.stdout

    def test_list_after_runs(self, cli_runner: CliRunner, patched_runner: FakeRunner) -> None:
        cli_runner.invoke(cli, ["run"])
        cli_runner.invoke(cli, ["run", "--only", "tools"])
        result = cli_runner.invoke(cli, ["--json", "history", "list", "--limit", "1"])
        data = json.loads(result.stdout)
        assert data["data"]["count"] == 1
        assert data["data"]["items"][0]["number"] == 2

        quiet = cli_runner.invoke(cli, ["-q", "history", "list"])
        assert quiet.stdout.split() == ["2", "1"]

    def test_show_latest(self, cli_runner: CliRunner, patched_runner: FakeRunner) -> None:
        cli_runner.invoke(cli, ["run"])
        result = cli_runner.invoke(cli, ["history", "show"])
        assert result.exit_code == 0
        assert "number: 1" in result.stdout
        assert "artifacts (3)" in result.stdout

    def test_show_missing(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["history", "show", "9"])
        assert result.exit_code == 1
        assert "No run #9" in result.stderr

    def test_bad_status_filter(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["history", "list", "--status", "green"])
        assert result.exit_code == 2

    def test_status_filter(self, cli_runner: CliRunner, patched_runner: FakeRunner) -> None:
        cli_runner.invoke(cli, ["run"])
        result = cli_runner.invoke(cli, ["--json", "history", "list", "--status", "failure"])
        assert json.loads(result.stdout)["data"]["count"] == 0
