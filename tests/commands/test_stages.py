"""Tests for the stages CLI command."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from pipectl.cli import cli


@pytest.mark.usefixtures("_isolated_project")
class TestStagesCommand:
    def test_table(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["stages"])
        assert result.exit_code == 0, result.output
        for name in ("tools", "backend-test", "container"):
            assert name in result.stdout
        assert "tolerate" in result.stdout

    def test_json(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "stages", "--containers"])
        data = json.loads(result.stdout)
        assert data["op"] == "list_stages"
        enabled = {i["name"]: i["enabled"] for i in data["data"]["items"]}
        assert enabled["container"] is True
        assert enabled["analysis"] is False

    def test_quiet_lists_enabled(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-q", "stages"])
        assert result.stdout.split() == [
            "tools",
            "checkout",
            "validate",
            "backend-build",
            "backend-test",
            "frontend-build",
            "archive",
        ]

    def test_config_override_via_flag(
        self, cli_runner: CliRunner, tmp_path_factory: pytest.TempPathFactory
    ) -> None:
        other = tmp_path_factory.mktemp("cfg") / "ci.toml"
        other.write_text("[analysis]\nenabled = true\n")
        result = cli_runner.invoke(cli, ["-c", str(other), "-q", "stages"])
        assert "analysis" in result.stdout.split()
