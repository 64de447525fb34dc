"""Tests for the root CLI group, global flags, and AppContext."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from pipectl.cli import cli
from pipectl.commands._context import AppContext
from pipectl.config.settings import PipeSettings
from pipectl.services.result import ServiceError, ServiceResult
from tests.conftest import FakeRunner


class TestAppContext:
    def test_workspace_is_lazy(self, project_root: Path) -> None:
        app = AppContext(PipeSettings.from_cli(workspace_root=project_root))
        assert app._workspace is None
        ws = app.workspace
        assert app.workspace is ws
        assert ws.plugin_manager is not None
        ws.close()

    def test_emit_success(
        self, project_root: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        app = AppContext(PipeSettings.from_cli(workspace_root=project_root, quiet=True))
        app.emit(ServiceResult(ok=True, op="init", warnings=["careful"]))
        captured = capsys.readouterr()
        assert captured.out.strip() == "OK: init"
        assert "WARNING: careful" in captured.err

    def test_emit_failure_exits(
        self, project_root: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        app = AppContext(PipeSettings.from_cli(workspace_root=project_root, quiet=True))
        result = ServiceResult(
            ok=False, op="show_run", error=ServiceError(code="NOT_FOUND", message="No run #3")
        )
        with pytest.raises(SystemExit) as excinfo:
            app.emit(result)
        assert excinfo.value.code == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "ERROR: show_run" in captured.err


@pytest.mark.usefixtures("_isolated_project")
class TestGlobalFlags:
    def test_config_discovered_from_subdirectory(
        self, cli_runner: CliRunner, project_root: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(project_root / "frontend")
        result = cli_runner.invoke(cli, ["--json", "stages"])
        assert result.exit_code == 0
        assert (project_root / ".pipectl" / "pipectl.db").is_file()
        assert not (project_root / "frontend" / ".pipectl").exists()

    def test_env_overrides_config(
        self,
        cli_runner: CliRunner,
        patched_runner: FakeRunner,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("PIPECTL_STAGES__ARCHIVE__ENABLED", "false")
        result = cli_runner.invoke(cli, ["--json", "run"])
        stages = {s["name"]: s for s in json.loads(result.stdout)["data"]["stages"]}
        assert stages["archive"]["status"] == "skipped"

    def test_log_json_goes_to_stderr(
        self, cli_runner: CliRunner, patched_runner: FakeRunner, project_root: Path
    ) -> None:
        (project_root / "backend" / "pom.xml").unlink()
        result = cli_runner.invoke(cli, ["--log-json", "-q", "run"])
        assert result.exit_code == 1
        lines = [ln for ln in result.stderr.splitlines() if ln.startswith("{")]
        events = [json.loads(ln)["event"] for ln in lines]
        assert "stage.failed" in events
        assert "ERROR: run" in result.stderr

    def test_directory_flag(
        self,
        cli_runner: CliRunner,
        project_root: Path,
        tmp_path_factory: pytest.TempPathFactory,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.chdir(tmp_path_factory.mktemp("elsewhere"))
        result = cli_runner.invoke(cli, ["-C", str(project_root / "backend"), "--json", "stages"])
        assert result.exit_code == 0, result.output
        assert (project_root / ".pipectl" / "pipectl.db").is_file()

    def test_missing_config_file(self, cli_runner: CliRunner, project_root: Path) -> None:
        result = cli_runner.invoke(cli, ["-c", str(project_root / "nope.toml"), "stages"])
        assert result.exit_code == 1
        assert "Config file not found" in result.output
