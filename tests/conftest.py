"""Shared pytest fixtures and test helpers for pipectl tests."""

from __future__ import annotations

import os
import textwrap
from collections.abc import Callable, Generator, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from pipectl.config.settings import PipeSettings
from pipectl.domain.stages import STAGE_ORDER, StageName
from pipectl.infrastructure.database.engine import init_database
from pipectl.infrastructure.shell import CommandResult, Deadline, ToolNotFoundError, ToolRunner
from pipectl.infrastructure.workspace import Workspace
from pipectl.services.telemetry import disable_telemetry
from pipectl.stages.base import RunOptions, StageContext


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the caller's PIPECTL_* variables out of every test."""
    for key in list(os.environ):
        if key.startswith("PIPECTL_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _telemetry_off() -> Generator[None]:
    """Reset the telemetry switch that ``-v`` leaves on."""
    yield
    disable_telemetry()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def db_engine(tmp_path: Path) -> Generator[Engine]:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Temporary two-tier project in the default layout.

    This is the single source of truth for the project layout used by
    workspace, service, and command tests.
    """
    (tmp_path / "backend").mkdir()
    (tmp_path / "backend" / "pom.xml").write_text("<project/>\n")
    (tmp_path / "frontend").mkdir()
    (tmp_path / "frontend" / "package.json").write_text('{"name": "web"}\n')
    (tmp_path / "frontend" / "package-lock.json").write_text("{}\n")
    return tmp_path


@pytest.fixture
def make_workspace(project_root: Path) -> Generator[Callable[..., Workspace]]:
    """Factory: write an optional pipectl.toml, then open a Workspace on it."""
    opened: list[Workspace] = []

    def _make(config: str | None = None, **cli_flags: Any) -> Workspace:
        if config is not None:
            (project_root / "pipectl.toml").write_text(textwrap.dedent(config))
        ws = Workspace(PipeSettings.from_cli(workspace_root=project_root, **cli_flags))
        opened.append(ws)
        return ws

    try:
        yield _make
    finally:
        for ws in opened:
            ws.close()


@pytest.fixture
def workspace(make_workspace: Callable[..., Workspace]) -> Workspace:
    """Workspace on the default project layout with no config file."""
    return make_workspace()


@pytest.fixture
def _isolated_project(project_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to the temp project so the CLI discovers it.

    Use via ``@pytest.mark.usefixtures("_isolated_project")`` on command
    test classes.
    """
    (project_root / "pipectl.toml").write_text('[project]\nname = "shop"\n')
    monkeypatch.chdir(project_root)


# ---------------------------------------------------------------------------
# Scripted tool runner
# ---------------------------------------------------------------------------


@dataclass
class Call:
    """One command the fake runner was asked to execute."""

    argv: list[str]
    cwd: Path
    env: dict[str, str]
    stdin: str | None
    timeout: float | None

    @property
    def command(self) -> str:
        return " ".join([Path(self.argv[0]).name, *self.argv[1:]])


@dataclass
class _Rule:
    prefix: tuple[str, ...]
    returncode: int
    output: str
    effect: Callable[[Path], None] | None
    raises: BaseException | None


class FakeRunner(ToolRunner):
    """ToolRunner stand-in that never spawns a process.

    Commands are matched by prefix against the argument vector with the
    executable reduced to its base name, so ``/x/backend/mvnw -B test``
    matches ``on("mvnw", "-B", "test")``. Later rules win. Unmatched
    commands succeed with empty output. Log files are written in the same
    format as the real runner.
    """

    def __init__(self, *, missing: Sequence[str] = (), secrets: Sequence[str] = ()) -> None:
        super().__init__(secrets=secrets, base_env={})
        self.calls: list[Call] = []
        self.missing = set(missing)
        self._rules: list[_Rule] = []

    def on(
        self,
        *prefix: str,
        returncode: int = 0,
        output: str = "",
        effect: Callable[[Path], None] | None = None,
        raises: BaseException | None = None,
    ) -> FakeRunner:
        self._rules.append(_Rule(prefix, returncode, output, effect, raises))
        return self

    @property
    def secrets(self) -> list[str]:
        return list(self._secrets)

    @property
    def commands(self) -> list[str]:
        return [c.command for c in self.calls]

    def which(self, tool: str, *, cwd: Path | None = None) -> str | None:
        if tool in self.missing or Path(tool).name in self.missing:
            return None
        if os.sep in tool:
            return tool if Path(tool).is_file() else None
        return f"/usr/bin/{tool}"

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path,
        env: Any = None,
        timeout: float | None = None,
        stdin: str | None = None,
        log_path: Path | None = None,
    ) -> CommandResult:
        argv = [str(a) for a in args]
        call = Call(argv=argv, cwd=cwd, env=dict(env or {}), stdin=stdin, timeout=timeout)
        self.calls.append(call)
        if argv[0] in self.missing or Path(argv[0]).name in self.missing:
            raise ToolNotFoundError(argv[0])

        normalized = (Path(argv[0]).name, *argv[1:])
        returncode, output = 0, ""
        for rule in reversed(self._rules):
            if normalized[: len(rule.prefix)] != rule.prefix:
                continue
            if rule.raises is not None:
                raise rule.raises
            if rule.effect is not None:
                rule.effect(cwd)
            returncode, output = rule.returncode, rule.output
            break

        self._append_log(log_path, call.command, output, returncode)
        return CommandResult(tuple(argv), returncode, output, duration_ms=1.0)


@pytest.fixture
def fake_runner() -> FakeRunner:
    """A FakeRunner where every build step succeeds and produces output."""
    return green_runner()


@pytest.fixture
def patched_runner(fake_runner: FakeRunner, monkeypatch: pytest.MonkeyPatch) -> FakeRunner:
    """Make every PipelineService created without a runner use *fake_runner*."""
    monkeypatch.setattr("pipectl.services.pipeline.ToolRunner", lambda *a, **kw: fake_runner)
    return fake_runner


# ---------------------------------------------------------------------------
# Shared test helpers (used across stage, service, and command tests)
# ---------------------------------------------------------------------------


def write_file(path: Path, content: str = "x") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def _package_backend(cwd: Path) -> None:
    write_file(cwd / "target" / "shop-1.0.jar", "jar-bytes")


def _build_frontend(cwd: Path) -> None:
    write_file(cwd / "dist" / "index.html", "<html></html>")
    write_file(cwd / "dist" / "assets" / "app.js", "console.log(1)")


def surefire_report(tests: int, failures: int = 0, errors: int = 0, skipped: int = 0) -> str:
    return (
        f'<testsuite name="ShopTest" tests="{tests}" failures="{failures}" '
        f'errors="{errors}" skipped="{skipped}"></testsuite>\n'
    )


def green_runner(**kwargs: Any) -> FakeRunner:
    """FakeRunner scripted for a fully successful default pipeline."""
    runner = FakeRunner(**kwargs)
    runner.on("git", "rev-parse", output="abc1234\n")
    runner.on("mvn", "-B", "clean", "package", effect=_package_backend)
    runner.on(
        "mvn",
        "-B",
        "test",
        output="Tests run: 3, Failures: 0\n",
        effect=lambda cwd: write_file(
            cwd / "target" / "surefire-reports" / "TEST-ShopTest.xml", surefire_report(3)
        ),
    )
    runner.on("npm", "run", "build", effect=_build_frontend)
    return runner


def stage_context(
    workspace: Workspace,
    runner: ToolRunner,
    *,
    enabled: Sequence[StageName] | None = None,
    push: bool = False,
    timeout_minutes: float | None = None,
    run_number: int = 1,
) -> StageContext:
    """StageContext for driving a single stage outside the pipeline service."""
    if enabled is None:
        enabled = [s for s in STAGE_ORDER if workspace.settings.stage_enabled(s)]
    return StageContext(
        workspace=workspace,
        runner=runner,
        deadline=Deadline.from_minutes(timeout_minutes),
        run_number=run_number,
        options=RunOptions(enabled=frozenset(enabled), push=push),
        log_path=workspace.run_log_dir(run_number) / "stage.log",
    )
