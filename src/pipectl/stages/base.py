"""Stage contract and the per-run context shared by all stages.

A stage is a small object with a ``name`` and a ``run(ctx)`` method. It
signals failure by raising :class:`StageError`; whether that failure stops
the run is decided by the pipeline service from the stage's policy, never
by the stage itself.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar

from pipectl.domain.stages import StageName
from pipectl.infrastructure.shell import (
    CommandResult,
    CommandTimeoutError,
    Deadline,
    PipelineTimeoutError,
    ToolNotFoundError,
    ToolRunner,
)

if TYPE_CHECKING:
    from pipectl.config.settings import PipeSettings
    from pipectl.infrastructure.workspace import Workspace

logger = logging.getLogger(__name__)

CLEANUP_TIMEOUT = 60.0


class StageError(Exception):
    """A stage could not complete. Carries a short message plus detail."""

    def __init__(self, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


@dataclass
class StageOutcome:
    """What a successful stage reports back."""

    message: str = ""
    data: dict[str, Any] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RunOptions:
    """Resolved switches for one run."""

    enabled: frozenset[StageName]
    push: bool = False

    def is_enabled(self, stage: StageName) -> bool:
        return stage in self.enabled


@dataclass
class RunState:
    """Facts produced by earlier stages and read by later ones."""

    commit: str | None = None
    tool_versions: dict[str, str] = field(default_factory=dict)
    tests: dict[str, Any] | None = None
    frontend_output: Path | None = None
    artifacts: list[dict[str, Any]] = field(default_factory=list)
    images: list[str] = field(default_factory=list)


@dataclass
class StageContext:
    """Everything a stage needs: settings, paths, the runner, and the clock."""

    workspace: Workspace
    runner: ToolRunner
    deadline: Deadline
    run_number: int
    options: RunOptions
    env: dict[str, str] = field(default_factory=dict)
    state: RunState = field(default_factory=RunState)
    log_path: Path | None = None

    @property
    def settings(self) -> PipeSettings:
        return self.workspace.settings

    def backend_tool(self) -> str:
        """The wrapper script when present and allowed, else the configured tool."""
        backend = self.settings.backend
        wrapper = self.workspace.backend_dir / "mvnw"
        if backend.use_wrapper and wrapper.is_file():
            return str(wrapper)
        return backend.tool

    def sh(
        self,
        args: list[str],
        *,
        cwd: Path,
        stdin: str | None = None,
        check: bool = True,
    ) -> CommandResult:
        """Run a command under the run's deadline and log file.

        Raises:
            StageError: Missing executable, or non-zero exit when *check*.
            PipelineTimeoutError: The run budget ran out.
        """
        self.deadline.check()
        try:
            result = self.runner.run(
                args,
                cwd=cwd,
                env=self.env,
                timeout=self.deadline.remaining(),
                stdin=stdin,
                log_path=self.log_path,
            )
        except ToolNotFoundError as exc:
            raise StageError(str(exc), tool=exc.tool) from exc
        except CommandTimeoutError as exc:
            raise PipelineTimeoutError(str(exc)) from exc

        if check and not result.ok:
            raise StageError(
                f"`{result.command}` exited with code {result.returncode}",
                returncode=result.returncode,
                output_tail=result.tail(),
            )
        return result

    def cleanup(
        self,
        args: list[str],
        *,
        cwd: Path,
        timeout: float = CLEANUP_TIMEOUT,
    ) -> CommandResult | None:
        """Run a command that must happen even after the run budget is spent.

        Ignores the deadline and uses its own short *timeout*. A missing
        executable or a timeout is logged and reported as None.
        """
        try:
            return self.runner.run(
                args,
                cwd=cwd,
                env=self.env,
                timeout=timeout,
                log_path=self.log_path,
            )
        except (ToolNotFoundError, CommandTimeoutError) as exc:
            logger.warning("Cleanup command failed: %s", exc)
            return None


class Stage(ABC):
    """One step of the pipeline."""

    name: ClassVar[StageName]
    description: ClassVar[str] = ""

    @abstractmethod
    def run(self, ctx: StageContext) -> StageOutcome:
        """Do the work, raising :class:`StageError` on failure."""
