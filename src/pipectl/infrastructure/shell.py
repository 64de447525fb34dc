"""Subprocess execution for external build tools.

Every tool invocation goes through :class:`ToolRunner`: an argument vector
(never a shell string), merged stdout/stderr, an optional per-call timeout,
and secret redaction before anything reaches a log or a caller.

:class:`Deadline` carries the overall wall-clock budget of a run so each
command can be given whatever time is left.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

REDACTED = "****"


class ToolNotFoundError(Exception):
    """The executable could not be located or launched."""

    def __init__(self, tool: str) -> None:
        super().__init__(f"Executable not found: {tool}")
        self.tool = tool


class CommandTimeoutError(Exception):
    """A command outlived its timeout."""

    def __init__(self, command: str, timeout: float) -> None:
        super().__init__(f"Command timed out after {timeout:.0f}s: {command}")
        self.command = command
        self.timeout = timeout


class PipelineTimeoutError(Exception):
    """The overall run budget was exhausted."""


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one finished command (output already redacted)."""

    args: tuple[str, ...]
    returncode: int
    output: str
    duration_ms: float

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def command(self) -> str:
        return " ".join(self.args)

    def tail(self, lines: int = 20) -> str:
        """Last *lines* lines of output, for error messages."""
        return "\n".join(self.output.splitlines()[-lines:])


@dataclass
class Deadline:
    """Overall wall-clock budget. ``seconds`` of None or <= 0 means unlimited."""

    seconds: float | None
    started: float = field(default_factory=time.monotonic)

    @classmethod
    def from_minutes(cls, minutes: float | None) -> Deadline:
        if minutes is None or minutes <= 0:
            return cls(seconds=None)
        return cls(seconds=minutes * 60)

    def remaining(self) -> float | None:
        """Seconds left, or None when unlimited. Never negative."""
        if self.seconds is None:
            return None
        return max(0.0, self.seconds - (time.monotonic() - self.started))

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def check(self) -> None:
        """Raise :class:`PipelineTimeoutError` once the budget is spent."""
        if self.expired:
            assert self.seconds is not None
            raise PipelineTimeoutError(f"Pipeline timed out after {self.seconds / 60:g} minutes")


def redact(text: str, secrets: Iterable[str]) -> str:
    """Replace every non-empty secret in *text* with ``****``.

    Examples:
        >>> redact("login -p hunter2", ["hunter2"])
        'login -p ****'
    """
    for secret in secrets:
        if secret:
            text = text.replace(secret, REDACTED)
    return text


class ToolRunner:
    """Runs external tools as child processes.

    Parameters:
        secrets: Values masked in logs, captured output, and log files.
        base_env: Environment the child inherits (default: ``os.environ``).
    """

    def __init__(
        self,
        *,
        secrets: Iterable[str] = (),
        base_env: Mapping[str, str] | None = None,
    ) -> None:
        self._secrets: list[str] = [s for s in secrets if s]
        self._base_env = dict(os.environ if base_env is None else base_env)

    def add_secret(self, value: str | None) -> None:
        """Register another value to mask."""
        if value and value not in self._secrets:
            self._secrets.append(value)

    def which(self, tool: str, *, cwd: Path | None = None) -> str | None:
        """Locate *tool* on PATH, or as a relative path under *cwd*."""
        if os.sep in tool or tool.startswith("."):
            candidate = Path(tool) if cwd is None else cwd / tool
            if candidate.is_file() and os.access(candidate, os.X_OK):
                return str(candidate)
            return None
        return shutil.which(tool, path=self._base_env.get("PATH"))

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
        stdin: str | None = None,
        log_path: Path | None = None,
    ) -> CommandResult:
        """Run *args* in *cwd* and return the (redacted) result.

        Raises:
            ToolNotFoundError: The executable does not exist.
            CommandTimeoutError: *timeout* elapsed before the command exited.
        """
        argv = [str(a) for a in args]
        shown = redact(" ".join(argv), self._secrets)
        child_env = {**self._base_env, **(env or {})}
        logger.debug("exec %s (cwd=%s)", shown, cwd)

        start = time.perf_counter()
        try:
            proc = subprocess.run(
                argv,
                cwd=cwd,
                env=child_env,
                input=stdin,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout,
                check=False,
            )
        except FileNotFoundError as exc:
            raise ToolNotFoundError(argv[0]) from exc
        except subprocess.TimeoutExpired as exc:
            partial = exc.output or ""
            if isinstance(partial, bytes):
                partial = partial.decode("utf-8", errors="replace")
            self._append_log(log_path, shown, redact(partial, self._secrets), None)
            assert timeout is not None
            raise CommandTimeoutError(shown, timeout) from exc
        duration_ms = (time.perf_counter() - start) * 1000

        output = redact(proc.stdout or "", self._secrets)
        self._append_log(log_path, shown, output, proc.returncode)
        logger.debug("exit %s -> %d (%.0fms)", shown, proc.returncode, duration_ms)
        return CommandResult(
            args=tuple(redact(a, self._secrets) for a in argv),
            returncode=proc.returncode,
            output=output,
            duration_ms=duration_ms,
        )

    @staticmethod
    def _append_log(
        log_path: Path | None,
        command: str,
        output: str,
        returncode: int | None,
    ) -> None:
        if log_path is None:
            return
        log_path.parent.mkdir(parents=True, exist_ok=True)
        status = "timeout" if returncode is None else f"exit {returncode}"
        with log_path.open("a", encoding="utf-8") as fh:
            fh.write(f"$ {command}\n")
            fh.write(output)
            if output and not output.endswith("\n"):
                fh.write("\n")
            fh.write(f"[{status}]\n")
