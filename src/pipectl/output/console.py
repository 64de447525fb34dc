"""Rich Console factory and theme for pipectl output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract.  In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

PIPE_THEME = Theme(
    {
        "pipe.ok": "bold green",
        "pipe.error": "bold red",
        "pipe.warning": "bold yellow",
        "pipe.op": "bold cyan",
        "pipe.key": "dim",
        "pipe.number": "bold blue",
        "pipe.path": "dim",
        "pipe.stage": "bold",
        "pipe.status.success": "green",
        "pipe.status.unstable": "yellow",
        "pipe.status.failed": "red",
        "pipe.status.failure": "red",
        "pipe.status.aborted": "magenta",
        "pipe.status.skipped": "dim",
        "pipe.status.not_run": "dim",
        "pipe.status.running": "cyan",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=PIPE_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_status(status: str) -> str:
    """Return the Rich style name for a stage or run status."""
    style = f"pipe.status.{status}"
    return style if style in PIPE_THEME.styles else ""
