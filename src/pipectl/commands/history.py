"""Command group: inspect recorded pipeline runs."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from pipectl.commands._base import PipeGroup
from pipectl.domain.stages import RunStatus

if TYPE_CHECKING:
    from pipectl.commands._context import AppContext


@click.group(
    cls=PipeGroup,
    examples="""\
  pipectl history list
  pipectl history list --status failure --limit 5
  pipectl history show
  pipectl history show 12""",
)
def history() -> None:
    """Inspect recorded pipeline runs."""


@history.command(
    "list",
    examples="""\
  pipectl history list
  pipectl history list --limit 50
  pipectl --json history list --status unstable""",
)
@click.option("--limit", type=click.IntRange(min=1), default=20, help="Maximum runs to show.")
@click.option(
    "--status",
    type=click.Choice([s.value for s in RunStatus]),
    default=None,
    help="Only runs with this status.",
)
@click.pass_obj
def list_cmd(app: AppContext, limit: int, status: str | None) -> None:
    """List runs, newest first."""
    from pipectl.services.history import HistoryService

    app.emit(HistoryService(app.workspace).list_runs(limit=limit, status=status))


@history.command(
    "show",
    examples="""\
  pipectl history show
  pipectl history show 7
  pipectl -v history show 7""",
)
@click.argument("number", type=int, required=False)
@click.pass_obj
def show(app: AppContext, number: int | None) -> None:
    """Show one run with its stages (default: the latest run)."""
    from pipectl.services.history import HistoryService

    app.emit(HistoryService(app.workspace).show_run(number))
