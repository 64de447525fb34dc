"""Command: list pipeline stages."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from pipectl.commands._base import PipeCommand

if TYPE_CHECKING:
    from pipectl.commands._context import AppContext


@click.command(
    cls=PipeCommand,
    examples="""\
  pipectl stages
  pipectl stages --analysis --containers
  pipectl --json stages""",
)
@click.option("--analysis/--no-analysis", default=None, help="Show with analysis forced.")
@click.option("--containers/--no-containers", default=None, help="Show with images forced.")
@click.pass_obj
def stages(app: AppContext, analysis: bool | None, containers: bool | None) -> None:
    """Show stage order, failure policy, and whether each stage would run."""
    from pipectl.services.pipeline import PipelineService

    app.emit(PipelineService(app.workspace).list_stages(analysis=analysis, containers=containers))
