"""Command: run the pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from pipectl.commands._base import PipeCommand
from pipectl.domain.stages import STAGE_ORDER

if TYPE_CHECKING:
    from pipectl.commands._context import AppContext

_STAGE_CHOICE = click.Choice([s.value for s in STAGE_ORDER], case_sensitive=False)


@click.command(
    cls=PipeCommand,
    examples="""\
  pipectl run
  pipectl run --analysis --containers --push
  pipectl run --only backend-build --only backend-test
  pipectl run --skip archive --timeout 10
  pipectl --json run""",
)
@click.option("--only", multiple=True, type=_STAGE_CHOICE, help="Run only this stage (repeatable).")
@click.option("--skip", multiple=True, type=_STAGE_CHOICE, help="Skip this stage (repeatable).")
@click.option(
    "--analysis/--no-analysis",
    default=None,
    help="Force static analysis on or off (default: config).",
)
@click.option(
    "--containers/--no-containers",
    default=None,
    help="Force image builds on or off (default: config).",
)
@click.option("--push/--no-push", default=None, help="Push built images (default: config).")
@click.option(
    "--timeout",
    "timeout_minutes",
    type=click.FloatRange(min=0),
    default=None,
    help="Overall timeout in minutes; 0 disables it.",
)
@click.pass_obj
def run(
    app: AppContext,
    only: tuple[str, ...],
    skip: tuple[str, ...],
    analysis: bool | None,
    containers: bool | None,
    push: bool | None,
    timeout_minutes: float | None,
) -> None:
    """Run the pipeline stages in order and record the run."""
    from pipectl.services.pipeline import PipelineService

    result = PipelineService(app.workspace).run(
        only=only,
        skip=skip,
        analysis=analysis,
        containers=containers,
        push=push,
        timeout_minutes=timeout_minutes,
    )
    app.emit(result)
