"""Command: workspace initialization (named init_cmd to avoid shadowing builtins)."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from pipectl.commands._base import PipeCommand

if TYPE_CHECKING:
    from pipectl.commands._context import AppContext

_INIT_EXAMPLES = """\
  pipectl init
  pipectl init /path/to/project --name shop
  pipectl init . --backend-dir api --frontend-dir web
  pipectl init --repository https://git.example.com/team/shop.git --branch develop"""


@click.command("init", cls=PipeCommand, examples=_INIT_EXAMPLES)
@click.argument("path", required=False, default=".")
@click.option("--name", default=None, help="Project name (default: directory name).")
@click.option("--backend-dir", default="backend", show_default=True, help="Backend directory.")
@click.option("--frontend-dir", default="frontend", show_default=True, help="Frontend directory.")
@click.option("--repository", default=None, help="Repository URL for the checkout stage.")
@click.option("--branch", default="main", show_default=True, help="Branch to check out.")
@click.option(
    "--source-dir",
    default=None,
    help="Clone directory when --repository is given (default: src).",
)
@click.option("--force", is_flag=True, help="Overwrite an existing pipectl.toml.")
@click.pass_obj
def init_cmd(
    app: AppContext,
    path: str,
    name: str | None,
    backend_dir: str,
    frontend_dir: str,
    repository: str | None,
    branch: str,
    source_dir: str | None,
    force: bool,
) -> None:
    """Create pipectl.toml and the .pipectl/ state directory."""
    from pipectl.services.init import InitService

    project_path = Path(path).resolve()
    result = InitService.init_workspace(
        project_path,
        name=name or project_path.name,
        backend_dir=backend_dir,
        frontend_dir=frontend_dir,
        repository=repository,
        branch=branch,
        source_dir=source_dir,
        force=force,
    )
    app.emit(result)
