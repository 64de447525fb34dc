"""Root CLI group for pipectl with global flags and command registration."""

from __future__ import annotations

import os
from pathlib import Path

import click

from pipectl import __version__
from pipectl.commands import register_commands
from pipectl.commands._context import AppContext
from pipectl.config.settings import PipeSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="pipectl")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output; only errors are logged.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Use this config file instead of searching for pipectl.toml.",
)
@click.option(
    "-C",
    "--directory",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Run as if pipectl was started in this directory.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    directory: Path | None,
) -> None:
    """pipectl — run the build, test, and packaging pipeline of a two-tier project."""
    if directory is not None:
        os.chdir(directory)
    ctx.ensure_object(dict)
    settings = PipeSettings.from_cli(
        config_path=config_path,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
