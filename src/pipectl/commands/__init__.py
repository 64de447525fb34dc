"""Subcommand modules for pipectl.

Provides register_commands() which uses deferred imports to keep
``pipectl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the history group and the standalone commands on the root group."""
    from pipectl.commands.history import history

    cli.add_command(history)

    from pipectl.commands.init_cmd import init_cmd
    from pipectl.commands.run import run
    from pipectl.commands.stages import stages

    cli.add_command(init_cmd)
    cli.add_command(run)
    cli.add_command(stages)
