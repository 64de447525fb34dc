"""Pluggy hook specifications for pipectl pipeline lifecycle events.

Hooks are dispatched synchronously, in stage order, from the pipeline
service. A failing hook implementation becomes a run warning.
"""

from __future__ import annotations

from typing import Any

import pluggy

hookspec = pluggy.HookspecMarker("pipectl")


class PipectlHookSpec:
    """Hook specifications for the pipectl plugin system."""

    @hookspec
    def pre_stage(self, run_number: int, stage: str) -> None:
        """Called before a stage starts executing."""

    @hookspec
    def post_stage(
        self,
        run_number: int,
        stage: str,
        status: str,
        duration_ms: float,
    ) -> None:
        """Called after a stage finishes, whatever its status."""

    @hookspec
    def post_run(
        self,
        run_number: int,
        status: str,
        stats: dict[str, Any],
    ) -> None:
        """Called once the run record has been finalized."""
