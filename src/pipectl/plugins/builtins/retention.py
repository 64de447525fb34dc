"""Built-in retention plugin: discard old run logs and artifacts.

After every run, only the newest ``keep_runs`` numbered directories are
kept under each managed directory (``.pipectl/runs/`` and the artifacts
directory). ``keep_runs = 0`` keeps everything. Run history rows in the
database are never touched.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Any

import pluggy

hookimpl = pluggy.HookimplMarker("pipectl")

logger = logging.getLogger(__name__)


class RetentionPlugin:
    """Build discarder keyed on numeric run directories."""

    def __init__(self, *, keep_runs: int, directories: list[Path]) -> None:
        self._keep = keep_runs
        self._directories = directories

    @hookimpl
    def post_run(self, run_number: int, status: str, stats: dict[str, Any]) -> None:
        """Prune after the run has been recorded."""
        removed = self.prune()
        if removed:
            logger.debug("Discarded %d old run directories", len(removed))

    def prune(self) -> list[Path]:
        """Delete numbered directories beyond the newest ``keep_runs``."""
        if self._keep <= 0:
            return []
        removed: list[Path] = []
        for directory in self._directories:
            if not directory.is_dir():
                continue
            numbered = sorted(
                (p for p in directory.iterdir() if p.is_dir() and p.name.isdigit()),
                key=lambda p: int(p.name),
                reverse=True,
            )
            for stale in numbered[self._keep :]:
                shutil.rmtree(stale)
                removed.append(stale)
        return removed
