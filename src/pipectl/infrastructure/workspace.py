"""Workspace — the single dependency injected into every service.

The Workspace owns path resolution (source tree, backend and frontend
tiers, per-run log and artifact directories), the run-history database
engine, and the plugin manager used for lifecycle hooks.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pipectl.infrastructure.database.engine import STATE_DIRNAME, init_database

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from pipectl.config.settings import PipeSettings
    from pipectl.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class Workspace:
    """A project checkout plus its ``.pipectl/`` state directory."""

    def __init__(self, settings: PipeSettings) -> None:
        self._settings = settings
        self._engine: Engine = init_database(self.root)
        self._plugin_manager: PluginManager | None = None

    @property
    def settings(self) -> PipeSettings:
        return self._settings

    @property
    def root(self) -> Path:
        return self._settings.workspace_root

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def plugin_manager(self) -> PluginManager | None:
        """Loaded plugin manager, or None before :meth:`init_plugins`."""
        return self._plugin_manager

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    @property
    def state_dir(self) -> Path:
        return self.root / STATE_DIRNAME

    @property
    def source_dir(self) -> Path:
        return (self.root / self._settings.source.directory).resolve()

    @property
    def backend_dir(self) -> Path:
        return self.source_dir / self._settings.backend.directory

    @property
    def frontend_dir(self) -> Path:
        return self.source_dir / self._settings.frontend.directory

    @property
    def runs_dir(self) -> Path:
        return self.state_dir / "runs"

    @property
    def artifacts_root(self) -> Path:
        return self.root / self._settings.pipeline.artifacts_dir

    def run_log_dir(self, run_number: int) -> Path:
        return self.runs_dir / str(run_number)

    def run_artifact_dir(self, run_number: int) -> Path:
        return self.artifacts_root / str(run_number)

    def tier_dir(self, tier: str) -> Path:
        """Directory for the ``backend`` or ``frontend`` tier."""
        if tier == "backend":
            return self.backend_dir
        if tier == "frontend":
            return self.frontend_dir
        msg = f"Unknown tier: {tier}"
        raise ValueError(msg)

    # ------------------------------------------------------------------
    # Plugins
    # ------------------------------------------------------------------

    def init_plugins(self) -> None:
        """Create the PluginManager and register built-in plugins.

        Called by AppContext when the workspace is first accessed.
        """
        from pipectl.plugins.builtins.retention import RetentionPlugin
        from pipectl.plugins.manager import PluginManager

        pm = PluginManager()
        loaded = pm.load(local_dir=self.state_dir / "plugins")
        if loaded:
            logger.debug("Loaded plugins: %s", ", ".join(loaded))

        retention: dict[str, Any] = self._settings.plugins.retention
        if retention.get("enabled", True):
            plugin = RetentionPlugin(
                keep_runs=self._settings.pipeline.keep_runs,
                directories=[self.runs_dir, self.artifacts_root],
            )
            pm.register(plugin, name="retention-builtin")

        self._plugin_manager = pm

    def close(self) -> None:
        """Release the database engine."""
        self._engine.dispose()
