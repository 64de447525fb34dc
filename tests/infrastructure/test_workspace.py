"""Tests for Workspace path resolution and plugin wiring."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from pipectl.infrastructure.workspace import Workspace


class TestPaths:
    def test_default_layout(self, workspace: Workspace, project_root: Path) -> None:
        root = project_root.resolve()
        assert workspace.source_dir == root
        assert workspace.backend_dir == root / "backend"
        assert workspace.frontend_dir == root / "frontend"
        assert workspace.state_dir == project_root / ".pipectl"
        assert workspace.run_log_dir(3) == project_root / ".pipectl" / "runs" / "3"
        assert workspace.run_artifact_dir(3) == project_root / ".pipectl" / "artifacts" / "3"

    def test_configured_layout(self, make_workspace: Callable[..., Workspace]) -> None:
        ws = make_workspace(
            """\
            [source]
            directory = "src"
            [backend]
            directory = "api"
            [pipeline]
            artifacts_dir = "out"
            """
        )
        assert ws.backend_dir == ws.root.resolve() / "src" / "api"
        assert ws.run_artifact_dir(1) == ws.root / "out" / "1"

    def test_tier_dir(self, workspace: Workspace) -> None:
        assert workspace.tier_dir("backend") == workspace.backend_dir
        assert workspace.tier_dir("frontend") == workspace.frontend_dir
        with pytest.raises(ValueError, match="Unknown tier"):
            workspace.tier_dir("mobile")

    def test_state_dir_created(self, workspace: Workspace) -> None:
        assert (workspace.state_dir / "pipectl.db").is_file()
        assert workspace.runs_dir.is_dir()


class TestPlugins:
    def test_no_plugins_before_init(self, workspace: Workspace) -> None:
        assert workspace.plugin_manager is None

    def test_retention_registered(self, workspace: Workspace) -> None:
        workspace.init_plugins()
        pm = workspace.plugin_manager
        assert pm is not None
        assert "retention-builtin" in pm.names

    def test_retention_disabled(self, make_workspace: Callable[..., Workspace]) -> None:
        ws = make_workspace("[plugins]\nretention = { enabled = false }\n")
        ws.init_plugins()
        assert ws.plugin_manager is not None
        assert "retention-builtin" not in ws.plugin_manager.names
