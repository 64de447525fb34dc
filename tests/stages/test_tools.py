"""Tests for the tools stage."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from pipectl.domain.stages import StageName
from pipectl.infrastructure.workspace import Workspace
from pipectl.stages.base import StageError
from pipectl.stages.tools import ToolsStage, required_tools
from tests.conftest import FakeRunner, stage_context, write_file


class TestRequiredTools:
    def test_default(self, workspace: Workspace) -> None:
        ctx = stage_context(workspace, FakeRunner())
        assert required_tools(ctx) == ["java", "mvn", "node", "npm"]

    def test_git_when_repository_configured(
        self, make_workspace: Callable[..., Workspace]
    ) -> None:
        ws = make_workspace('[source]\nrepository = "https://git.example.com/shop.git"\n')
        ctx = stage_context(ws, FakeRunner())
        assert required_tools(ctx)[0] == "git"

    def test_git_not_needed_when_checkout_skipped(
        self, make_workspace: Callable[..., Workspace]
    ) -> None:
        ws = make_workspace('[source]\nrepository = "https://git.example.com/shop.git"\n')
        ctx = stage_context(ws, FakeRunner(), enabled=[StageName.TOOLS])
        assert "git" not in required_tools(ctx)

    def test_engine_when_containers_enabled(self, workspace: Workspace) -> None:
        ctx = stage_context(workspace, FakeRunner(), enabled=[StageName.CONTAINER])
        assert required_tools(ctx)[-1] == "docker"

    def test_wrapper_replaces_tool(self, workspace: Workspace) -> None:
        wrapper = write_file(workspace.backend_dir / "mvnw", "#!/bin/sh\n")
        ctx = stage_context(workspace, FakeRunner())
        assert str(wrapper) in required_tools(ctx)
        assert "mvn" not in required_tools(ctx)


class TestToolsStage:
    def test_records_versions(self, workspace: Workspace) -> None:
        runner = FakeRunner()
        runner.on("java", "-version", output='openjdk version "21.0.2"\nOpenJDK Runtime\n')
        runner.on("node", "--version", output="v20.11.0\n")
        ctx = stage_context(workspace, runner)

        outcome = ToolsStage().run(ctx)

        assert outcome.message == "4 tools available"
        assert ctx.state.tool_versions["java"] == 'openjdk version "21.0.2"'
        assert ctx.state.tool_versions["node"] == "v20.11.0"
        assert ctx.state.tool_versions["mvn"] == "exit 0"
        assert "mvn -v" in runner.commands
        assert "npm --version" in runner.commands

    def test_missing_tools_listed_together(self, workspace: Workspace) -> None:
        runner = FakeRunner(missing=["node", "npm"])
        ctx = stage_context(workspace, runner)

        with pytest.raises(StageError, match="Missing required tools: node, npm") as excinfo:
            ToolsStage().run(ctx)

        assert excinfo.value.detail["missing"] == ["node", "npm"]
        assert "java" in ctx.state.tool_versions
