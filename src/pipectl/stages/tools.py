"""Tool verification: every executable later stages need must be present."""

from __future__ import annotations

from pathlib import Path

from pipectl.domain.stages import StageName
from pipectl.stages.base import Stage, StageContext, StageError, StageOutcome

# Flags that make each tool print its version; anything else gets --version.
_VERSION_ARGS: dict[str, list[str]] = {
    "java": ["-version"],
    "mvn": ["-v"],
    "mvnw": ["-v"],
}


def _version_args(tool: str) -> list[str]:
    return _VERSION_ARGS.get(Path(tool).name, ["--version"])


def required_tools(ctx: StageContext) -> list[str]:
    """Executables this run will invoke, in the order they are first used."""
    settings = ctx.settings
    tools: list[str] = []
    if settings.source.repository and ctx.options.is_enabled(StageName.CHECKOUT):
        tools.append("git")
    tools.extend(["java", ctx.backend_tool()])
    tools.extend(["node", settings.frontend.tool])
    if ctx.options.is_enabled(StageName.CONTAINER):
        tools.append(settings.container.engine)
    return list(dict.fromkeys(tools))


class ToolsStage(Stage):
    name = StageName.TOOLS
    description = "Verify required external tools are installed"

    def run(self, ctx: StageContext) -> StageOutcome:
        missing: list[str] = []
        versions: dict[str, str] = {}
        for tool in required_tools(ctx):
            if ctx.runner.which(tool, cwd=ctx.workspace.root) is None:
                missing.append(tool)
                continue
            result = ctx.sh([tool, *_version_args(tool)], cwd=ctx.workspace.root, check=False)
            first = next((line.strip() for line in result.output.splitlines() if line.strip()), "")
            versions[Path(tool).name] = first or f"exit {result.returncode}"

        ctx.state.tool_versions = versions
        if missing:
            raise StageError(f"Missing required tools: {', '.join(missing)}", missing=missing)
        return StageOutcome(message=f"{len(versions)} tools available", data={"tools": versions})
