"""Optional static analysis through the build tool's sonar plugin."""

from __future__ import annotations

from pipectl.domain.stages import StageName
from pipectl.stages.base import Stage, StageContext, StageError, StageOutcome


class AnalysisStage(Stage):
    name = StageName.ANALYSIS
    description = "Send backend metrics to the static-analysis server"

    def run(self, ctx: StageContext) -> StageOutcome:
        analysis = ctx.settings.analysis
        if not analysis.host_url:
            raise StageError("analysis.host_url is not configured")

        project_key = analysis.project_key or ctx.settings.project.name
        args = [
            ctx.backend_tool(),
            "-B",
            "sonar:sonar",
            f"-Dsonar.host.url={analysis.host_url}",
            f"-Dsonar.projectKey={project_key}",
        ]
        if analysis.token is not None:
            token = analysis.token.get_secret_value()
            args.append(f"-Dsonar.token={token}")

        ctx.sh(args, cwd=ctx.workspace.backend_dir)
        return StageOutcome(
            message=f"Analysis published to {analysis.host_url}",
            data={"host_url": analysis.host_url, "project_key": project_key},
        )
