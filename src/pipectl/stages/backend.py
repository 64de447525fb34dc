"""Backend stages: package with the JVM build tool, then run its tests."""

from __future__ import annotations

from pipectl.domain.stages import StageName
from pipectl.infrastructure.reports import summarize_reports
from pipectl.stages.base import Stage, StageContext, StageError, StageOutcome


class BackendBuildStage(Stage):
    name = StageName.BACKEND_BUILD
    description = "Package the backend (tests skipped)"

    def run(self, ctx: StageContext) -> StageOutcome:
        args = [ctx.backend_tool(), "-B", *ctx.settings.backend.build_args]
        ctx.sh(args, cwd=ctx.workspace.backend_dir)
        return StageOutcome(message="Backend packaged", data={"command": " ".join(args)})


class BackendTestStage(Stage):
    name = StageName.BACKEND_TEST
    description = "Run backend unit tests"

    def run(self, ctx: StageContext) -> StageOutcome:
        backend = ctx.settings.backend
        args = [ctx.backend_tool(), "-B", *backend.test_args]
        result = ctx.sh(args, cwd=ctx.workspace.backend_dir, check=False)

        summary = summarize_reports(ctx.workspace.backend_dir / backend.report_dir)
        data = summary.to_dict() if summary is not None else {}
        ctx.state.tests = data or None

        if not result.ok:
            if summary is not None and summary.has_failures:
                message = (
                    f"{summary.failures} failed, {summary.errors} errors "
                    f"of {summary.tests} tests"
                )
            else:
                message = f"`{result.command}` exited with code {result.returncode}"
            raise StageError(message, returncode=result.returncode, tests=data)

        if summary is None:
            return StageOutcome(message="Tests passed (no reports found)")
        return StageOutcome(
            message=f"{summary.passed}/{summary.tests} tests passed, {summary.skipped} skipped",
            data=data,
        )
