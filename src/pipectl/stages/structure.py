"""Structure validation: both tiers are where the configuration says."""

from __future__ import annotations

from pipectl.domain.stages import StageName
from pipectl.stages.base import Stage, StageContext, StageError, StageOutcome

TIERS = ("backend", "frontend")


class ValidateStage(Stage):
    name = StageName.VALIDATE
    description = "Check the backend descriptor and frontend manifest exist"

    def run(self, ctx: StageContext) -> StageOutcome:
        ws = ctx.workspace
        settings = ctx.settings
        problems: list[str] = []

        if not ws.source_dir.is_dir():
            problems.append(f"source directory missing: {ws.source_dir}")
        required = {
            "backend": (ws.backend_dir, settings.backend.descriptor),
            "frontend": (ws.frontend_dir, settings.frontend.manifest),
        }
        for tier, (directory, filename) in required.items():
            if not directory.is_dir():
                problems.append(f"{tier} directory missing: {directory}")
            elif not (directory / filename).is_file():
                problems.append(f"{tier} {filename} missing in {directory}")

        if problems:
            raise StageError("Project structure invalid: " + "; ".join(problems), problems=problems)

        warnings: list[str] = []
        if ctx.options.is_enabled(StageName.CONTAINER):
            dockerfile = settings.container.dockerfile
            for tier in TIERS:
                if not (ws.tier_dir(tier) / dockerfile).is_file():
                    warnings.append(f"No {dockerfile} for {tier}; its image will not be built")

        return StageOutcome(
            message="Backend and frontend layout valid",
            data={
                "backend": str(ws.backend_dir / settings.backend.descriptor),
                "frontend": str(ws.frontend_dir / settings.frontend.manifest),
            },
            warnings=warnings,
        )
