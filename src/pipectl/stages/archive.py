"""Artifact archiving: keep the run's build outputs with fingerprints."""

from __future__ import annotations

from dataclasses import asdict
from pathlib import Path

from pipectl.domain.stages import StageName
from pipectl.infrastructure.artifacts import collect_files, copy_files, copy_tree, write_manifest
from pipectl.stages.base import Stage, StageContext, StageError, StageOutcome


class ArchiveStage(Stage):
    name = StageName.ARCHIVE
    description = "Archive backend packages and frontend output"

    def run(self, ctx: StageContext) -> StageOutcome:
        ws = ctx.workspace
        run_dir = ws.run_artifact_dir(ctx.run_number)
        warnings: list[str] = []
        archived: list[Path] = []

        patterns = ctx.settings.backend.artifacts
        backend_files = collect_files(ws.backend_dir, patterns)
        if backend_files:
            archived.extend(
                copy_files(backend_files, source_root=ws.backend_dir, dest_root=run_dir / "backend")
            )
        else:
            warnings.append(f"No backend artifacts matched {', '.join(patterns)}")

        output = ctx.state.frontend_output or self._find_frontend_output(ctx)
        if output is not None:
            archived.extend(copy_tree(output, run_dir / "frontend" / output.name))
        else:
            warnings.append("No frontend build output to archive")

        if not archived:
            raise StageError("No artifacts found to archive", warnings=warnings)

        entries = write_manifest(run_dir, archived)
        ctx.state.artifacts = [asdict(e) for e in entries]
        return StageOutcome(
            message=f"Archived {len(entries)} files to {run_dir}",
            data={"directory": str(run_dir), "files": len(entries)},
            warnings=warnings,
        )

    @staticmethod
    def _find_frontend_output(ctx: StageContext) -> Path | None:
        frontend_dir = ctx.workspace.frontend_dir
        for name in ctx.settings.frontend.output_dirs:
            candidate = frontend_dir / name
            if candidate.is_dir():
                return candidate
        return None
