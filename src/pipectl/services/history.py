"""HistoryService — read access to recorded pipeline runs."""

from __future__ import annotations

from pipectl.infrastructure.artifacts import read_manifest
from pipectl.infrastructure.repositories.runs import RunRepository
from pipectl.services.base import BaseService
from pipectl.services.result import ErrorCode, ServiceResult
from pipectl.services.telemetry import traced


class HistoryService(BaseService):
    """Lists past runs and shows a single run with its stages."""

    @traced
    def list_runs(self, *, limit: int = 20, status: str | None = None) -> ServiceResult:
        """Newest runs first, optionally filtered by run status."""
        items = RunRepository(self._workspace.engine).list_runs(limit=limit, status=status)
        return ServiceResult(
            ok=True,
            op="list_runs",
            data={"items": items, "count": len(items)},
        )

    @traced
    def show_run(self, number: int | None = None) -> ServiceResult:
        """One run with stages and archived files. ``None`` means the latest run."""
        repo = RunRepository(self._workspace.engine)
        if number is None:
            number = repo.latest_number()
        run = repo.get_run(number) if number is not None else None
        if run is None:
            label = f"#{number}" if number is not None else "(none recorded)"
            return ServiceResult.failure("show_run", ErrorCode.NOT_FOUND, f"No run {label}")

        manifest = read_manifest(self._workspace.run_artifact_dir(run["number"]))
        run["artifacts"] = [
            {"path": entry.path, "size": entry.size, "sha256": entry.sha256} for entry in manifest
        ]
        return ServiceResult(ok=True, op="show_run", data=run)
