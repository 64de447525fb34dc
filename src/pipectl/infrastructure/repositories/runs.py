"""Repository for pipeline run history."""

from __future__ import annotations

import json
from typing import Any

from sqlalchemy import func, insert, select, update
from sqlalchemy.engine import Engine

from pipectl.infrastructure.database.schema import runs, stage_results


class RunRepository:
    """Encapsulates SQL for the ``runs`` and ``stage_results`` tables."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def start_run(self, *, started: str, options: dict[str, Any], status: str) -> int:
        """Insert a new run row and return its sequential number."""
        with self._engine.begin() as conn:
            current = conn.execute(select(func.max(runs.c.number))).scalar_one_or_none()
            number = int(current or 0) + 1
            conn.execute(
                insert(runs).values(
                    number=number,
                    status=status,
                    started=started,
                    options=json.dumps(options, sort_keys=True),
                )
            )
        return number

    def record_stage(
        self,
        run_number: int,
        *,
        position: int,
        name: str,
        status: str,
        policy: str,
        duration_ms: float,
        message: str | None,
        log_path: str | None,
    ) -> None:
        """Store the outcome of one stage."""
        with self._engine.begin() as conn:
            conn.execute(
                insert(stage_results).values(
                    run_number=run_number,
                    position=position,
                    name=name,
                    status=status,
                    policy=policy,
                    duration_ms=round(duration_ms, 2),
                    message=message,
                    log_path=log_path,
                )
            )

    def finish_run(
        self,
        run_number: int,
        *,
        status: str,
        finished: str,
        duration_ms: float,
        commit_sha: str | None,
        error: str | None,
    ) -> None:
        """Close out a run row."""
        with self._engine.begin() as conn:
            conn.execute(
                update(runs)
                .where(runs.c.number == run_number)
                .values(
                    status=status,
                    finished=finished,
                    duration_ms=round(duration_ms, 2),
                    commit_sha=commit_sha,
                    error=error,
                )
            )

    def list_runs(self, *, limit: int = 20, status: str | None = None) -> list[dict[str, Any]]:
        """Newest runs first."""
        stmt = select(
            runs.c.number,
            runs.c.status,
            runs.c.started,
            runs.c.finished,
            runs.c.duration_ms,
            runs.c.commit_sha,
        ).order_by(runs.c.number.desc())
        if status is not None:
            stmt = stmt.where(runs.c.status == status)
        stmt = stmt.limit(limit)

        with self._engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [dict(row) for row in rows]

    def get_run(self, run_number: int) -> dict[str, Any] | None:
        """A run row with its ordered stage rows, or None."""
        with self._engine.connect() as conn:
            row = conn.execute(select(runs).where(runs.c.number == run_number)).mappings().first()
            if row is None:
                return None
            stage_rows = (
                conn.execute(
                    select(
                        stage_results.c.position,
                        stage_results.c.name,
                        stage_results.c.status,
                        stage_results.c.policy,
                        stage_results.c.duration_ms,
                        stage_results.c.message,
                        stage_results.c.log_path,
                    )
                    .where(stage_results.c.run_number == run_number)
                    .order_by(stage_results.c.position)
                )
                .mappings()
                .all()
            )

        run = dict(row)
        run["options"] = json.loads(run["options"]) if run.get("options") else {}
        run["stages"] = [dict(s) for s in stage_rows]
        return run

    def latest_number(self) -> int | None:
        """Highest run number recorded so far."""
        with self._engine.connect() as conn:
            return conn.execute(select(func.max(runs.c.number))).scalar_one_or_none()
