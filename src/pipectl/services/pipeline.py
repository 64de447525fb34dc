"""PipelineService — run the stage sequence and record the outcome.

Stages run strictly one after another. A stage failure is resolved by the
stage's policy: ``abort`` stops the run (later stages become ``not_run``),
``warn`` adds a run warning, ``tolerate`` is only logged. Exhausting the
overall timeout aborts the run whatever the policy.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from pipectl.domain.stages import (
    PASSING_RUN_STATUSES,
    STAGE_ORDER,
    RunStatus,
    StageName,
    StagePolicy,
    StageStatus,
    derive_run_status,
    parse_stage_names,
    status_for_failure,
)
from pipectl.infrastructure.repositories.runs import RunRepository
from pipectl.infrastructure.shell import Deadline, PipelineTimeoutError, ToolRunner
from pipectl.services._helpers import now_iso
from pipectl.services.base import BaseService
from pipectl.services.result import ErrorCode, ServiceError, ServiceResult
from pipectl.services.telemetry import trace_span, traced
from pipectl.stages import build_pipeline
from pipectl.stages.base import RunOptions, Stage, StageContext, StageError

if TYPE_CHECKING:
    from pipectl.infrastructure.workspace import Workspace

log = structlog.get_logger(__name__)


@dataclass
class _StageRun:
    """Outcome of one stage as seen by the orchestrator."""

    status: StageStatus
    message: str = ""
    duration_ms: float = 0.0
    data: dict[str, Any] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    error: ServiceError | None = None


class PipelineService(BaseService):
    """Runs the pipeline and lists its stages."""

    def __init__(self, workspace: Workspace, runner: ToolRunner | None = None) -> None:
        super().__init__(workspace)
        self._runner = runner if runner is not None else ToolRunner()
        settings = workspace.settings
        if settings.analysis.token is not None:
            self._runner.add_secret(settings.analysis.token.get_secret_value())
        if settings.container.password is not None:
            self._runner.add_secret(settings.container.password.get_secret_value())

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @traced
    def list_stages(
        self,
        *,
        analysis: bool | None = None,
        containers: bool | None = None,
    ) -> ServiceResult:
        """Stage order with effective policy and enabled state."""
        options, reasons = self._resolve_options(
            only=[], skip=[], analysis=analysis, containers=containers, push=None
        )
        settings = self._workspace.settings
        items = [
            {
                "position": position,
                "name": stage.name.value,
                "description": stage.description,
                "policy": settings.stage_policy(stage.name).value,
                "enabled": options.is_enabled(stage.name),
                "reason": reasons.get(stage.name, ""),
            }
            for position, stage in enumerate(build_pipeline(), start=1)
        ]
        return ServiceResult(ok=True, op="list_stages", data={"items": items, "count": len(items)})

    @traced
    def run(
        self,
        *,
        only: Sequence[str] = (),
        skip: Sequence[str] = (),
        analysis: bool | None = None,
        containers: bool | None = None,
        push: bool | None = None,
        timeout_minutes: float | None = None,
    ) -> ServiceResult:
        """Execute the pipeline once and record it as a new numbered run."""
        only_names, bad_only = parse_stage_names(only)
        skip_names, bad_skip = parse_stage_names(skip)
        unknown = bad_only + bad_skip
        if unknown:
            return ServiceResult.failure(
                "run",
                ErrorCode.UNKNOWN_STAGE,
                f"Unknown stage(s): {', '.join(unknown)}",
                unknown=unknown,
                valid=[s.value for s in STAGE_ORDER],
            )

        ws = self._workspace
        settings = ws.settings
        options, reasons = self._resolve_options(
            only=only_names,
            skip=skip_names,
            analysis=analysis,
            containers=containers,
            push=push,
        )
        timeout = settings.pipeline.timeout_minutes if timeout_minutes is None else timeout_minutes

        repo = RunRepository(ws.engine)
        number = repo.start_run(
            started=now_iso(),
            status=RunStatus.RUNNING.value,
            options={
                "only": [s.value for s in only_names],
                "skip": [s.value for s in skip_names],
                "enabled": [s.value for s in STAGE_ORDER if options.is_enabled(s)],
                "push": options.push,
                "timeout_minutes": timeout,
            },
        )
        with structlog.contextvars.bound_contextvars(run=number):
            return self._run_stages(
                number, repo=repo, options=options, reasons=reasons, timeout=timeout
            )

    def _run_stages(
        self,
        number: int,
        *,
        repo: RunRepository,
        options: RunOptions,
        reasons: dict[StageName, str],
        timeout: float,
    ) -> ServiceResult:
        """Execute the stages of run *number* and close its record."""
        ws = self._workspace
        settings = ws.settings
        log.info("run.start", project=settings.project.name, timeout_minutes=timeout)

        ctx = StageContext(
            workspace=ws,
            runner=self._runner,
            deadline=Deadline.from_minutes(timeout),
            run_number=number,
            options=options,
            env=self._build_env(number),
        )

        started = time.perf_counter()
        records: list[dict[str, Any]] = []
        warnings: list[str] = []
        error: ServiceError | None = None

        try:
            for position, stage in enumerate(build_pipeline(), start=1):
                name = stage.name
                policy = settings.stage_policy(name)
                log_path: Path | None = None

                if error is not None:
                    outcome = _StageRun(StageStatus.NOT_RUN, "Not run: pipeline stopped earlier")
                elif name in reasons:
                    outcome = _StageRun(StageStatus.SKIPPED, reasons[name])
                else:
                    log_path = ws.run_log_dir(number) / f"{position:02d}-{name.value}.log"
                    ctx.log_path = log_path
                    hook_args = {"run_number": number, "stage": name.value}
                    self._dispatch_hook("pre_stage", hook_args, warnings)
                    outcome = self._execute(stage, ctx, policy)
                    self._dispatch_hook(
                        "post_stage",
                        {
                            "run_number": number,
                            "stage": name.value,
                            "status": outcome.status.value,
                            "duration_ms": outcome.duration_ms,
                        },
                        warnings,
                    )
                    warnings.extend(f"{name.value}: {w}" for w in outcome.warnings)
                    error = outcome.error

                log_ref = None
                if log_path is not None and log_path.exists():
                    log_ref = self._relative(log_path)
                repo.record_stage(
                    number,
                    position=position,
                    name=name.value,
                    status=outcome.status.value,
                    policy=policy.value,
                    duration_ms=outcome.duration_ms,
                    message=outcome.message,
                    log_path=log_ref,
                )
                records.append(
                    {
                        "position": position,
                        "name": name.value,
                        "status": outcome.status.value,
                        "policy": policy.value,
                        "duration_ms": round(outcome.duration_ms, 2),
                        "message": outcome.message,
                        "log": log_ref,
                    }
                )
        except BaseException as exc:
            reason = f"Run interrupted: {type(exc).__name__}"
            log.error("run.interrupted", reason=reason, stages_done=len(records))
            repo.finish_run(
                number,
                status=RunStatus.ABORTED.value,
                finished=now_iso(),
                duration_ms=(time.perf_counter() - started) * 1000,
                commit_sha=ctx.state.commit,
                error=reason,
            )
            raise

        status = derive_run_status(StageStatus(r["status"]) for r in records)
        duration_ms = (time.perf_counter() - started) * 1000
        repo.finish_run(
            number,
            status=status.value,
            finished=now_iso(),
            duration_ms=duration_ms,
            commit_sha=ctx.state.commit,
            error=error.message if error else None,
        )

        stats = {
            "duration_ms": round(duration_ms, 2),
            "stages": {r["name"]: r["status"] for r in records},
            "images": list(ctx.state.images),
        }
        self._dispatch_hook(
            "post_run", {"run_number": number, "status": status.value, "stats": stats}, warnings
        )

        if status in PASSING_RUN_STATUSES:
            log.info("run.finished", status=status.value, duration_ms=round(duration_ms, 2))
        else:
            log.warning("run.finished", status=status.value, duration_ms=round(duration_ms, 2))

        data: dict[str, Any] = {
            "number": number,
            "status": status.value,
            "duration_ms": round(duration_ms, 2),
            "commit": ctx.state.commit,
            "stages": records,
        }
        if ctx.state.tool_versions:
            data["tools"] = ctx.state.tool_versions
        if ctx.state.tests is not None:
            data["tests"] = ctx.state.tests
        if ctx.state.artifacts:
            data["artifacts"] = {
                "directory": self._relative(ws.run_artifact_dir(number)),
                "files": len(ctx.state.artifacts),
            }
        if ctx.state.images:
            data["images"] = ctx.state.images

        ok = status in PASSING_RUN_STATUSES
        return ServiceResult(
            ok=ok,
            op="run",
            data=data,
            warnings=warnings,
            error=None if ok else error,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _execute(
        self,
        stage: Stage,
        ctx: StageContext,
        policy: StagePolicy,
    ) -> _StageRun:
        """Run one stage and translate its result through *policy*."""
        name = stage.name.value
        log.info("stage.start", stage=name, policy=policy.value)
        start = time.perf_counter()
        with trace_span(name) as span:
            try:
                ctx.deadline.check()
                outcome = stage.run(ctx)
            except PipelineTimeoutError as exc:
                result = _StageRun(
                    StageStatus.ABORTED,
                    str(exc),
                    error=ServiceError(
                        code=ErrorCode.TIMEOUT, message=str(exc), detail={"stage": name}
                    ),
                )
                log.warning("stage.aborted", stage=name, reason=str(exc))
            except StageError as exc:
                result = self._failure(name, policy, exc.message, exc.detail)
            except Exception as exc:
                log.debug("stage.crashed", stage=name, exc_info=True)
                result = self._failure(name, policy, f"Unexpected error: {exc}", {})
            else:
                result = _StageRun(
                    StageStatus.SUCCESS,
                    outcome.message,
                    data=outcome.data,
                    warnings=list(outcome.warnings),
                )
                log.info("stage.success", stage=name, message=outcome.message)
            result.duration_ms = (time.perf_counter() - start) * 1000
            if span is not None:
                span.annotate("status", result.status.value)
        return result

    @staticmethod
    def _failure(
        name: str,
        policy: StagePolicy,
        message: str,
        detail: dict[str, Any],
    ) -> _StageRun:
        status = status_for_failure(policy)
        if policy is StagePolicy.ABORT:
            log.error("stage.failed", stage=name, reason=message)
            return _StageRun(
                status,
                message,
                error=ServiceError(
                    code=ErrorCode.STAGE_FAILED,
                    message=f"Stage {name} failed: {message}",
                    detail={"stage": name, **detail},
                ),
            )
        if policy is StagePolicy.WARN:
            log.warning("stage.failed_soft", stage=name, reason=message)
            return _StageRun(status, message, warnings=[message])
        log.info("stage.failure_tolerated", stage=name, reason=message)
        return _StageRun(status, message)

    def _resolve_options(
        self,
        *,
        only: Sequence[StageName],
        skip: Sequence[StageName],
        analysis: bool | None,
        containers: bool | None,
        push: bool | None,
    ) -> tuple[RunOptions, dict[StageName, str]]:
        """Decide which stages run. Returns options plus skip reasons."""
        settings = self._workspace.settings
        flags = {StageName.ANALYSIS: analysis, StageName.CONTAINER: containers}
        enabled: set[StageName] = set()
        reasons: dict[StageName, str] = {}

        for name in STAGE_ORDER:
            if only and name not in only:
                reasons[name] = "Not selected"
                continue
            if name in skip:
                reasons[name] = "Skipped on request"
                continue
            flag = flags.get(name)
            if flag is not None:
                on = flag
            elif only:
                on = True
            else:
                on = settings.stage_enabled(name)
            if not on:
                reasons[name] = "Disabled"
                continue
            enabled.add(name)

        resolved_push = settings.container.push if push is None else push
        return RunOptions(enabled=frozenset(enabled), push=resolved_push), reasons

    def _build_env(self, number: int) -> dict[str, str]:
        settings = self._workspace.settings
        return {
            **settings.environment,
            "CI": "true",
            "BUILD_NUMBER": str(number),
            "PIPECTL_RUN": str(number),
            "PIPECTL_WORKSPACE": str(self._workspace.root),
        }

    def _relative(self, path: Path) -> str:
        """*path* relative to the workspace root when possible."""
        try:
            return path.relative_to(self._workspace.root).as_posix()
        except ValueError:
            return str(path)
