"""Stage names, failure policies, and status rules.

The pipeline is a fixed, strictly ordered sequence of stages. Each stage
carries a failure policy that decides what a failure does to the run:

- ``abort``: the stage is marked failed and the run stops.
- ``warn``: the failure is reported as a warning and the run continues.
- ``tolerate``: the failure is suppressed and the run continues.

Run status is always derived from stage statuses, never set directly.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum


class StageName(StrEnum):
    """The nine pipeline stages, in execution order."""

    TOOLS = "tools"
    CHECKOUT = "checkout"
    VALIDATE = "validate"
    BACKEND_BUILD = "backend-build"
    ANALYSIS = "analysis"
    BACKEND_TEST = "backend-test"
    FRONTEND_BUILD = "frontend-build"
    ARCHIVE = "archive"
    CONTAINER = "container"


class StagePolicy(StrEnum):
    """What a stage failure does to the run."""

    ABORT = "abort"
    WARN = "warn"
    TOLERATE = "tolerate"


class StageStatus(StrEnum):
    """Outcome of a single stage within a run."""

    SUCCESS = "success"
    FAILED = "failed"
    UNSTABLE = "unstable"
    SKIPPED = "skipped"
    NOT_RUN = "not_run"
    ABORTED = "aborted"


class RunStatus(StrEnum):
    """Overall outcome of a pipeline run."""

    RUNNING = "running"
    SUCCESS = "success"
    UNSTABLE = "unstable"
    FAILURE = "failure"
    ABORTED = "aborted"


STAGE_ORDER: tuple[StageName, ...] = tuple(StageName)

DEFAULT_POLICIES: dict[StageName, StagePolicy] = {
    StageName.TOOLS: StagePolicy.ABORT,
    StageName.CHECKOUT: StagePolicy.ABORT,
    StageName.VALIDATE: StagePolicy.ABORT,
    StageName.BACKEND_BUILD: StagePolicy.ABORT,
    StageName.ANALYSIS: StagePolicy.WARN,
    StageName.BACKEND_TEST: StagePolicy.TOLERATE,
    StageName.FRONTEND_BUILD: StagePolicy.ABORT,
    StageName.ARCHIVE: StagePolicy.WARN,
    StageName.CONTAINER: StagePolicy.ABORT,
}

# Stages that only run when switched on by config or CLI flag.
OPTIONAL_STAGES: frozenset[StageName] = frozenset({StageName.ANALYSIS, StageName.CONTAINER})

# Runs that ended in one of these states count as passing (exit code 0).
PASSING_RUN_STATUSES: frozenset[RunStatus] = frozenset({RunStatus.SUCCESS, RunStatus.UNSTABLE})

_RUN_STATUS_RANK: dict[RunStatus, int] = {
    RunStatus.SUCCESS: 0,
    RunStatus.UNSTABLE: 1,
    RunStatus.FAILURE: 2,
    RunStatus.ABORTED: 3,
}

_STAGE_TO_RUN: dict[StageStatus, RunStatus] = {
    StageStatus.SUCCESS: RunStatus.SUCCESS,
    StageStatus.SKIPPED: RunStatus.SUCCESS,
    StageStatus.NOT_RUN: RunStatus.SUCCESS,
    StageStatus.UNSTABLE: RunStatus.UNSTABLE,
    StageStatus.FAILED: RunStatus.FAILURE,
    StageStatus.ABORTED: RunStatus.ABORTED,
}


def parse_stage_names(names: Iterable[str]) -> tuple[list[StageName], list[str]]:
    """Split *names* into recognised stages and unknown leftovers.

    Examples:
        >>> parse_stage_names(["tools", "bogus"])
        ([<StageName.TOOLS: 'tools'>], ['bogus'])
    """
    known: list[StageName] = []
    unknown: list[str] = []
    for raw in names:
        try:
            known.append(StageName(raw.strip().lower()))
        except ValueError:
            unknown.append(raw)
    return known, unknown


def status_for_failure(policy: StagePolicy) -> StageStatus:
    """Stage status recorded when a stage under *policy* fails."""
    if policy is StagePolicy.ABORT:
        return StageStatus.FAILED
    return StageStatus.UNSTABLE


def derive_run_status(statuses: Iterable[StageStatus]) -> RunStatus:
    """Fold stage statuses into a run status.

    Precedence: aborted > failure > unstable > success.

    Examples:
        >>> derive_run_status([StageStatus.SUCCESS, StageStatus.UNSTABLE])
        <RunStatus.UNSTABLE: 'unstable'>
        >>> derive_run_status([])
        <RunStatus.SUCCESS: 'success'>
    """
    worst = RunStatus.SUCCESS
    for status in statuses:
        candidate = _STAGE_TO_RUN[status]
        if _RUN_STATUS_RANK[candidate] > _RUN_STATUS_RANK[worst]:
            worst = candidate
    return worst
