"""Tests for stage names, policies, and run status derivation."""

from __future__ import annotations

import pytest

from pipectl.domain.stages import (
    DEFAULT_POLICIES,
    OPTIONAL_STAGES,
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


class TestStageOrder:
    def test_nine_stages_in_pipeline_order(self) -> None:
        assert [s.value for s in STAGE_ORDER] == [
            "tools",
            "checkout",
            "validate",
            "backend-build",
            "analysis",
            "backend-test",
            "frontend-build",
            "archive",
            "container",
        ]

    def test_every_stage_has_a_default_policy(self) -> None:
        assert set(DEFAULT_POLICIES) == set(STAGE_ORDER)

    @pytest.mark.parametrize(
        ("stage", "policy"),
        [
            (StageName.TOOLS, StagePolicy.ABORT),
            (StageName.VALIDATE, StagePolicy.ABORT),
            (StageName.ANALYSIS, StagePolicy.WARN),
            (StageName.BACKEND_TEST, StagePolicy.TOLERATE),
            (StageName.ARCHIVE, StagePolicy.WARN),
            (StageName.CONTAINER, StagePolicy.ABORT),
        ],
    )
    def test_default_policy(self, stage: StageName, policy: StagePolicy) -> None:
        assert DEFAULT_POLICIES[stage] is policy

    def test_optional_stages(self) -> None:
        assert OPTIONAL_STAGES == {StageName.ANALYSIS, StageName.CONTAINER}


class TestParseStageNames:
    def test_known_and_unknown(self) -> None:
        known, unknown = parse_stage_names(["tools", "bogus", "archive"])
        assert known == [StageName.TOOLS, StageName.ARCHIVE]
        assert unknown == ["bogus"]

    def test_case_and_whitespace_insensitive(self) -> None:
        known, unknown = parse_stage_names([" Backend-Build "])
        assert known == [StageName.BACKEND_BUILD]
        assert unknown == []

    def test_empty(self) -> None:
        assert parse_stage_names([]) == ([], [])


class TestStatusRules:
    def test_abort_failure_is_failed(self) -> None:
        assert status_for_failure(StagePolicy.ABORT) is StageStatus.FAILED

    @pytest.mark.parametrize("policy", [StagePolicy.WARN, StagePolicy.TOLERATE])
    def test_soft_failure_is_unstable(self, policy: StagePolicy) -> None:
        assert status_for_failure(policy) is StageStatus.UNSTABLE

    def test_all_success(self) -> None:
        statuses = [StageStatus.SUCCESS, StageStatus.SKIPPED, StageStatus.SUCCESS]
        assert derive_run_status(statuses) is RunStatus.SUCCESS

    def test_unstable_wins_over_success(self) -> None:
        statuses = [StageStatus.SUCCESS, StageStatus.UNSTABLE, StageStatus.SKIPPED]
        assert derive_run_status(statuses) is RunStatus.UNSTABLE

    def test_failure_wins_over_unstable(self) -> None:
        statuses = [StageStatus.UNSTABLE, StageStatus.FAILED, StageStatus.NOT_RUN]
        assert derive_run_status(statuses) is RunStatus.FAILURE

    def test_aborted_wins_over_everything(self) -> None:
        statuses = [StageStatus.FAILED, StageStatus.ABORTED, StageStatus.UNSTABLE]
        assert derive_run_status(statuses) is RunStatus.ABORTED

    def test_order_does_not_matter(self) -> None:
        a = [StageStatus.UNSTABLE, StageStatus.SUCCESS]
        assert derive_run_status(a) is derive_run_status(reversed(a))

    def test_passing_statuses(self) -> None:
        assert PASSING_RUN_STATUSES == {RunStatus.SUCCESS, RunStatus.UNSTABLE}
        assert RunStatus.FAILURE not in PASSING_RUN_STATUSES
