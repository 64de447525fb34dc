"""Tests for shared service helpers."""

from __future__ import annotations

from datetime import datetime

import pytest

from pipectl.services._helpers import format_duration, now_iso


class TestFormatDuration:
    @pytest.mark.parametrize(
        ("ms", "expected"),
        [
            (None, "-"),
            (0, "0ms"),
            (850, "850ms"),
            (1500, "1.5s"),
            (59_940, "59.9s"),
            (61_500, "1m 1.5s"),
            (3_600_000, "60m 0.0s"),
        ],
    )
    def test_format(self, ms: float | None, expected: str) -> None:
        assert format_duration(ms) == expected


class TestNowIso:
    def test_timezone_aware(self) -> None:
        parsed = datetime.fromisoformat(now_iso())
        assert parsed.tzinfo is not None
