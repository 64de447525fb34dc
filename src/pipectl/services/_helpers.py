"""Shared service-layer helper functions."""

from __future__ import annotations

from datetime import UTC, datetime


def now_iso() -> str:
    """Current UTC time as standard ISO 8601 (run and stage timestamps)."""
    return datetime.now(UTC).isoformat()


def format_duration(ms: float | None) -> str:
    """Human duration for tables.

    Examples:
        >>> format_duration(850)
        '850ms'
        >>> format_duration(61_500)
        '1m 1.5s'
        >>> format_duration(None)
        '-'
    """
    if ms is None:
        return "-"
    if ms < 1000:
        return f"{ms:.0f}ms"
    seconds = ms / 1000
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, rest = divmod(seconds, 60)
    return f"{int(minutes)}m {rest:.1f}s"
