"""Surefire (JUnit XML) report summarising."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TestSummary:
    """Totals across every test suite report in a directory."""

    __test__ = False  # not a pytest class

    suites: int = 0
    tests: int = 0
    failures: int = 0
    errors: int = 0
    skipped: int = 0

    @property
    def passed(self) -> int:
        return max(0, self.tests - self.failures - self.errors - self.skipped)

    @property
    def has_failures(self) -> bool:
        return self.failures > 0 or self.errors > 0

    def to_dict(self) -> dict[str, Any]:
        return {**asdict(self), "passed": self.passed}


def _int_attr(element: ET.Element, name: str) -> int:
    try:
        return int(float(element.get(name, "0")))
    except ValueError:
        return 0


def summarize_reports(report_dir: Path, pattern: str = "TEST-*.xml") -> TestSummary | None:
    """Sum ``<testsuite>`` counters over all reports in *report_dir*.

    Returns None when the directory holds no readable reports. Unparseable
    files are skipped with a warning.
    """
    if not report_dir.is_dir():
        return None

    suites = tests = failures = errors = skipped = 0
    for path in sorted(report_dir.glob(pattern)):
        try:
            root = ET.parse(path).getroot()
        except ET.ParseError:
            logger.warning("Skipping unreadable test report %s", path)
            continue
        nodes = [root] if root.tag == "testsuite" else root.findall("testsuite")
        for suite in nodes:
            suites += 1
            tests += _int_attr(suite, "tests")
            failures += _int_attr(suite, "failures")
            errors += _int_attr(suite, "errors")
            skipped += _int_attr(suite, "skipped")

    if suites == 0:
        return None
    return TestSummary(
        suites=suites, tests=tests, failures=failures, errors=errors, skipped=skipped
    )
