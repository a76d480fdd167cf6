"""Severity thresholds, grouping, display order and exit status."""

from enum import IntEnum
from functools import cmp_to_key
from typing import Iterable

from blackcube.models import Finding, Severity

SEVERITY_ORDER: tuple[Severity, ...] = (
    Severity.CRITICAL,
    Severity.HIGH,
    Severity.MEDIUM,
    Severity.LOW,
)


class ExitStatus(IntEnum):
    CLEAN = 0
    SOFT_FAIL = 1
    HARD_FAIL = 2
    ERROR = 3


def meets_threshold(severity: Severity, threshold: Severity | None = None) -> bool:
    if threshold is None:
        return True
    return severity >= threshold


def filter_by_severity(findings: Iterable[Finding], minimum: Severity | None = None) -> list[Finding]:
    return [f for f in findings if meets_threshold(f.severity, minimum)]


def group_by_severity(findings: Iterable[Finding]) -> dict[Severity, list[Finding]]:
    groups: dict[Severity, list[Finding]] = {s: [] for s in SEVERITY_ORDER}
    for f in findings:
        groups[f.severity].append(f)
    return groups


def _compare(a: Finding, b: Finding) -> int:
    if a.severity.rank != b.severity.rank:
        return b.severity.rank - a.severity.rank
    if a.file and b.file:
        left, right = a.file, b.file
    else:
        left, right = a.message, b.message
    return (left > right) - (left < right)


def sort_findings(findings: Iterable[Finding]) -> list[Finding]:
    """Most severe first; ties ordered by file, or by message when a file is missing."""
    return sorted(findings, key=cmp_to_key(_compare))


def highest_severity(findings: Iterable[Finding]) -> Severity | None:
    return max((f.severity for f in findings), key=lambda s: s.rank, default=None)


def exit_code_for(findings: Iterable[Finding]) -> ExitStatus:
    highest = highest_severity(findings)
    if highest is None:
        return ExitStatus.CLEAN
    if highest >= Severity.HIGH:
        return ExitStatus.HARD_FAIL
    return ExitStatus.SOFT_FAIL
