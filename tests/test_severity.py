"""Tests for severity filtering, grouping, ordering and exit status."""

from blackcube.models import Finding, Severity
from blackcube.severity import (
    ExitStatus,
    exit_code_for,
    filter_by_severity,
    group_by_severity,
    highest_severity,
    meets_threshold,
    sort_findings,
)


def _finding(severity=Severity.HIGH, message="Test finding", file="/src/app.py"):
    return Finding(severity=severity, type="rule", message=message, fix="fix", file=file, line=1)


class TestSeverityOrdering:
    def test_ranks(self):
        assert [s.rank for s in Severity] == [4, 3, 2, 1]

    def test_comparisons(self):
        assert Severity.CRITICAL > Severity.HIGH > Severity.MEDIUM > Severity.LOW
        assert Severity.LOW <= Severity.LOW
        assert not Severity.MEDIUM >= Severity.HIGH


class TestThreshold:
    def test_no_threshold_keeps_everything(self):
        assert meets_threshold(Severity.LOW, None)

    def test_threshold(self):
        assert meets_threshold(Severity.HIGH, Severity.HIGH)
        assert meets_threshold(Severity.CRITICAL, Severity.HIGH)
        assert not meets_threshold(Severity.MEDIUM, Severity.HIGH)

    def test_filter_by_severity(self):
        findings = [_finding(s) for s in Severity]
        kept = filter_by_severity(findings, Severity.MEDIUM)
        assert {f.severity for f in kept} == {Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM}
        assert all(f.severity.rank >= Severity.MEDIUM.rank for f in kept)


class TestGrouping:
    def test_groups_are_exhaustive_and_exclusive(self):
        findings = [_finding(Severity.LOW), _finding(Severity.HIGH), _finding(Severity.LOW)]
        groups = group_by_severity(findings)
        assert list(groups) == [Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW]
        assert sum(len(v) for v in groups.values()) == len(findings)
        assert len(groups[Severity.LOW]) == 2
        assert groups[Severity.CRITICAL] == []


class TestSortFindings:
    def test_descending_severity(self):
        findings = [_finding(Severity.LOW), _finding(Severity.CRITICAL), _finding(Severity.MEDIUM)]
        ordered = sort_findings(findings)
        assert [f.severity for f in ordered] == [Severity.CRITICAL, Severity.MEDIUM, Severity.LOW]

    def test_ties_ordered_by_file(self):
        findings = [_finding(file="/b.py"), _finding(file="/a.py"), _finding(file="/c.py")]
        assert [f.file for f in sort_findings(findings)] == ["/a.py", "/b.py", "/c.py"]

    def test_ties_without_file_ordered_by_message(self):
        findings = [_finding(message="zeta", file=None), _finding(message="alpha", file=None)]
        assert [f.message for f in sort_findings(findings)] == ["alpha", "zeta"]

    def test_does_not_mutate_input(self):
        findings = [_finding(Severity.LOW), _finding(Severity.CRITICAL)]
        sort_findings(findings)
        assert findings[0].severity == Severity.LOW


class TestExitStatus:
    def test_clean(self):
        assert exit_code_for([]) == ExitStatus.CLEAN == 0

    def test_hard_fail_on_high(self):
        assert exit_code_for([_finding(Severity.LOW), _finding(Severity.HIGH)]) == ExitStatus.HARD_FAIL

    def test_hard_fail_on_critical(self):
        assert exit_code_for([_finding(Severity.CRITICAL)]) == 2

    def test_soft_fail_on_medium_or_low(self):
        assert exit_code_for([_finding(Severity.MEDIUM), _finding(Severity.LOW)]) == ExitStatus.SOFT_FAIL

    def test_highest_severity(self):
        assert highest_severity([]) is None
        assert highest_severity([_finding(Severity.LOW), _finding(Severity.MEDIUM)]) == Severity.MEDIUM
