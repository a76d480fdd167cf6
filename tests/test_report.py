"""Tests for console and JSON reporting."""

import json

from rich.console import Console

from blackcube.models import Finding, ScanOutput, ScanStats, Severity
from blackcube.report import render_console, render_json


def _result(findings=(), incomplete=()):
    stats = ScanStats(
        scanned_files=4,
        skipped_files=1,
        history_scanned=True,
        duration_ms=12,
        incomplete_phases=incomplete,
    )
    return ScanOutput(findings=tuple(findings), stats=stats, timings={"files": 3, "secrets": 2})


def _render(result, **kwargs) -> str:
    console = Console(record=True, width=200, no_color=True)
    render_console(result, console=console, **kwargs)
    return console.export_text()


FINDINGS = [
    Finding(Severity.LOW, "debug-enabled", "Debug mode enabled", fix="Disable debug", file="/r/s.py", line=3,
            snippet="DEBUG = True", pattern=r"\bDEBUG\s*=\s*True\b"),
    Finding(Severity.CRITICAL, "aws-access-key-history", "AWS access key ID (git history)", fix="Rotate",
            file="/r/deploy.sh", commit="abc123", commit_date="2024-01-01"),
]


class TestRenderConsole:
    def test_clean(self):
        output = _render(_result())
        assert "CLEAN: no blocking issues found." in output
        assert "4 scanned (1 skipped)" in output

    def test_findings_grouped_by_severity(self):
        output = _render(_result(FINDINGS))
        assert output.index("CRITICAL (1 issues)") < output.index("LOW (1 issues)")
        assert "File: /r/s.py:3" in output
        assert "File: /r/deploy.sh" in output
        assert "Fix: Disable debug" in output
        assert "Summary: 2 issues found | critical 1 | high 0 | medium 0 | low 1" in output

    def test_snippets_only_when_verbose(self):
        assert "Code: DEBUG = True" not in _render(_result(FINDINGS))
        assert "Code: DEBUG = True" in _render(_result(FINDINGS), verbose=True)

    def test_commit_location_without_file(self):
        finding = Finding(Severity.HIGH, "t", "msg", commit="abc123")
        assert "Commit: abc123" in _render(_result([finding]))

    def test_summary_only(self):
        output = _render(_result(FINDINGS), summary_only=True)
        assert "Fix:" not in output
        assert "Summary: 2 issues found" in output

    def test_limit(self):
        output = _render(_result(FINDINGS), limit=1)
        assert "AWS access key ID" in output
        assert "Debug mode enabled" not in output
        assert "1 more finding(s) not shown" in output

    def test_incomplete_phases_and_timings(self):
        output = _render(_result(incomplete=("history",)), show_timings=True)
        assert "incomplete" in output
        assert "files 3ms" in output


class TestRenderJson:
    def test_structure(self):
        data = json.loads(render_json(_result(FINDINGS, incomplete=("history",))))
        assert set(data) == {"meta", "findings", "stats", "timings"}
        assert data["meta"]["tool"] == "blackcube"
        assert data["meta"]["version"] == "0.1.0"
        assert data["stats"]["incomplete_phases"] == ["history"]
        assert data["timings"] == {"files": 3, "secrets": 2}

    def test_findings_sorted_and_sparse(self):
        data = json.loads(render_json(_result(FINDINGS)))
        assert [f["severity"] for f in data["findings"]] == ["critical", "low"]
        assert "line" not in data["findings"][0]
        assert data["findings"][0]["commit"] == "abc123"
        assert data["findings"][1]["line"] == 3

    def test_version_matches_package(self):
        import blackcube

        data = json.loads(render_json(_result()))
        assert data["meta"]["version"] == blackcube.__version__
        assert blackcube.run_scan is not None
        assert set(blackcube.__all__) >= {"Finding", "ScanOptions", "ScanOutput", "run_scan", "__version__"}
