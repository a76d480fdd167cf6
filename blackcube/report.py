"""Report generation - rich terminal output and JSON."""

from __future__ import annotations

import json
from datetime import datetime, timezone

from rich.console import Console
from rich.table import Table
from rich.text import Text

from blackcube import __version__
from blackcube.models import Finding, ScanOutput, Severity
from blackcube.severity import SEVERITY_ORDER, group_by_severity, sort_findings

SEVERITY_COLORS = {
    Severity.CRITICAL: "bold red",
    Severity.HIGH: "yellow",
    Severity.MEDIUM: "cyan",
    Severity.LOW: "dim",
}

SEVERITY_ICONS = {
    Severity.CRITICAL: "[!!]",
    Severity.HIGH: "[! ]",
    Severity.MEDIUM: "[- ]",
    Severity.LOW: "[..]",
}


def _location(finding: Finding) -> str:
    if finding.file:
        suffix = f":{finding.line}" if finding.line else ""
        return f"File: {finding.file}{suffix}"
    if finding.commit:
        return f"Commit: {finding.commit}"
    return ""


def _print_stats(console: Console, result: ScanOutput, show_timings: bool) -> None:
    stats = result.stats
    table = Table(title="blackcube security scan", show_header=False, box=None, padding=(0, 2))
    table.add_column("label", style="dim")
    table.add_column("value")

    badges = Text()
    groups = group_by_severity(result.findings)
    for sev in SEVERITY_ORDER:
        badges.append(f"{sev.value.upper():<8}{len(groups[sev]):02d}  ", style=SEVERITY_COLORS[sev])
    table.add_row("findings", badges)
    table.add_row("files", f"{stats.scanned_files} scanned ({stats.skipped_files} skipped)")
    table.add_row("history", "scanned" if stats.history_scanned else "skipped")
    table.add_row("duration", f"{stats.duration_ms}ms")
    if stats.incomplete_phases:
        table.add_row("incomplete", Text(", ".join(stats.incomplete_phases), style="yellow"))
    if show_timings and result.timings:
        table.add_row("phases", ", ".join(f"{k} {v}ms" for k, v in result.timings.items()))

    console.print()
    console.print(table)
    console.print()


def _print_finding(console: Console, finding: Finding, verbose: bool) -> None:
    console.print(Text("  • ") + Text(finding.message, style="bold"))
    location = _location(finding)
    if location:
        console.print(Text(f"    {location}", style="dim"))
    if finding.pattern:
        console.print(Text(f"    Pattern: {finding.pattern}"))
    if finding.snippet and verbose:
        console.print(Text(f"    Code: {finding.snippet}"))
    if finding.fix:
        console.print(Text(f"    Fix: {finding.fix}"))
    console.print()


def render_console(
    result: ScanOutput,
    console: Console | None = None,
    verbose: bool = False,
    summary_only: bool = False,
    limit: int | None = None,
    show_timings: bool = False,
) -> None:
    console = console or Console()
    _print_stats(console, result, show_timings)

    ordered = sort_findings(result.findings)
    shown = ordered[:limit] if limit else ordered

    if not summary_only:
        groups = group_by_severity(shown)
        for sev in SEVERITY_ORDER:
            items = groups[sev]
            if not items:
                continue
            color = SEVERITY_COLORS[sev]
            console.print(
                Text(f"{SEVERITY_ICONS[sev]} ") + Text(f"{sev.value.upper()} ({len(items)} issues)", style=color)
            )
            for finding in items:
                _print_finding(console, finding, verbose)
        if len(shown) < len(ordered):
            console.print(Text(f"... {len(ordered) - len(shown)} more finding(s) not shown", style="dim"))

    if not ordered:
        console.print("[bold green]CLEAN: no blocking issues found.[/]")
        return

    counts = group_by_severity(ordered)
    parts = " | ".join(f"{sev.value} {len(counts[sev])}" for sev in SEVERITY_ORDER)
    console.print(f"[dim]Summary: {len(ordered)} issues found | {parts}[/]")


def render_json(result: ScanOutput) -> str:
    payload = result.to_dict()
    payload["findings"] = [f.to_dict() for f in sort_findings(result.findings)]
    output = {
        "meta": {
            "tool": "blackcube",
            "version": __version__,
            "generated_at": datetime.now(timezone.utc).isoformat(),
        },
        **payload,
    }
    return json.dumps(output, indent=2)
