"""Click-based CLI interface for blackcube."""

import contextlib
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from blackcube.baseline import DEFAULT_BASELINE, write_baseline
from blackcube.config import load_config
from blackcube.models import Severity
from blackcube.pipeline import ScanError, run_scan
from blackcube.report import render_console, render_json
from blackcube.severity import ExitStatus, exit_code_for

SEVERITY_CHOICES = [s.value for s in Severity]


def _configure_logging(debug: bool) -> None:
    handler = RichHandler(console=Console(stderr=True), show_path=False)
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )


def _fail(message: str) -> None:
    Console(stderr=True).print(f"[bold red]Error:[/] {message}")
    sys.exit(ExitStatus.ERROR)


@click.group()
@click.version_option(package_name="blackcube")
def cli():
    """blackcube - scan codebases for exposed secrets and common security vulnerabilities."""


@cli.command()
@click.argument("target", type=click.Path(), default=".")
@click.option("--json", "as_json", is_flag=True, help="Output JSON format.")
@click.option("--skip-history", is_flag=True, help="Skip git history scanning.")
@click.option("--severity", "min_severity", type=click.Choice(SEVERITY_CHOICES), default=None,
              help="Minimum severity to report.")
@click.option("--verbose", is_flag=True, help="Show matched code snippets.")
@click.option("--debug", is_flag=True, help="Enable debug logging on stderr.")
@click.option("--commit-depth", type=click.IntRange(min=1), default=None,
              help="Number of commits to scan from history (default 100).")
@click.option("--summary-only", is_flag=True, help="Only print summary and stats.")
@click.option("--no-color", is_flag=True, help="Disable ANSI colors.")
@click.option("--top", type=click.IntRange(min=1), default=None, help="Show only the top N findings (by severity).")
@click.option("--max-findings", type=click.IntRange(min=1), default=None, help="Limit total findings shown.")
@click.option("--max-bytes", type=click.IntRange(min=1), default=None, help="Maximum file size to scan (bytes).")
@click.option("--include", "include_globs", multiple=True, help="Include glob (replaces the defaults; repeatable).")
@click.option("--exclude", "exclude_globs", multiple=True, help="Exclude glob (repeatable).")
@click.option("--baseline", type=str, default=None, help=f"Path to baseline file (default {DEFAULT_BASELINE}).")
@click.option("--update-baseline", is_flag=True, help="Write current findings to the baseline file.")
@click.option("--timeout", type=click.FloatRange(min=0, min_open=True), default=None,
              help="Abandon phases still running after this many seconds.")
@click.option("--online-advisories", is_flag=True,
              help="Query OSV.dev for advisories on declared dependencies.")
@click.option("--config", "config_path", type=click.Path(), default=None,
              help="Path to .blackcube.yml config file.")
def scan(target, as_json, skip_history, min_severity, verbose, debug, commit_depth, summary_only,
         no_color, top, max_findings, max_bytes, include_globs, exclude_globs, baseline,
         update_baseline, timeout, online_advisories, config_path):
    """Scan TARGET (default: current directory) for secrets and vulnerabilities."""
    _configure_logging(debug)
    root = Path(target).resolve()

    try:
        config = load_config(config_path=config_path, project_root=str(root))
        baseline_path = baseline or config.baseline or DEFAULT_BASELINE
        options = config.to_scan_options(
            str(root),
            skip_history=skip_history or None,
            severity=Severity(min_severity) if min_severity else None,
            commit_depth=commit_depth,
            max_bytes=max_bytes,
            include_globs=list(include_globs) or None,
            exclude_globs=list(config.exclude_patterns) + list(exclude_globs) or None,
            baseline_path=baseline_path,
            timeout=timeout,
            online_advisories=online_advisories or None,
        )
    except (ValueError, FileNotFoundError) as exc:
        _fail(f"Invalid configuration: {exc}")

    console = Console(no_color=no_color)
    status_console = Console(stderr=True, no_color=no_color)
    show_progress = not as_json and status_console.is_terminal
    total_phases = 4 if options.skip_history else 5
    completed = 0

    spinner = status_console.status("Scanning files…") if show_progress else contextlib.nullcontext()
    with spinner as status:
        def on_phase(phase: str, stage: str) -> None:
            nonlocal completed
            if status is None:
                return
            if stage == "start":
                status.update(f"Scanning {phase} ({completed + 1}/{total_phases})")
            else:
                completed += 1
                status.update(f"Completed {phase} ({completed}/{total_phases})")

        options.on_phase = on_phase
        try:
            result = run_scan(options)
        except ScanError as exc:
            _fail(f"Scan failed: {exc}")

    if as_json:
        click.echo(render_json(result))
    else:
        render_console(
            result,
            console=console,
            verbose=verbose,
            summary_only=summary_only,
            limit=max_findings or top,
            show_timings=verbose,
        )

    if update_baseline:
        written = write_baseline(root, baseline_path, result.findings)
        Console(stderr=True, no_color=no_color).print(f"[dim]Baseline updated at {written}[/]")

    sys.exit(exit_code_for(result.findings))
