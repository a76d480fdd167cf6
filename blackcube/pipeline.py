"""Scan orchestration: runs every finding producer and applies the reporting policy.

``files``, ``dependencies`` and ``history`` start together, each on its own
daemon thread; ``secrets`` and ``vulnerabilities`` start once the corpus is
ready. An optional deadline abandons unfinished phases; whatever completed
is still reported, and the abandoned phases are listed in the stats.
Abandoned phases are told to stop and never hold up interpreter exit.
"""

import logging
import threading
import time
from concurrent.futures import Future, wait
from pathlib import Path
from typing import Callable

from blackcube.baseline import deduplicate, load_baseline, resolve_baseline_path, suppress_baselined
from blackcube.corpus import gather_text_files
from blackcube.models import Corpus, Finding, ScanOptions, ScanOutput, ScanStats
from blackcube.scanners import DependencyScanner, GitHistoryScanner, SecretScanner, VulnerabilityScanner
from blackcube.severity import filter_by_severity

logger = logging.getLogger(__name__)

PATTERNS_DIR = Path(__file__).resolve().parent / "patterns"


class ScanError(Exception):
    """Raised when the scan cannot complete at all."""


def is_own_pattern_asset(path: str | None) -> bool:
    """True for the rule files this package ships, wherever they are checked out."""
    if not path:
        return False
    posix = Path(path).as_posix()
    if "/blackcube/patterns/" in posix:
        return True
    return Path(path).resolve().is_relative_to(PATTERNS_DIR)


def baseline_exclusion(root: Path, baseline_path: str | None) -> list[str]:
    """Anchored exclude pattern for a baseline file kept inside *root*."""
    if not baseline_path:
        return []
    full_path = resolve_baseline_path(root, baseline_path).resolve()
    if not full_path.is_relative_to(root):
        return []
    return ["/" + full_path.relative_to(root).as_posix()]


class _PhaseRunner:
    """Starts, times and reports phases; ``stop`` is set once the scan is over."""

    def __init__(self, on_phase=None):
        self.on_phase = on_phase
        self.timings: dict[str, int] = {}
        self.stop = threading.Event()

    def _notify(self, name: str, stage: str) -> None:
        if self.on_phase is not None and not self.stop.is_set():
            self.on_phase(name, stage)

    def run(self, name: str, fn: Callable, *args):
        self._notify(name, "start")
        t0 = time.monotonic()
        result = fn(*args)
        self.timings[name] = int((time.monotonic() - t0) * 1000)
        self._notify(name, "end")
        return result

    def start(self, name: str, fn: Callable, *args) -> Future:
        """Run a phase on a daemon thread and expose its outcome as a future."""
        future: Future = Future()

        def target():
            if not future.set_running_or_notify_cancel():
                return
            try:
                result = self.run(name, fn, *args)
            except Exception as exc:
                future.set_exception(exc)
            else:
                future.set_result(result)

        threading.Thread(target=target, name=f"blackcube-{name}", daemon=True).start()
        return future

    def close(self) -> None:
        self.stop.set()


def run_scan(options: ScanOptions | None = None) -> ScanOutput:
    options = options or ScanOptions()
    start = time.monotonic()
    deadline = start + options.timeout if options.timeout else None

    root = Path(options.root).resolve()
    if not root.is_dir():
        raise ScanError(f"Scan root is not an accessible directory: {root}")

    baseline = load_baseline(root, options.baseline_path)
    runner = _PhaseRunner(options.on_phase)
    incomplete: list[str] = []

    def remaining() -> float | None:
        if deadline is None:
            return None
        return max(0.0, deadline - time.monotonic())

    def collect(name: str, future: Future):
        done, _ = wait([future], timeout=remaining())
        if future not in done:
            future.cancel()
            logger.warning("Phase %s did not finish before the deadline", name)
            incomplete.append(name)
            return None
        exc = future.exception()
        if exc is not None:
            raise ScanError(f"{name} phase failed: {exc}") from exc
        return future.result()

    secrets = SecretScanner(options.custom_rules)
    vulnerabilities = VulnerabilityScanner()
    dependencies = DependencyScanner(online=options.online_advisories)
    history = GitHistoryScanner(max_commits=options.commit_depth, stop=runner.stop)

    try:
        pending: dict[str, Future] = {
            dependencies.name: runner.start(dependencies.name, dependencies.scan, str(root)),
        }
        if not options.skip_history:
            pending[history.name] = runner.start(history.name, history.scan, str(root))
        files_future = runner.start(
            "files", gather_text_files, root,
            options.max_bytes, options.include_globs,
            list(options.exclude_globs or []) + baseline_exclusion(root, options.baseline_path),
            runner.stop,
        )

        corpus: Corpus | None = collect("files", files_future)
        if corpus is None:
            corpus = Corpus()
            incomplete.extend([secrets.name, vulnerabilities.name])
        else:
            for scanner in (secrets, vulnerabilities):
                pending[scanner.name] = runner.start(scanner.name, scanner.scan, corpus.files)

        results: dict[str, list[Finding]] = {}
        for name, future in pending.items():
            found = collect(name, future)
            if found is not None:
                results[name] = found
    finally:
        runner.close()

    combined = [
        finding
        for name in (secrets.name, vulnerabilities.name, dependencies.name, history.name)
        for finding in results.get(name, [])
    ]
    own_excluded = [f for f in combined if not is_own_pattern_asset(f.file)]
    filtered = filter_by_severity(own_excluded, options.severity)
    findings = suppress_baselined(deduplicate(filtered), baseline)

    timings = {name: ms for name, ms in runner.timings.items() if name not in incomplete}
    stats = ScanStats(
        scanned_files=len(corpus.files),
        skipped_files=corpus.skipped,
        history_scanned=not options.skip_history and history.name not in incomplete,
        duration_ms=int((time.monotonic() - start) * 1000),
        incomplete_phases=tuple(incomplete),
    )
    logger.info(
        "Scanned %s: %d findings (%d suppressed by baseline)",
        root, len(findings), len(filtered) - len(findings),
    )
    return ScanOutput(findings=tuple(findings), stats=stats, timings=timings)
