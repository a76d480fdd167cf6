"""Git history secret scanning: replays the lines each past commit added."""

import logging
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from blackcube.models import DetectionRule, Finding
from blackcube.rules import secret_rules
from blackcube.scanners.base import BaseScanner
from blackcube.scanners.matcher import match_line, should_skip_line, split_lines

logger = logging.getLogger(__name__)

SNIPPET_LIMIT = 200
GIT_TIMEOUT = 60
HISTORY_FIX = "Remove from history using git-filter-repo and rotate credentials."

_FIELD_SEP = "\x1f"

# C-style escapes git uses in quoted paths, besides three-digit octal bytes
_PATH_ESCAPES = {
    "a": 0x07, "b": 0x08, "t": 0x09, "n": 0x0A, "v": 0x0B, "f": 0x0C, "r": 0x0D,
    '"': 0x22, "\\": 0x5C,
}


class GitCommandError(Exception):
    """Raised when a git invocation fails or cannot be started."""


@dataclass(frozen=True)
class CommitEntry:
    hash: str
    date: str
    parent: str | None


def _git(repo: Path, *args: str) -> str:
    try:
        proc = subprocess.run(
            ["git", "-c", "core.quotePath=false", *args],
            cwd=str(repo),
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=GIT_TIMEOUT,
        )
    except (subprocess.SubprocessError, OSError) as exc:
        raise GitCommandError(f"git {args[0]} failed: {exc}") from exc
    if proc.returncode != 0:
        raise GitCommandError(f"git {args[0]} exited {proc.returncode}: {proc.stderr.strip()}")
    return proc.stdout


def parse_log(output: str) -> list[CommitEntry]:
    entries = []
    for line in output.splitlines():
        parts = line.split(_FIELD_SEP)
        if len(parts) != 3 or not parts[0]:
            continue
        parents = parts[2].split()
        entries.append(CommitEntry(hash=parts[0], date=parts[1], parent=parents[0] if parents else None))
    return entries


def unquote_path(raw: str) -> str:
    """Decode a path git printed in double quotes; unquoted paths pass through."""
    if len(raw) < 2 or not (raw.startswith('"') and raw.endswith('"')):
        return raw
    body = raw[1:-1]
    out = bytearray()
    i = 0
    while i < len(body):
        ch = body[i]
        if ch != "\\":
            out.extend(ch.encode("utf-8"))
            i += 1
            continue
        octal = body[i + 1:i + 4]
        if len(octal) == 3 and all(c in "01234567" for c in octal):
            out.append(int(octal, 8))
            i += 4
        elif body[i + 1:i + 2] in _PATH_ESCAPES:
            out.append(_PATH_ESCAPES[body[i + 1]])
            i += 2
        else:
            out.extend(b"\\")
            i += 1
    return out.decode("utf-8", errors="replace")


def _new_file_path(header: str, root: Path) -> str:
    """Absolute path named by a ``+++`` header, or ``""`` for a deletion."""
    target = header[4:].rstrip("\t")
    if target == "/dev/null":
        return ""
    target = unquote_path(target)
    if not target.startswith("b/"):
        return ""
    return str(root / target[2:])


def added_lines(diff: str, root: Path) -> Iterable[tuple[str, str]]:
    """Yield ``(absolute file path, added line)`` pairs from a zero-context diff."""
    current_file = ""
    in_header = False
    for raw_line in split_lines(diff):
        if raw_line.startswith("diff --git "):
            current_file = ""
            in_header = True
            continue
        if in_header:
            if raw_line.startswith("+++ "):
                current_file = _new_file_path(raw_line, root)
                in_header = False
            continue
        if not raw_line.startswith("+") or not current_file:
            continue
        yield current_file, raw_line[1:]


class GitHistoryScanner(BaseScanner):
    name = "history"

    def __init__(
        self,
        max_commits: int = 100,
        rules: Iterable[DetectionRule] | None = None,
        stop: threading.Event | None = None,
    ):
        self.max_commits = max_commits
        self.rules = tuple(rules) if rules is not None else secret_rules()
        self.stop = stop

    def scan(self, target: str) -> list[Finding]:
        repo_path = Path(target).resolve()
        if not (repo_path / ".git").exists():
            return []

        try:
            log_output = _git(
                repo_path, "log", f"--max-count={self.max_commits}",
                f"--format=%H{_FIELD_SEP}%aI{_FIELD_SEP}%P", "--no-color",
            )
        except GitCommandError as exc:
            logger.warning("Skipping git history for %s: %s", repo_path, exc)
            return []

        findings: list[Finding] = []
        for entry in parse_log(log_output):
            if self.stop is not None and self.stop.is_set():
                logger.debug("History mining stopped before commit %s", entry.hash)
                break
            try:
                diff = self._commit_diff(repo_path, entry)
            except GitCommandError as exc:
                logger.debug("Skipping commit %s: %s", entry.hash, exc)
                continue
            findings.extend(self._scan_diff(diff, entry, repo_path))
        return findings

    def _commit_diff(self, repo: Path, entry: CommitEntry) -> str:
        base = ["diff-tree", "-p", "-r", "--unified=0", "--no-color", "--no-ext-diff", "--no-commit-id"]
        if entry.parent:
            return _git(repo, *base, entry.parent, entry.hash)
        return _git(repo, *base, "--root", entry.hash)

    def _scan_diff(self, diff: str, entry: CommitEntry, root: Path) -> list[Finding]:
        findings = []
        for file_path, line in added_lines(diff, root):
            if should_skip_line(line):
                continue
            for rule in match_line(self.rules, line):
                findings.append(
                    Finding(
                        severity=rule.severity,
                        type=f"{rule.id}-history",
                        message=f"{rule.description} (git history)",
                        fix=f"{rule.fix.rstrip('.')}. {HISTORY_FIX}",
                        file=file_path,
                        snippet=line.strip()[:SNIPPET_LIMIT],
                        pattern=rule.pattern,
                        commit=entry.hash,
                        commit_date=entry.date,
                    )
                )
        return findings
