"""Data models for scan findings, detection rules and results."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Callable, Literal

PhaseStage = Literal["start", "end"]
PhaseCallback = Callable[[str, PhaseStage], None]


class Severity(Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return {
            Severity.CRITICAL: 4,
            Severity.HIGH: 3,
            Severity.MEDIUM: 2,
            Severity.LOW: 1,
        }[self]

    def __ge__(self, other: "Severity") -> bool:
        return self.rank >= other.rank

    def __gt__(self, other: "Severity") -> bool:
        return self.rank > other.rank

    def __le__(self, other: "Severity") -> bool:
        return self.rank <= other.rank

    def __lt__(self, other: "Severity") -> bool:
        return self.rank < other.rank


FindingKey = tuple[str, str, int, str]


@dataclass(frozen=True)
class Finding:
    severity: Severity
    type: str
    message: str
    fix: str | None = None
    file: str | None = None
    line: int | None = None
    snippet: str | None = None
    pattern: str | None = None
    commit: str | None = None
    commit_date: str | None = None

    @property
    def location(self) -> str:
        return self.file or self.commit or "unknown"

    @property
    def key(self) -> FindingKey:
        """Identity used to recognise the same issue across runs."""
        line = self.line if self.line is not None else 0
        pattern = self.pattern if self.pattern is not None else self.message
        return (self.type, self.location, line, pattern)

    def to_dict(self) -> dict:
        data = {"severity": self.severity.value}
        for name, value in asdict(self).items():
            if name != "severity" and value is not None:
                data[name] = value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Finding":
        """Rebuild a finding from a persisted mapping, tolerating gaps."""
        try:
            severity = Severity(str(data.get("severity", "low")).lower())
        except ValueError:
            severity = Severity.LOW
        line = data.get("line")
        return cls(
            severity=severity,
            type=str(data.get("type", "")),
            message=str(data.get("message", "")),
            fix=data.get("fix"),
            file=data.get("file"),
            line=line if isinstance(line, int) else None,
            snippet=data.get("snippet"),
            pattern=data.get("pattern"),
            commit=data.get("commit"),
            commit_date=data.get("commit_date", data.get("commitDate")),
        )


@dataclass(frozen=True)
class DetectionRule:
    id: str
    severity: Severity
    regex: re.Pattern
    description: str
    fix: str

    @property
    def pattern(self) -> str:
        return self.regex.pattern


@dataclass(frozen=True)
class TextFile:
    path: str
    content: str


@dataclass
class Corpus:
    files: list[TextFile] = field(default_factory=list)
    skipped: int = 0


@dataclass
class ScanOptions:
    root: str = "."
    skip_history: bool = False
    severity: Severity | None = None
    commit_depth: int = 100
    max_bytes: int = 1_000_000
    include_globs: list[str] | None = None
    exclude_globs: list[str] | None = None
    baseline_path: str | None = None
    on_phase: PhaseCallback | None = None
    timeout: float | None = None
    custom_rules: tuple[DetectionRule, ...] = ()
    online_advisories: bool = False


@dataclass(frozen=True)
class ScanStats:
    scanned_files: int
    skipped_files: int
    history_scanned: bool
    duration_ms: int
    incomplete_phases: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "scanned_files": self.scanned_files,
            "skipped_files": self.skipped_files,
            "history_scanned": self.history_scanned,
            "duration_ms": self.duration_ms,
            "incomplete_phases": list(self.incomplete_phases),
        }


@dataclass(frozen=True)
class ScanOutput:
    findings: tuple[Finding, ...]
    stats: ScanStats
    timings: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "findings": [f.to_dict() for f in self.findings],
            "stats": self.stats.to_dict(),
            "timings": dict(self.timings),
        }
