"""Baseline mode: suppress findings already accepted in a previous run."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from blackcube.models import Finding, FindingKey

logger = logging.getLogger(__name__)

DEFAULT_BASELINE = ".blackcube-baseline.json"


def finding_key(finding: Finding) -> FindingKey:
    return finding.key


def resolve_baseline_path(root: str | Path, path: str | Path) -> Path:
    path = Path(path)
    return path if path.is_absolute() else Path(root) / path


def load_baseline(root: str | Path, path: str | Path | None) -> frozenset[FindingKey]:
    """Load identity keys from a persisted baseline.

    A missing, unreadable or malformed file yields an empty baseline.
    """
    if not path:
        return frozenset()
    full_path = resolve_baseline_path(root, path)
    if not full_path.is_file():
        return frozenset()
    try:
        data = json.loads(full_path.read_text(encoding="utf-8"))
        entries = data.get("findings", []) if isinstance(data, dict) else []
        keys = frozenset(
            finding_key(Finding.from_dict(entry)) for entry in entries if isinstance(entry, dict)
        )
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring baseline %s: %s", full_path, exc)
        return frozenset()
    logger.debug("Loaded %d baseline findings from %s", len(keys), full_path)
    return keys


def suppress_baselined(findings: Iterable[Finding], baseline: frozenset[FindingKey]) -> list[Finding]:
    if not baseline:
        return list(findings)
    return [f for f in findings if finding_key(f) not in baseline]


def baseline_payload(findings: Iterable[Finding]) -> dict:
    return {
        "updated_at": datetime.now(timezone.utc).isoformat(),
        "findings": [f.to_dict() for f in findings],
    }


def write_baseline(root: str | Path, path: str | Path, findings: Iterable[Finding]) -> Path:
    full_path = resolve_baseline_path(root, path)
    full_path.write_text(json.dumps(baseline_payload(findings), indent=2), encoding="utf-8")
    return full_path


def deduplicate(findings: Iterable[Finding]) -> list[Finding]:
    """Drop repeats of an identity key, keeping the first occurrence."""
    seen: set[FindingKey] = set()
    unique = []
    for f in findings:
        key = finding_key(f)
        if key in seen:
            continue
        seen.add(key)
        unique.append(f)
    return unique
