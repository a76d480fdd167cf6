"""Dependency manifest scanner: risky npm packages, unpinned versions, OSV advisories."""

import json
import logging
import re
from pathlib import Path

import requests

from blackcube.models import Finding, Severity
from blackcube.rules import dependency_rules
from blackcube.scanners.base import BaseScanner

logger = logging.getLogger(__name__)

MANIFEST_NAME = "package.json"
DEPENDENCY_GROUPS = ("dependencies", "devDependencies")
UNPINNED_VERSIONS = {"*", "latest"}

OSV_API_URL = "https://api.osv.dev/v1/query"

SEVERITY_MAP = {
    "CRITICAL": Severity.CRITICAL,
    "HIGH": Severity.HIGH,
    "MODERATE": Severity.MEDIUM,
    "MEDIUM": Severity.MEDIUM,
    "LOW": Severity.LOW,
}

_VERSION_TRIPLE = re.compile(r"(\d+)\.(\d+)\.(\d+)")


def normalize_version(version: str) -> tuple[int, int, int] | None:
    """First ``major.minor.patch`` triple in *version*, ignoring range operators."""
    cleaned = re.sub(r"^[^0-9]*", "", version).strip()
    match = _VERSION_TRIPLE.search(cleaned)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2)), int(match.group(3))


def is_less_than(version: str, threshold: str) -> bool:
    declared = normalize_version(version)
    minimum = normalize_version(threshold)
    if declared is None or minimum is None:
        return False
    return declared < minimum


def read_manifest(path: Path) -> dict[str, str]:
    """Merge production and development dependencies into name -> version."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("Could not read %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        return {}

    merged: dict[str, str] = {}
    for group in DEPENDENCY_GROUPS:
        deps = data.get(group)
        if not isinstance(deps, dict):
            continue
        for name, version in deps.items():
            if isinstance(version, str):
                merged[name] = version
    return merged


class DependencyScanner(BaseScanner):
    name = "dependencies"

    def __init__(self, online: bool = False, session: requests.Session | None = None):
        self.online = online
        self.session = session or requests.Session()

    def scan(self, target: str) -> list[Finding]:
        manifest = Path(target) / MANIFEST_NAME
        if not manifest.is_file():
            return []

        findings: list[Finding] = []
        for name, version in read_manifest(manifest).items():
            findings.extend(self._check_rules(name, version, manifest))
            if self.online and version.strip() not in UNPINNED_VERSIONS:
                findings.extend(self._query_osv(name, version, manifest))
        return findings

    def _check_rules(self, name: str, version: str, manifest: Path) -> list[Finding]:
        snippet = f"{name}: {version}"
        if version.strip() in UNPINNED_VERSIONS:
            return [
                Finding(
                    severity=Severity.LOW,
                    type="unpinned-dependency",
                    message=f"Dependency {name} is unpinned ({version})",
                    fix="Pin dependency to a specific secure version",
                    file=str(manifest),
                    snippet=snippet,
                )
            ]

        findings = []
        for rule in dependency_rules():
            if rule["pkg"] != name:
                continue
            if rule["threshold"] is None or is_less_than(version, rule["threshold"]):
                findings.append(
                    Finding(
                        severity=rule["severity"],
                        type=f"{rule['pkg']}-dependency",
                        message=rule["message"],
                        fix=rule["fix"],
                        file=str(manifest),
                        snippet=snippet,
                    )
                )
        return findings

    def _query_osv(self, name: str, version: str, manifest: Path) -> list[Finding]:
        parsed = normalize_version(version)
        if parsed is None:
            return []
        exact = ".".join(str(part) for part in parsed)
        payload = {
            "version": exact,
            "package": {"name": name, "ecosystem": "npm"},
        }
        try:
            resp = self.session.post(OSV_API_URL, json=payload, timeout=15)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            logger.debug("OSV lookup failed for %s@%s: %s", name, exact, exc)
            return []

        findings = []
        for vuln in data.get("vulns", []):
            vuln_id = vuln.get("id", "unknown")
            summary = vuln.get("summary", "No description available.")

            severity = Severity.MEDIUM
            db_severity = vuln.get("database_specific", {}).get("severity")
            if isinstance(db_severity, str) and db_severity.upper() in SEVERITY_MAP:
                severity = SEVERITY_MAP[db_severity.upper()]

            fix_versions = []
            for affected in vuln.get("affected", []):
                for r in affected.get("ranges", []):
                    for event in r.get("events", []):
                        if "fixed" in event:
                            fix_versions.append(event["fixed"])

            fix_text = f" Fix available in: {', '.join(fix_versions)}" if fix_versions else ""
            findings.append(
                Finding(
                    severity=severity,
                    type=f"{name}-advisory",
                    message=f"{vuln_id}: {summary}",
                    fix=f"Upgrade {name} to a patched version.{fix_text}",
                    file=str(manifest),
                    snippet=f"{name}: {version}",
                    pattern=vuln_id,
                )
            )
        return findings
