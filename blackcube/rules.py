"""Loading and compiling detection rules.

Built-in rules live as YAML assets under ``blackcube/patterns``. They are
compiled once per process and shared read-only by every scanner thread.
"""

import re
from functools import lru_cache
from importlib import resources

import yaml

from blackcube.models import DetectionRule, Severity

PATTERNS_DIR = "patterns"


def _read_asset(name: str) -> list[dict]:
    text = (resources.files("blackcube") / PATTERNS_DIR / f"{name}.yml").read_text(encoding="utf-8")
    raw = yaml.safe_load(text) or []
    if not isinstance(raw, list):
        raise ValueError(f"Pattern asset {name}.yml must be a YAML list")
    return raw


def _parse_severity(value, rule_id: str) -> Severity:
    try:
        return Severity(str(value).lower())
    except ValueError:
        valid = [s.value for s in Severity]
        raise ValueError(f"Rule '{rule_id}' has severity '{value}', expected one of {valid}") from None


def compile_rules(raw_rules: list[dict]) -> tuple[DetectionRule, ...]:
    """Compile rule mappings (``id``, ``pattern``, ``severity``, ``description``, ``fix``)."""
    rules = []
    for raw in raw_rules:
        if not isinstance(raw, dict):
            raise ValueError("Each rule must be a mapping")
        rule_id = raw.get("id") or raw.get("name")
        if not rule_id:
            raise ValueError("Rule is missing an 'id'")
        if not raw.get("pattern"):
            raise ValueError(f"Rule '{rule_id}' is missing a 'pattern'")
        try:
            regex = re.compile(str(raw["pattern"]), re.IGNORECASE)
        except re.error as exc:
            raise ValueError(f"Rule '{rule_id}' has an invalid pattern: {exc}") from exc
        rules.append(
            DetectionRule(
                id=str(rule_id),
                severity=_parse_severity(raw.get("severity", "high"), rule_id),
                regex=regex,
                description=str(raw.get("description", rule_id)),
                fix=str(raw.get("fix", "Review and remove the flagged content.")),
            )
        )
    return tuple(rules)


@lru_cache(maxsize=None)
def load_rule_set(name: str) -> tuple[DetectionRule, ...]:
    return compile_rules(_read_asset(name))


def secret_rules() -> tuple[DetectionRule, ...]:
    return load_rule_set("secrets")


def vulnerability_rules() -> tuple[DetectionRule, ...]:
    return load_rule_set("vulnerabilities")


@lru_cache(maxsize=None)
def dependency_rules() -> tuple[dict, ...]:
    rules = []
    for raw in _read_asset("dependencies"):
        rules.append({
            "pkg": str(raw["pkg"]),
            "threshold": str(raw["threshold"]) if raw.get("threshold") else None,
            "severity": _parse_severity(raw["severity"], raw["pkg"]),
            "message": str(raw["message"]),
            "fix": str(raw["fix"]),
        })
    return tuple(rules)
