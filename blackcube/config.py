"""Configuration file support for blackcube (.blackcube.yml)."""

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from blackcube.corpus import MAX_BYTES
from blackcube.models import ScanOptions, Severity
from blackcube.rules import compile_rules

DEFAULT_CONFIG_NAME = ".blackcube.yml"


@dataclass
class Config:
    """blackcube configuration loaded from .blackcube.yml."""

    severity_threshold: str | None = None
    include_patterns: list[str] = field(default_factory=list)
    exclude_patterns: list[str] = field(default_factory=list)
    custom_secret_patterns: list[dict] = field(default_factory=list)
    max_bytes: int = MAX_BYTES
    commit_depth: int = 100
    skip_history: bool = False
    baseline: str | None = None
    online_advisories: bool = False
    timeout: float | None = None

    @property
    def min_severity(self) -> Severity | None:
        if self.severity_threshold is None:
            return None
        return Severity(self.severity_threshold)

    def to_scan_options(self, root: str, **overrides) -> ScanOptions:
        """Build scan options; keyword overrides set to None fall back to the file."""
        options = ScanOptions(
            root=root,
            skip_history=self.skip_history,
            severity=self.min_severity,
            commit_depth=self.commit_depth,
            max_bytes=self.max_bytes,
            include_globs=self.include_patterns or None,
            exclude_globs=self.exclude_patterns or None,
            baseline_path=self.baseline,
            timeout=self.timeout,
            custom_rules=compile_rules(self.custom_secret_patterns),
            online_advisories=self.online_advisories,
        )
        for name, value in overrides.items():
            if not hasattr(options, name):
                raise TypeError(f"Unknown scan option: {name}")
            if value is not None:
                setattr(options, name, value)
        return options


def load_config(config_path: str | None = None, project_root: str | None = None) -> Config:
    """Load configuration from a YAML file.

    Priority: explicit --config path > .blackcube.yml in project root > defaults.
    """
    path = None

    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    elif project_root:
        candidate = Path(project_root) / DEFAULT_CONFIG_NAME
        if candidate.exists():
            path = candidate

    if path is None:
        return Config()

    try:
        raw = yaml.safe_load(path.read_text())
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

    if raw is None:
        return Config()
    if not isinstance(raw, dict):
        raise ValueError(f"Config file {path} must be a YAML mapping, got {type(raw).__name__}")

    return _parse_config(raw)


def _require_list(raw: dict, key: str) -> list:
    value = raw[key]
    if not isinstance(value, list):
        raise ValueError(f"{key} must be a list")
    return value


def _require_int(raw: dict, key: str) -> int:
    value = raw[key]
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"{key} must be a positive integer")
    return value


def _require_bool(raw: dict, key: str) -> bool:
    value = raw[key]
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be true or false")
    return value


def _parse_config(raw: dict) -> Config:
    """Parse and validate raw YAML dict into a Config object."""
    config = Config()

    if "severity_threshold" in raw:
        sev = raw["severity_threshold"]
        valid = {s.value for s in Severity}
        if sev is not None and str(sev).lower() not in valid:
            raise ValueError(f"severity_threshold must be one of {sorted(valid)}, got '{sev}'")
        config.severity_threshold = str(sev).lower() if sev is not None else None

    if "include_patterns" in raw:
        config.include_patterns = [str(p) for p in _require_list(raw, "include_patterns")]

    if "exclude_patterns" in raw:
        config.exclude_patterns = [str(p) for p in _require_list(raw, "exclude_patterns")]

    if "custom_secret_patterns" in raw:
        patterns = _require_list(raw, "custom_secret_patterns")
        compile_rules(patterns)
        config.custom_secret_patterns = patterns

    if "max_bytes" in raw:
        config.max_bytes = _require_int(raw, "max_bytes")

    if "commit_depth" in raw:
        config.commit_depth = _require_int(raw, "commit_depth")

    if "skip_history" in raw:
        config.skip_history = _require_bool(raw, "skip_history")

    if "online_advisories" in raw:
        config.online_advisories = _require_bool(raw, "online_advisories")

    if "baseline" in raw:
        val = raw["baseline"]
        if val is not None and not isinstance(val, str):
            raise ValueError("baseline must be a path string")
        config.baseline = val

    if "timeout" in raw:
        val = raw["timeout"]
        if val is not None and (isinstance(val, bool) or not isinstance(val, (int, float)) or val <= 0):
            raise ValueError("timeout must be a positive number of seconds")
        config.timeout = float(val) if val is not None else None

    return config
