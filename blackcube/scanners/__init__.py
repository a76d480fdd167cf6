"""Finding producers run by the scan pipeline."""

from blackcube.scanners.base import BaseScanner
from blackcube.scanners.dependencies import DependencyScanner
from blackcube.scanners.git_history import GitHistoryScanner
from blackcube.scanners.secrets import SecretScanner
from blackcube.scanners.vulnerabilities import VulnerabilityScanner

__all__ = [
    "BaseScanner",
    "SecretScanner",
    "VulnerabilityScanner",
    "DependencyScanner",
    "GitHistoryScanner",
]
