"""blackcube - local secret, vulnerability and dependency scanner."""

from blackcube.models import Finding, ScanOptions, ScanOutput, Severity
from blackcube.pipeline import ScanError, run_scan

__version__ = "0.1.0"

__all__ = ["Finding", "ScanError", "ScanOptions", "ScanOutput", "Severity", "run_scan", "__version__"]
