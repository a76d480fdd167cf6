"""Line-pattern scanner for risky code constructs."""

from typing import Iterable

from blackcube.models import Finding, TextFile
from blackcube.rules import vulnerability_rules
from blackcube.scanners.base import BaseScanner
from blackcube.scanners.matcher import scan_text_files


class VulnerabilityScanner(BaseScanner):
    name = "vulnerabilities"

    def __init__(self):
        self.rules = vulnerability_rules()

    def scan(self, target: Iterable[TextFile]) -> list[Finding]:
        return scan_text_files(self.rules, target)
