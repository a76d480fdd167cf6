"""Secret and credential detection scanner."""

from typing import Iterable

from blackcube.models import DetectionRule, Finding, TextFile
from blackcube.rules import secret_rules
from blackcube.scanners.base import BaseScanner
from blackcube.scanners.matcher import scan_text_files

# Structural keys of Lottie animation JSON; large generated blobs full of
# base64 that otherwise trip most secret rules.
LOTTIE_MARKERS = ('"assets"', '"layers"', '"ip"', '"op"', '"fr"', '"v"', '"ddd"')
LOTTIE_MIN_MARKERS = 4


def is_likely_lottie(text_file: TextFile) -> bool:
    lower_path = text_file.path.lower()
    if (
        lower_path.endswith(".lottie.json")
        or "/lottie/" in lower_path
        or "\\lottie\\" in lower_path
    ):
        return True
    if not lower_path.endswith(".json"):
        return False
    hits = sum(1 for marker in LOTTIE_MARKERS if marker in text_file.content)
    return hits >= LOTTIE_MIN_MARKERS


class SecretScanner(BaseScanner):
    name = "secrets"

    def __init__(self, extra_rules: Iterable[DetectionRule] = ()):
        self.rules = secret_rules() + tuple(extra_rules)

    def scan(self, target: Iterable[TextFile]) -> list[Finding]:
        return scan_text_files(self.rules, target, skip=is_likely_lottie)
