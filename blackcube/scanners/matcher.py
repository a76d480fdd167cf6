"""Line-oriented rule matching shared by the content scanners."""

import re
from typing import Callable, Iterable, Iterator

from blackcube.models import DetectionRule, Finding, TextFile

IGNORE_MARKER = "blackcube-ignore"
SNIPPET_LIMIT = 240

_LINE_BREAK = re.compile(r"\r?\n")


def should_skip_line(line: str) -> bool:
    return IGNORE_MARKER in line


def split_lines(content: str) -> list[str]:
    return _LINE_BREAK.split(content)


def match_line(rules: Iterable[DetectionRule], line: str) -> Iterator[DetectionRule]:
    """Yield every rule whose pattern occurs in *line*."""
    for rule in rules:
        # compiled patterns carry no cursor, each search starts fresh
        if rule.regex.search(line):
            yield rule


def scan_text_files(
    rules: Iterable[DetectionRule],
    files: Iterable[TextFile],
    skip: Callable[[TextFile], bool] | None = None,
) -> list[Finding]:
    rules = tuple(rules)
    findings: list[Finding] = []
    for text_file in files:
        if skip is not None and skip(text_file):
            continue
        for line_num, line in enumerate(split_lines(text_file.content), start=1):
            if should_skip_line(line):
                continue
            for rule in match_line(rules, line):
                findings.append(
                    Finding(
                        severity=rule.severity,
                        type=rule.id,
                        message=rule.description,
                        fix=rule.fix,
                        file=text_file.path,
                        line=line_num,
                        snippet=line.strip()[:SNIPPET_LIMIT],
                        pattern=rule.pattern,
                    )
                )
    return findings
