"""Working-tree file discovery: ignore rules, size and binary filtering."""

import logging
import os
import stat
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

import pathspec

from blackcube.models import Corpus, TextFile

logger = logging.getLogger(__name__)

MAX_BYTES = 1_000_000
PROBE_BYTES = 4096
BINARY_RATIO = 0.30
READ_WORKERS = 12

DEFAULT_INCLUDES = [
    "*.js", "*.ts", "*.jsx", "*.tsx", "*.py", "*.rb", "*.go", "*.java", "*.php",
    "*.env", "*.config", "*.json", "*.yaml", "*.yml",
    ".env", ".env.*",
]

DEFAULT_EXCLUDES = [
    ".git/", "node_modules/", "dist/", "build/", "coverage/",
    "__pycache__/", ".venv/", "venv/", ".tox/",
]

IGNORE_FILES = (".gitignore", ".blackcubeignore")


@dataclass(frozen=True)
class IgnoreFile:
    """A newline-delimited glob list with ``#`` comments."""

    path: Path

    def patterns(self) -> list[str]:
        try:
            text = self.path.read_text(encoding="utf-8", errors="ignore")
        except OSError:
            return []
        patterns = []
        for line in text.splitlines():
            line = line.strip()
            if line and not line.startswith("#"):
                patterns.append(line)
        return patterns


def ignore_patterns(root: Path, extra: list[str] | None = None) -> list[str]:
    """Default exclusions merged with every ignore file at *root* and *extra*."""
    patterns = list(DEFAULT_EXCLUDES)
    for name in IGNORE_FILES:
        patterns.extend(IgnoreFile(root / name).patterns())
    patterns.extend(extra or [])
    return patterns


def is_likely_binary(chunk: bytes) -> bool:
    if not chunk:
        return False
    if b"\x00" in chunk:
        return True
    non_text = sum(1 for byte in chunk if byte < 7 or byte > 127)
    return non_text / len(chunk) > BINARY_RATIO


def discover_files(root: Path, include: pathspec.PathSpec, exclude: pathspec.PathSpec):
    """Yield candidate files under *root*, pruning excluded directories."""
    for dirpath, dirnames, filenames in os.walk(root):
        rel_dir = Path(dirpath).relative_to(root).as_posix()
        prefix = "" if rel_dir == "." else rel_dir + "/"
        dirnames[:] = [d for d in dirnames if not exclude.match_file(f"{prefix}{d}/")]
        for fname in filenames:
            rel = prefix + fname
            if exclude.match_file(rel) or not include.match_file(rel):
                continue
            yield Path(dirpath) / fname


def _load(path: Path, max_bytes: int, stop: threading.Event | None = None) -> TextFile | None:
    if stop is not None and stop.is_set():
        return None
    try:
        # follows symlinks; FIFOs and device files never get opened
        st = os.stat(path)
        if not stat.S_ISREG(st.st_mode):
            logger.debug("Skipping %s: not a regular file", path)
            return None
        if st.st_size > max_bytes:
            logger.debug("Skipping %s: larger than %d bytes", path, max_bytes)
            return None
        with path.open("rb") as fh:
            data = fh.read(max_bytes + 1)
    except OSError as exc:
        logger.debug("Skipping %s: %s", path, exc)
        return None
    if len(data) > max_bytes:
        logger.debug("Skipping %s: grew past %d bytes while reading", path, max_bytes)
        return None
    if is_likely_binary(data[:PROBE_BYTES]):
        logger.debug("Skipping %s: binary content", path)
        return None
    return TextFile(path=str(path), content=data.decode("utf-8", errors="replace"))


def gather_text_files(
    root: str | Path,
    max_bytes: int | None = None,
    include_globs: list[str] | None = None,
    exclude_globs: list[str] | None = None,
    stop: threading.Event | None = None,
) -> Corpus:
    """Collect readable, non-binary, size-bounded text files under *root*.

    Reads run on a fixed-width thread pool; the returned order is arbitrary.
    Once *stop* is set, remaining reads are abandoned and counted as skipped.
    """
    root = Path(root).resolve()
    limit = MAX_BYTES if max_bytes is None else max_bytes
    include = pathspec.PathSpec.from_lines("gitwildmatch", include_globs or DEFAULT_INCLUDES)
    exclude = pathspec.PathSpec.from_lines("gitwildmatch", ignore_patterns(root, exclude_globs))

    candidates = list(discover_files(root, include, exclude))
    with ThreadPoolExecutor(max_workers=READ_WORKERS, thread_name_prefix="blackcube-read") as pool:
        loaded = list(pool.map(lambda p: _load(p, limit, stop), candidates))

    files = [f for f in loaded if f is not None]
    skipped = len(loaded) - len(files)
    logger.debug("Corpus: %d files loaded, %d skipped", len(files), skipped)
    return Corpus(files=files, skipped=skipped)
