"""Shared fixtures for blackcube tests."""

import subprocess
import textwrap
from pathlib import Path

import pytest


@pytest.fixture
def tmp_dir_with_files(tmp_path: Path):
    """Create a temp directory with multiple files."""

    def _create(files: dict[str, str | bytes]) -> Path:
        for name, content in files.items():
            p = tmp_path / name
            p.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                p.write_bytes(content)
            else:
                p.write_text(textwrap.dedent(content))
        return tmp_path

    return _create


def _git(repo: Path, *args: str) -> None:
    subprocess.run(["git", *args], cwd=str(repo), capture_output=True, check=True)


@pytest.fixture
def git_repo(tmp_path: Path):
    """Create an empty git repo and return a helper that commits file contents."""
    repo = tmp_path / "repo"
    repo.mkdir()
    _git(repo, "init")
    _git(repo, "config", "user.email", "test@test.com")
    _git(repo, "config", "user.name", "Test")
    _git(repo, "config", "commit.gpgsign", "false")

    def _commit(files: dict[str, str | None], message: str = "change") -> Path:
        for name, content in files.items():
            p = repo / name
            if content is None:
                p.unlink()
                continue
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_text(content)
        _git(repo, "add", "-A")
        _git(repo, "commit", "-m", message)
        return repo

    _commit.path = repo
    return _commit
