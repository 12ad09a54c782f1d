"""Shared fixtures for the foreman test suite."""

import shutil
import subprocess
import sys
from pathlib import Path

import pytest

# Make the package importable without installation
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from foreman.debug_logger import DebugLogger


def run_git(root: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=root,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


def commit_all(root: Path, message: str) -> str:
    run_git(root, "add", "-A")
    run_git(root, "commit", "-q", "-m", message)
    return run_git(root, "rev-parse", "HEAD")


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """Empty git repository with a committer identity configured."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    root = tmp_path / "repo"
    root.mkdir()
    run_git(root, "init", "-q")
    run_git(root, "config", "user.email", "tests@example.com")
    run_git(root, "config", "user.name", "Foreman Tests")
    run_git(root, "config", "commit.gpgsign", "false")
    return root


@pytest.fixture(autouse=True)
def reset_debug_logger():
    """Drop the global debug logger so tests never share log state."""
    DebugLogger.reset()
    yield
    DebugLogger.reset()


@pytest.fixture
def git():
    """Run a git command in a repository and return its stdout."""
    return run_git


@pytest.fixture
def commit():
    """Stage everything and commit; returns the new HEAD hash."""
    return commit_all
