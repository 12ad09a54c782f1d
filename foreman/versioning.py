#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Version helpers for foreman."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Optional

from foreman._version import FOREMAN_VERSION, FOREMAN_GIT_COMMIT


def get_version() -> str:
    """Return the package version using the single source of truth."""

    if FOREMAN_VERSION:
        return FOREMAN_VERSION

    try:
        from importlib.metadata import version  # type: ignore

        return version("foreman-verify")
    except Exception:
        return "unknown"


def get_git_commit(short: bool = True) -> Optional[str]:
    """Return the git commit hash, preferring the build-time value if present."""
    if FOREMAN_GIT_COMMIT and FOREMAN_GIT_COMMIT != "unknown":
        return FOREMAN_GIT_COMMIT[:7] if short else FOREMAN_GIT_COMMIT

    try:
        repo_root = Path(__file__).resolve().parent.parent
        if short:
            cmd = ["git", "rev-parse", "--short", "HEAD"]
        else:
            cmd = ["git", "rev-parse", "HEAD"]
        commit = subprocess.check_output(cmd, cwd=repo_root, stderr=subprocess.DEVNULL)
        return commit.decode().strip()
    except Exception:
        return None


def build_version_output() -> str:
    """Format version information for display."""

    version = get_version()
    commit = get_git_commit(short=True)

    output = ["\nforeman - Feature Verification Engine"]
    output.append("=" * 60)
    if commit:
        output.append(f"  Version:          {version} (commit {commit})")
    else:
        output.append(f"  Version:          {version}")
    return "\n".join(output)
