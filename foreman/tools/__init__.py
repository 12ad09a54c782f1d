#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Subprocess and VCS helpers for foreman."""

from foreman.tools.command_runner import CommandResult, execute
from foreman.tools.git_ops import (
    GitDiff,
    changed_files_between,
    get_commit_hash,
    get_diff_for_verification,
    is_git_repo,
)

__all__ = [
    "CommandResult",
    "execute",
    "GitDiff",
    "changed_files_between",
    "get_commit_hash",
    "get_diff_for_verification",
    "is_git_repo",
]
