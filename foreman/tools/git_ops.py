#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Read-only git queries used for cache staleness and diff-based verification."""

import pathlib
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from foreman.debug_logger import get_logger
from foreman.tools.command_runner import CommandResult, execute


logger = get_logger()

_GIT_TIMEOUT_MS = 30000
_DIFF_BUFFER_BYTES = 10 * 1024 * 1024


@dataclass(frozen=True)
class GitDiff:
    """Diff context for a verification run."""
    diff: str
    files: List[str] = field(default_factory=list)
    commit_hash: Optional[str] = None


async def _git(root: pathlib.Path, *args: str, max_buffer: int = _DIFF_BUFFER_BYTES) -> CommandResult:
    return await execute(
        root,
        ["git", *args],
        max_buffer_bytes=max_buffer,
        timeout_ms=_GIT_TIMEOUT_MS,
    )


def _split_lines(text: str) -> List[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


async def is_git_repo(root: pathlib.Path) -> bool:
    """Return True when ``root`` is inside a git work tree."""
    result = await _git(root, "rev-parse", "--is-inside-work-tree")
    return result.success and result.stdout.strip() == "true"


async def get_commit_hash(root: pathlib.Path) -> Optional[str]:
    """Return the HEAD commit hash, or None without git or without commits."""
    result = await _git(root, "rev-parse", "HEAD")
    if not result.success:
        return None
    commit = result.stdout.strip()
    return commit or None


async def changed_files_between(
    root: pathlib.Path,
    base: str,
    head: str = "HEAD",
    paths: Optional[Iterable[str]] = None,
) -> Optional[List[str]]:
    """List files that differ between two commits, optionally scoped to ``paths``.

    Returns:
        The changed paths, or None if git could not answer (unknown commit,
        no repository).
    """
    args = ["diff", "--name-only", base, head]
    path_list = list(paths or [])
    if path_list:
        args.append("--")
        args.extend(path_list)
    result = await _git(root, *args)
    if not result.success:
        logger.debug(f"[git] diff {base}..{head} failed: {result.stderr.strip() or result.error}")
        return None
    return _split_lines(result.stdout)


async def get_diff_for_verification(root: pathlib.Path) -> GitDiff:
    """Collect the last commit's diff plus uncommitted changes.

    Untracked files are listed in ``files`` so new modules are visible to the
    analyzer even though ``git diff`` does not show them.
    """
    commit_hash = await get_commit_hash(root)
    if commit_hash is None:
        return GitDiff(diff="Unable to get git diff", files=[], commit_hash=None)

    diffs: List[str] = []
    files: List[str] = []

    has_parent = (await _git(root, "rev-parse", "--verify", "--quiet", "HEAD~1")).success
    if has_parent:
        last_commit = await _git(root, "diff", "HEAD~1", "HEAD")
        if last_commit.success and last_commit.stdout:
            diffs.append(last_commit.stdout)
        names = await changed_files_between(root, "HEAD~1", "HEAD")
        files.extend(names or [])

    working = await _git(root, "diff", "HEAD")
    if working.success and working.stdout:
        diffs.append(working.stdout)
    working_names = await _git(root, "diff", "HEAD", "--name-only")
    if working_names.success:
        files.extend(_split_lines(working_names.stdout))

    untracked = await _git(root, "ls-files", "--others", "--exclude-standard")
    if untracked.success:
        files.extend(_split_lines(untracked.stdout))

    unique_files = list(dict.fromkeys(files))
    return GitDiff(
        diff="\n".join(diffs) if diffs else "No changes detected",
        files=unique_files,
        commit_hash=commit_hash,
    )
