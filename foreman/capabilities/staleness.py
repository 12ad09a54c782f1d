#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Decide whether a cached capability record still matches the repository."""

import pathlib

from foreman.debug_logger import get_logger
from foreman.models.capability import CacheRecord
from foreman.tools import git_ops


logger = get_logger()


async def is_record_stale(project_root: pathlib.Path, record: CacheRecord) -> bool:
    """Return True when ``record`` must not be reused.

    A record is fresh only when git can prove nothing relevant changed:
    either HEAD is still the cached commit, or none of the tracked config
    files differ between the cached commit and HEAD. Without git (or without
    a recorded commit) staleness cannot be decided and the record is stale.
    """
    if not record.commit_hash:
        logger.debug("[staleness] no commit hash in cache record")
        return True

    current = await git_ops.get_commit_hash(project_root)
    if current is None:
        logger.debug("[staleness] no git commit available")
        return True

    if current == record.commit_hash:
        return False

    if not record.tracked_files:
        logger.debug("[staleness] commit changed and no tracked files")
        return True

    changed = await git_ops.changed_files_between(
        project_root, record.commit_hash, "HEAD", record.tracked_files
    )
    if changed is None:
        return True
    if changed:
        logger.debug(f"[staleness] tracked files changed: {changed}")
    return bool(changed)
