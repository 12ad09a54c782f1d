#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""On-disk capability cache (``ai/capabilities.json``)."""

import json
import pathlib
from typing import Iterable, Optional

from foreman import config
from foreman.debug_logger import get_logger
from foreman.errors import CacheError
from foreman.models.capability import CacheRecord, CapabilityProfile
from foreman.tools.file_utils import write_json_atomic


logger = get_logger()


def cache_path(project_root: pathlib.Path) -> pathlib.Path:
    return config.metadata_dir(project_root) / config.CAPABILITIES_FILENAME


def load_cache_record(project_root: pathlib.Path) -> Optional[CacheRecord]:
    """Read the cache record for a project.

    Returns:
        The record, or None when no cache file exists.

    Raises:
        CacheError: If the file is unreadable, malformed, or from another
            schema version.
    """
    path = cache_path(project_root)
    if not path.exists():
        return None

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise CacheError(f"failed to read {path}: {e}") from e

    record = CacheRecord.from_dict(raw)
    if record.version != config.CAPABILITY_CACHE_VERSION:
        raise CacheError(
            f"cache version mismatch ({record.version} vs {config.CAPABILITY_CACHE_VERSION})"
        )
    return record


def save_cache_record(
    project_root: pathlib.Path,
    profile: CapabilityProfile,
    commit_hash: Optional[str],
    tracked_files: Iterable[str] = (),
) -> CacheRecord:
    """Persist a profile with the commit it was resolved at."""
    record = CacheRecord(
        version=config.CAPABILITY_CACHE_VERSION,
        profile=profile,
        commit_hash=commit_hash,
        tracked_files=sorted(set(tracked_files)),
    )
    write_json_atomic(cache_path(project_root), record.to_dict())
    logger.debug(f"[cache] wrote {cache_path(project_root)} ({profile.source.value})")
    return record


def invalidate_cache(project_root: pathlib.Path) -> bool:
    """Delete the cache file; returns True if one was removed."""
    path = cache_path(project_root)
    try:
        path.unlink()
        return True
    except FileNotFoundError:
        return False
