#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""File helpers for the metadata directory."""

import json
import os
import pathlib
import uuid
from typing import Any


def write_text_atomic(path: pathlib.Path, content: str) -> None:
    """Replace ``path`` in one step so readers never see a partial file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.{os.getpid()}.{uuid.uuid4().hex[:8]}.tmp")

    # Atomic write: tmp -> fsync -> replace
    try:
        tmp_path.write_text(content, encoding="utf-8")
        try:
            with open(tmp_path, "rb") as f:
                os.fsync(f.fileno())
        except OSError:
            pass
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


def write_json_atomic(path: pathlib.Path, data: Any) -> None:
    write_text_atomic(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")


def write_text_exclusive(path: pathlib.Path, content: str) -> None:
    """Create ``path`` with ``content``; raises FileExistsError if it exists."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "x", encoding="utf-8") as f:
        f.write(content)
