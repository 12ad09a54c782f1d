#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Extraction of JSON objects from free-text agent output.

Agent output is untrusted text. A JSON object is looked for first inside a
fenced code block, then as the first brace-balanced ``{...}`` span.
"""

import json
import re
from typing import Any, Dict, Iterator, Optional

from foreman.errors import ResponseParseError


_FENCE_RE = re.compile(r"```(?:json|JSON)?[ \t]*\r?\n?(.*?)```", re.S)


def _balanced_spans(text: str) -> Iterator[str]:
    """Yield brace-balanced ``{...}`` spans, ignoring braces inside strings."""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        end: Optional[int] = None
        for pos in range(start, len(text)):
            char = text[pos]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    end = pos
                    break
        if end is None:
            return
        yield text[start:end + 1]
        start = text.find("{", end + 1)


def _load_object(candidate: str) -> Optional[Dict[str, Any]]:
    try:
        value = json.loads(candidate)
    except (json.JSONDecodeError, ValueError):
        return None
    return value if isinstance(value, dict) else None


def extract_json_object(text: Optional[str]) -> Dict[str, Any]:
    """Return the first JSON object found in ``text``.

    Raises:
        ResponseParseError: If no parseable object is present.
    """
    if not text or not text.strip():
        raise ResponseParseError("empty response")

    for match in _FENCE_RE.finditer(text):
        block = match.group(1).strip()
        parsed = _load_object(block)
        if parsed is not None:
            return parsed
        for span in _balanced_spans(block):
            parsed = _load_object(span)
            if parsed is not None:
                return parsed

    for span in _balanced_spans(text):
        parsed = _load_object(span)
        if parsed is not None:
            return parsed

    raise ResponseParseError("no JSON object found in response")


def clamp_confidence(value: Any, default: float = 0.0) -> float:
    """Coerce a confidence value into [0, 1].

    Percentages (values above 1 and at most 100) are scaled down.
    """
    if isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if number != number:  # NaN
        return default
    if 1.0 < number <= 100.0:
        number = number / 100.0
    return max(0.0, min(1.0, number))
