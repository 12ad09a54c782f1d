#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Configuration constants and settings for foreman."""

import os
import pathlib
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, List, Optional

import yaml


# Configuration
ROOT = pathlib.Path(os.getcwd()).resolve()
FOREMAN_DIR = ROOT / ".foreman"
LOGS_DIR = FOREMAN_DIR / "logs"
LOG_RETENTION_LIMIT = int(os.getenv("FOREMAN_LOG_RETENTION", "10"))
DEBUG_ENABLED = os.getenv("FOREMAN_DEBUG", "").strip().lower() in {"1", "true", "yes", "on"}

# Project-local metadata directory (relative to the verified project root)
METADATA_DIRNAME = os.getenv("FOREMAN_METADATA_DIR", "ai")
CAPABILITIES_FILENAME = "capabilities.json"
VERIFICATION_DIRNAME = "verification"
INIT_SCRIPT_NAME = "init.sh"
POLICY_FILENAME = "foreman.yaml"

CAPABILITY_CACHE_VERSION = "1.0.0"
VERIFICATION_INDEX_VERSION = "2.0.0"

# Agent executables, in priority order
DEFAULT_AGENT_PRIORITY = ["claude", "codex", "gemini"]

# Check execution limits
DEFAULT_MAX_BUFFER_BYTES = 5 * 1024 * 1024  # 5MB
DEFAULT_CHECK_TIMEOUT_MS = 300000  # 5 minutes

# Agent call timeouts in milliseconds
TIMEOUT_DEFAULTS: Dict[str, int] = {
    "AI_VERIFICATION": 300000,
    "AI_CAPABILITY_DISCOVERY": 120000,
    "AI_DEFAULT": 300000,
}

TIMEOUT_ENV_VARS: Dict[str, str] = {
    "AI_VERIFICATION": "FOREMAN_TIMEOUT_VERIFY",
    "AI_CAPABILITY_DISCOVERY": "FOREMAN_TIMEOUT_CAPABILITY",
    "AI_DEFAULT": "FOREMAN_TIMEOUT_DEFAULT",
}


def _parse_positive_int(raw: Optional[str]) -> Optional[int]:
    if raw is None or not raw.strip():
        return None
    try:
        value = int(raw.strip())
    except ValueError:
        return None
    return value if value > 0 else None


def get_timeout(key: str) -> int:
    """Return the timeout in milliseconds for an agent operation.

    Environment overrides take precedence over the built-in defaults. Values
    that are not positive integers are ignored.
    """
    default = TIMEOUT_DEFAULTS.get(key, TIMEOUT_DEFAULTS["AI_DEFAULT"])
    env_var = TIMEOUT_ENV_VARS.get(key)
    if not env_var:
        return default
    raw = os.getenv(env_var)
    value = _parse_positive_int(raw)
    if raw is not None and value is None:
        # Imported lazily: debug_logger imports this module
        from foreman.debug_logger import get_logger
        get_logger().warning(f"Ignoring invalid {env_var}={raw!r}; using {default}ms")
        return default
    return value if value is not None else default


def get_check_timeout_ms() -> int:
    return _parse_positive_int(os.getenv("FOREMAN_CHECK_TIMEOUT_MS")) or DEFAULT_CHECK_TIMEOUT_MS


def get_max_buffer_bytes() -> int:
    return _parse_positive_int(os.getenv("FOREMAN_MAX_BUFFER_BYTES")) or DEFAULT_MAX_BUFFER_BYTES


def get_agent_priority() -> List[str]:
    """Return the agent priority list, honoring FOREMAN_AGENTS."""
    raw = os.getenv("FOREMAN_AGENTS", "")
    names = [name.strip().lower() for name in raw.split(",") if name.strip()]
    return names or list(DEFAULT_AGENT_PRIORITY)


def metadata_dir(project_root: pathlib.Path) -> pathlib.Path:
    return pathlib.Path(project_root) / METADATA_DIRNAME


@dataclass(frozen=True)
class VerificationPolicy:
    """Tunable thresholds and retry settings.

    criterion_trust_threshold: a criterion counts toward a pass only above this.
    preset_acceptance_threshold: minimum heuristic confidence to skip discovery.
    cached_profile_floor: cached profiles below this are re-discovered.
    """

    criterion_trust_threshold: float = 0.7
    preset_acceptance_threshold: float = 0.8
    cached_profile_floor: float = 0.5
    memory_cache_ttl: float = 60.0
    use_presets: bool = True
    retry_max_attempts: int = 3
    retry_base_delay: float = 1.0
    retry_max_delay: float = 10.0
    retry_jitter: float = 0.1


DEFAULT_POLICY = VerificationPolicy()


_TRUE_WORDS = {"true", "yes", "on", "1"}
_FALSE_WORDS = {"false", "no", "off", "0"}


def _parse_bool(value: Any) -> bool:
    """Strict boolean coercion; raises ValueError for anything ambiguous."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    raise ValueError(f"not a boolean: {value!r}")


def load_policy(project_root: Optional[pathlib.Path] = None) -> VerificationPolicy:
    """Load the verification policy from ``<root>/ai/foreman.yaml``.

    Unknown keys are ignored. A missing or malformed file yields defaults.
    """
    root = pathlib.Path(project_root) if project_root else ROOT
    policy_path = metadata_dir(root) / POLICY_FILENAME
    if not policy_path.exists():
        return DEFAULT_POLICY

    try:
        data = yaml.safe_load(policy_path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        from foreman.debug_logger import get_logger
        get_logger().warning(f"Could not read policy file {policy_path}: {e}")
        return DEFAULT_POLICY

    if not isinstance(data, dict):
        return DEFAULT_POLICY

    known = {f.name: f.type for f in fields(VerificationPolicy)}
    overrides: Dict[str, Any] = {}
    for key, value in data.items():
        if key not in known:
            continue
        default_value = getattr(DEFAULT_POLICY, key)
        try:
            if isinstance(default_value, bool):
                overrides[key] = _parse_bool(value)
            elif isinstance(default_value, int):
                overrides[key] = int(value)
            else:
                overrides[key] = float(value)
        except (TypeError, ValueError):
            continue
    return replace(DEFAULT_POLICY, **overrides)
