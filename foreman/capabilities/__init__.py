#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Capability resolution: which verification commands a project has."""

from foreman.capabilities.discovery import (
    DiscoveryResult,
    build_discovery_prompt,
    discover_with_agent,
    parse_discovery_response,
)
from foreman.capabilities.disk_cache import (
    cache_path,
    invalidate_cache,
    load_cache_record,
    save_cache_record,
)
from foreman.capabilities.formatters import format_capabilities, summarize_capabilities
from foreman.capabilities.presets import PresetDetection, compute_preset_confidence, detect_preset
from foreman.capabilities.resolver import CapabilityResolver
from foreman.capabilities.staleness import is_record_stale

__all__ = [
    "DiscoveryResult",
    "build_discovery_prompt",
    "discover_with_agent",
    "parse_discovery_response",
    "cache_path",
    "invalidate_cache",
    "load_cache_record",
    "save_cache_record",
    "format_capabilities",
    "summarize_capabilities",
    "PresetDetection",
    "compute_preset_confidence",
    "detect_preset",
    "CapabilityResolver",
    "is_record_stale",
]
