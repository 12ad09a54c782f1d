#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Display formatting for capability profiles."""

from typing import Optional

from foreman.models.capability import CapabilityProfile
from foreman.terminal.formatting import Colors, colorize, create_item


def _describe(available: bool, command: Optional[str], framework: Optional[str] = None) -> str:
    if not available:
        return colorize("Not detected", Colors.BRIGHT_BLACK)
    if framework:
        return f"{framework} ({command})"
    return command or "available"


def format_capabilities(profile: CapabilityProfile) -> str:
    """Render a profile as aligned ``label: value`` lines."""
    lines = [
        create_item("Source", profile.source.value),
        create_item("Confidence", f"{profile.confidence * 100:.0f}%"),
        create_item("Languages", ", ".join(profile.languages) or "Unknown"),
        "",
        create_item("Tests", _describe(profile.has_tests, profile.test_command, profile.test_framework or "custom")),
        create_item("E2E", _describe(profile.has_e2e, profile.e2e_command, profile.e2e_framework or "custom")),
        create_item("Type Check", _describe(profile.has_type_check, profile.type_check_command)),
        create_item("Lint", _describe(profile.has_lint, profile.lint_command)),
        create_item("Build", _describe(profile.has_build, profile.build_command)),
        create_item("Git", "Available" if profile.has_git else "Not available"),
    ]
    for rule in profile.custom_rules:
        lines.append(create_item(f"Rule {rule.id}", rule.command))
    return "\n".join(lines)


def summarize_capabilities(profile: CapabilityProfile) -> str:
    """One-line summary for logs."""
    enabled = [
        name for name, flag in (
            ("test", profile.has_tests),
            ("typecheck", profile.has_type_check),
            ("lint", profile.has_lint),
            ("build", profile.has_build),
            ("e2e", profile.has_e2e),
        ) if flag
    ]
    checks = ",".join(enabled) or "none"
    return f"{profile.source.value} confidence={profile.confidence:.2f} checks={checks}"
