#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Agent-driven capability discovery.

The agent explores the checkout and answers with a JSON description of the
project's verification commands. The answer is untrusted: every field is
validated and anything missing or malformed degrades to "not available".
"""

import pathlib
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from foreman import config
from foreman.agents.gateway import AgentGateway
from foreman.agents.response import clamp_confidence, extract_json_object
from foreman.debug_logger import get_logger
from foreman.errors import ResponseParseError
from foreman.models.capability import (
    CapabilityProfile,
    CapabilitySource,
    CustomRule,
    E2ETemplates,
    SelectiveTestTemplates,
)


logger = get_logger()

DEFAULT_AVAILABLE_CONFIDENCE = 0.8
NO_EVIDENCE_CONFIDENCE = 0.5


@dataclass(frozen=True)
class DiscoveryResult:
    profile: CapabilityProfile
    config_files: List[str] = field(default_factory=list)


def build_discovery_prompt(project_root: pathlib.Path) -> str:
    """Build the exploration prompt sent to the agent."""
    return f"""You are a software project analyzer. Discover how this project is verified by exploring it.

## Working Directory

{project_root}

## Task

Explore the project and determine:
1. Package manager (npm, pnpm, yarn, bun, pip, poetry, cargo, go, ...)
2. Config files that define how the project is built and tested
3. The command that runs ALL unit tests, and how to run a subset of them
4. End-to-end test tooling (Playwright, Cypress, ...) if present
5. Static type checking, linting and build commands if applicable

## Requirements

- Commands must run once and exit: no watch mode, no interactive prompts
- Only report commands you verified by reading the project's configuration
- Prefer the project's own scripts over generic commands
- Set "available": false when a command cannot be determined

## Output Format

Return ONLY a JSON object:

{{
  "languages": ["<languages/frameworks>"],
  "configFiles": ["<relative paths of files that define build/test config>"],
  "packageManager": "<name>",
  "test": {{
    "available": true,
    "command": "<command running all unit tests>",
    "framework": "<vitest|jest|mocha|pytest|go|cargo|...>",
    "confidence": 0.95,
    "selectiveFileTemplate": "<command with {{files}} placeholder>",
    "selectiveNameTemplate": "<command with {{pattern}} placeholder>"
  }},
  "e2e": {{
    "available": false,
    "command": "<command running all E2E tests>",
    "framework": "<playwright|cypress|...>",
    "confidence": 0.9,
    "grepTemplate": "<command with {{tags}} placeholder>",
    "fileTemplate": "<command with {{files}} placeholder>"
  }},
  "typecheck": {{"available": true, "command": "<command>", "confidence": 0.9}},
  "lint": {{"available": true, "command": "<command>", "confidence": 0.85}},
  "build": {{"available": true, "command": "<command>", "confidence": 0.9}},
  "customRules": [
    {{"id": "<rule-id>", "description": "<what it checks>", "command": "<command>"}}
  ]
}}

Confidence: 0.9-1.0 verified in a config file, 0.7-0.9 strong indication.
Below 0.7, set "available": false.

configFiles are monitored for changes to invalidate the cached result.
"""


def _str_field(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _capability(data: Dict[str, Any], key: str) -> Tuple[bool, Optional[str], Dict[str, Any], float]:
    """Return (available, command, raw_section, confidence) for one capability."""
    section = data.get(key)
    if not isinstance(section, dict):
        return False, None, {}, 0.0
    command = _str_field(section, "command")
    available = section.get("available") is True and command is not None
    if not available:
        return False, None, section, 0.0
    confidence = clamp_confidence(section.get("confidence"), default=DEFAULT_AVAILABLE_CONFIDENCE)
    return True, command, section, confidence


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _safe_config_files(value: Any) -> List[str]:
    """Keep relative paths inside the project."""
    safe: List[str] = []
    for item in _string_list(value):
        path = pathlib.PurePosixPath(item.replace("\\", "/"))
        if path.is_absolute() or ".." in path.parts:
            continue
        safe.append(str(path))
    return list(dict.fromkeys(safe))


def _custom_rules(value: Any) -> List[CustomRule]:
    rules: List[CustomRule] = []
    if not isinstance(value, list):
        return rules
    for index, item in enumerate(value):
        if not isinstance(item, dict):
            continue
        command = _str_field(item, "command")
        if command is None:
            continue
        rules.append(CustomRule(
            id=_str_field(item, "id") or f"rule-{index + 1}",
            description=_str_field(item, "description") or "",
            command=command,
        ))
    return rules


def parse_discovery_response(response: str, has_git: bool) -> DiscoveryResult:
    """Convert an agent answer into a profile.

    Raises:
        ResponseParseError: If the answer contains no JSON object.
    """
    data = extract_json_object(response)

    has_tests, test_command, test_section, test_conf = _capability(data, "test")
    has_e2e, e2e_command, e2e_section, e2e_conf = _capability(data, "e2e")
    has_type_check, type_check_command, _, type_conf = _capability(data, "typecheck")
    has_lint, lint_command, _, lint_conf = _capability(data, "lint")
    has_build, build_command, _, build_conf = _capability(data, "build")

    confidences = [conf for conf in (test_conf, e2e_conf, type_conf, lint_conf, build_conf) if conf > 0]
    confidence = sum(confidences) / len(confidences) if confidences else NO_EVIDENCE_CONFIDENCE

    test_templates = None
    if has_tests:
        file_tpl = _str_field(test_section, "selectiveFileTemplate")
        name_tpl = _str_field(test_section, "selectiveNameTemplate")
        if file_tpl or name_tpl:
            test_templates = SelectiveTestTemplates(file_tpl, name_tpl)

    e2e_templates = None
    if has_e2e:
        grep_tpl = _str_field(e2e_section, "grepTemplate")
        file_tpl = _str_field(e2e_section, "fileTemplate")
        if grep_tpl or file_tpl:
            e2e_templates = E2ETemplates(grep_tpl, file_tpl)

    profile = CapabilityProfile(
        has_tests=has_tests,
        test_command=test_command,
        test_framework=_str_field(test_section, "framework") if has_tests else None,
        test_templates=test_templates,
        has_type_check=has_type_check,
        type_check_command=type_check_command,
        has_lint=has_lint,
        lint_command=lint_command,
        has_build=has_build,
        build_command=build_command,
        has_e2e=has_e2e,
        e2e_command=e2e_command,
        e2e_framework=_str_field(e2e_section, "framework") if has_e2e else None,
        e2e_templates=e2e_templates,
        has_git=has_git,
        languages=_string_list(data.get("languages")),
        custom_rules=_custom_rules(data.get("customRules")),
        source=CapabilitySource.AI_DISCOVERED,
        confidence=round(confidence, 3),
    )
    return DiscoveryResult(profile=profile, config_files=_safe_config_files(data.get("configFiles")))


async def discover_with_agent(
    project_root: pathlib.Path,
    gateway: AgentGateway,
    has_git: bool,
    timeout_ms: Optional[int] = None,
) -> Optional[DiscoveryResult]:
    """Ask the agent to explore the project.

    Returns:
        The discovery result, or None if no agent answered usefully.
    """
    prompt = build_discovery_prompt(project_root)
    result = await gateway.invoke(
        prompt,
        cwd=project_root,
        timeout_ms=timeout_ms or config.get_timeout("AI_CAPABILITY_DISCOVERY"),
    )
    if not result.success:
        logger.warning(f"[discovery] agent discovery failed: {result.error}")
        return None

    try:
        discovered = parse_discovery_response(result.output, has_git=has_git)
    except ResponseParseError as e:
        logger.warning(f"[discovery] could not parse agent response: {e}")
        return None

    logger.info(
        f"[discovery] {result.agent_used} discovered languages={discovered.profile.languages} "
        f"confidence={discovered.profile.confidence}"
    )
    return discovered
