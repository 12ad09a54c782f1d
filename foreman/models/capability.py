#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Capability profile models.

A capability profile records which verification commands exist for a
project. Profiles are produced by the resolver and serialized into the
project's capability cache using camelCase keys.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from foreman.errors import CacheError


class CapabilitySource(str, Enum):
    CACHED = "cached"
    PRESET = "preset"
    AI_DISCOVERED = "ai-discovered"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _opt_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


@dataclass(frozen=True)
class SelectiveTestTemplates:
    """Templates for running a subset of the unit test suite.

    ``{files}`` and ``{pattern}`` are substituted by the executor.
    """
    file_template: Optional[str] = None
    name_pattern_template: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fileTemplate": self.file_template,
            "namePatternTemplate": self.name_pattern_template,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Optional["SelectiveTestTemplates"]:
        if not isinstance(data, dict):
            return None
        return cls(
            file_template=_opt_str(data.get("fileTemplate")),
            name_pattern_template=_opt_str(data.get("namePatternTemplate")),
        )


@dataclass(frozen=True)
class E2ETemplates:
    """Templates for filtered end-to-end runs.

    ``grep_template`` takes ``{tags}``; ``file_template`` takes ``{files}``.
    """
    grep_template: Optional[str] = None
    file_template: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "grepTemplate": self.grep_template,
            "fileTemplate": self.file_template,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Optional["E2ETemplates"]:
        if not isinstance(data, dict):
            return None
        return cls(
            grep_template=_opt_str(data.get("grepTemplate")),
            file_template=_opt_str(data.get("fileTemplate")),
        )


@dataclass(frozen=True)
class CustomRule:
    """A project-specific verification command reported by discovery."""
    id: str
    description: str
    command: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "description": self.description, "command": self.command}


@dataclass(frozen=True)
class CapabilityProfile:
    """Resolved description of a project's verification commands."""

    has_tests: bool = False
    test_command: Optional[str] = None
    test_framework: Optional[str] = None
    has_type_check: bool = False
    type_check_command: Optional[str] = None
    has_lint: bool = False
    lint_command: Optional[str] = None
    has_build: bool = False
    build_command: Optional[str] = None
    has_e2e: bool = False
    e2e_command: Optional[str] = None
    e2e_framework: Optional[str] = None
    e2e_templates: Optional[E2ETemplates] = None
    test_templates: Optional[SelectiveTestTemplates] = None
    has_git: bool = False
    languages: List[str] = field(default_factory=list)
    custom_rules: List[CustomRule] = field(default_factory=list)
    source: CapabilitySource = CapabilitySource.AI_DISCOVERED
    confidence: float = 0.0
    detected_at: str = field(default_factory=utc_timestamp)

    def with_source(self, source: CapabilitySource) -> "CapabilityProfile":
        """Return a copy of this profile tagged with ``source``."""
        return replace(self, source=source)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hasTests": self.has_tests,
            "testCommand": self.test_command,
            "testFramework": self.test_framework,
            "hasTypeCheck": self.has_type_check,
            "typeCheckCommand": self.type_check_command,
            "hasLint": self.has_lint,
            "lintCommand": self.lint_command,
            "hasBuild": self.has_build,
            "buildCommand": self.build_command,
            "hasE2E": self.has_e2e,
            "e2eCommand": self.e2e_command,
            "e2eFramework": self.e2e_framework,
            "e2eTemplates": self.e2e_templates.to_dict() if self.e2e_templates else None,
            "testTemplates": self.test_templates.to_dict() if self.test_templates else None,
            "hasGit": self.has_git,
            "languages": list(self.languages),
            "customRules": [rule.to_dict() for rule in self.custom_rules],
            "source": self.source.value,
            "confidence": self.confidence,
            "detectedAt": self.detected_at,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "CapabilityProfile":
        """Build a profile from its serialized form.

        Raises:
            CacheError: If required fields are missing or have the wrong type.
        """
        if not isinstance(data, dict):
            raise CacheError("capabilities must be an object")

        for key in ("hasTests", "hasTypeCheck", "hasLint", "hasBuild", "hasGit"):
            if not isinstance(data.get(key), bool):
                raise CacheError(f"capabilities.{key} must be a boolean")

        confidence = data.get("confidence")
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            raise CacheError("capabilities.confidence must be a number")

        try:
            source = CapabilitySource(data.get("source"))
        except ValueError as e:
            raise CacheError(f"unknown capability source: {data.get('source')!r}") from e

        languages = data.get("languages") or []
        if not isinstance(languages, list):
            raise CacheError("capabilities.languages must be a list")

        rules = []
        for raw_rule in data.get("customRules") or []:
            if isinstance(raw_rule, dict) and _opt_str(raw_rule.get("command")):
                rules.append(CustomRule(
                    id=str(raw_rule.get("id", "")),
                    description=str(raw_rule.get("description", "")),
                    command=raw_rule["command"],
                ))

        return cls(
            has_tests=data["hasTests"],
            test_command=_opt_str(data.get("testCommand")),
            test_framework=_opt_str(data.get("testFramework")),
            has_type_check=data["hasTypeCheck"],
            type_check_command=_opt_str(data.get("typeCheckCommand")),
            has_lint=data["hasLint"],
            lint_command=_opt_str(data.get("lintCommand")),
            has_build=data["hasBuild"],
            build_command=_opt_str(data.get("buildCommand")),
            has_e2e=bool(data.get("hasE2E", False)),
            e2e_command=_opt_str(data.get("e2eCommand")),
            e2e_framework=_opt_str(data.get("e2eFramework")),
            e2e_templates=E2ETemplates.from_dict(data.get("e2eTemplates")),
            test_templates=SelectiveTestTemplates.from_dict(data.get("testTemplates")),
            has_git=data["hasGit"],
            languages=[str(lang) for lang in languages],
            custom_rules=rules,
            source=source,
            confidence=float(confidence),
            detected_at=str(data.get("detectedAt") or utc_timestamp()),
        )


def minimal_profile(has_git: bool = False) -> CapabilityProfile:
    """All-false profile used when nothing could be resolved."""
    return CapabilityProfile(
        has_git=has_git,
        languages=[],
        source=CapabilitySource.AI_DISCOVERED,
        confidence=0.0,
    )


@dataclass(frozen=True)
class CacheRecord:
    """On-disk capability cache record."""
    version: str
    profile: CapabilityProfile
    commit_hash: Optional[str] = None
    tracked_files: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "version": self.version,
            "capabilities": self.profile.to_dict(),
            "trackedFiles": list(self.tracked_files),
        }
        if self.commit_hash:
            data["commitHash"] = self.commit_hash
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "CacheRecord":
        if not isinstance(data, dict):
            raise CacheError("cache file must contain an object")
        version = data.get("version")
        if not isinstance(version, str):
            raise CacheError("cache version missing")
        tracked = data.get("trackedFiles") or []
        if not isinstance(tracked, list):
            raise CacheError("trackedFiles must be a list")
        return cls(
            version=version,
            profile=CapabilityProfile.from_dict(data.get("capabilities")),
            commit_hash=_opt_str(data.get("commitHash")),
            tracked_files=[str(path) for path in tracked if isinstance(path, str)],
        )
