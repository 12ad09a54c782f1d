#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Feature records as seen by the verifier (read-only input)."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class TestRequirement:
    required: bool = False
    pattern: Optional[str] = None
    tags: List[str] = field(default_factory=list)

    __test__ = False  # keep pytest from collecting this class

    @classmethod
    def from_dict(cls, data: Any) -> Optional["TestRequirement"]:
        if not isinstance(data, dict):
            return None
        return cls(
            required=bool(data.get("required", False)),
            pattern=data.get("pattern") if isinstance(data.get("pattern"), str) else None,
            tags=[str(tag) for tag in data.get("tags") or []],
        )


@dataclass(frozen=True)
class Feature:
    """A unit of work with acceptance criteria to verify."""
    id: str
    description: str
    acceptance: List[str] = field(default_factory=list)
    module: str = ""
    test_pattern: Optional[str] = None
    e2e_tags: List[str] = field(default_factory=list)
    unit_requirement: Optional[TestRequirement] = None
    e2e_requirement: Optional[TestRequirement] = None

    @property
    def requires_unit_tests(self) -> bool:
        return bool(self.unit_requirement and self.unit_requirement.required)

    @property
    def requires_e2e_tests(self) -> bool:
        return bool(self.e2e_requirement and self.e2e_requirement.required)

    def effective_test_pattern(self) -> Optional[str]:
        """Pattern used to select unit tests for a quick run."""
        if self.test_pattern:
            return self.test_pattern
        if self.unit_requirement and self.unit_requirement.pattern:
            return self.unit_requirement.pattern
        return None

    def effective_e2e_tags(self) -> List[str]:
        if self.e2e_tags:
            return list(self.e2e_tags)
        if self.e2e_requirement:
            return list(self.e2e_requirement.tags)
        return []

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Feature":
        requirements = data.get("testRequirements") or {}
        return cls(
            id=str(data["id"]),
            description=str(data.get("description") or ""),
            acceptance=[str(item) for item in data.get("acceptance") or []],
            module=str(data.get("module") or ""),
            test_pattern=data.get("testPattern") or None,
            e2e_tags=[str(tag) for tag in data.get("e2eTags") or []],
            unit_requirement=TestRequirement.from_dict(requirements.get("unit")),
            e2e_requirement=TestRequirement.from_dict(requirements.get("e2e")),
        )
