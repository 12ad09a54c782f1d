#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Check and verification result models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class CheckKind(str, Enum):
    TEST = "test"
    TYPECHECK = "typecheck"
    LINT = "lint"
    BUILD = "build"
    E2E = "e2e"
    INIT_SCRIPT = "init-script"


class Verdict(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    NEEDS_REVIEW = "needs_review"

    @classmethod
    def parse(cls, value: Any) -> "Verdict":
        """Map arbitrary agent output to a verdict, defaulting to NEEDS_REVIEW."""
        if isinstance(value, str):
            normalized = value.strip().lower().replace("-", "_").replace(" ", "_")
            for verdict in cls:
                if verdict.value == normalized:
                    return verdict
        return cls.NEEDS_REVIEW


class VerificationMode(str, Enum):
    DIFF = "diff"
    AUTONOMOUS = "autonomous"
    TDD = "tdd"


@dataclass(frozen=True)
class CheckDefinition:
    """One command to run as part of a verification."""
    kind: CheckKind
    command: str
    name: str
    is_e2e: bool = False
    env: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class CheckResult:
    """Outcome of running one check."""
    kind: CheckKind
    success: bool
    output: str = ""
    duration_ms: int = 0
    name: str = ""
    command: str = ""
    skipped: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "name": self.name,
            "command": self.command,
            "success": self.success,
            "skipped": self.skipped,
            "output": self.output,
            "durationMs": self.duration_ms,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CheckResult":
        return cls(
            kind=CheckKind(data.get("kind", "test")),
            success=bool(data.get("success", False)),
            output=str(data.get("output") or ""),
            duration_ms=int(data.get("durationMs") or 0),
            name=str(data.get("name") or ""),
            command=str(data.get("command") or ""),
            skipped=bool(data.get("skipped", False)),
        )


@dataclass(frozen=True)
class CriterionVerdict:
    """Judgment for a single acceptance criterion."""
    index: int
    criterion_text: str
    satisfied: bool
    confidence: float
    reasoning: str = ""
    evidence: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "criterionText": self.criterion_text,
            "satisfied": self.satisfied,
            "confidence": self.confidence,
            "reasoning": self.reasoning,
            "evidence": list(self.evidence),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CriterionVerdict":
        return cls(
            index=int(data.get("index", 0)),
            criterion_text=str(data.get("criterionText") or ""),
            satisfied=bool(data.get("satisfied", False)),
            confidence=float(data.get("confidence") or 0.0),
            reasoning=str(data.get("reasoning") or ""),
            evidence=[str(item) for item in data.get("evidence") or []],
        )


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of one verification attempt for a feature."""
    feature_id: str
    timestamp: str
    commit_hash: Optional[str]
    check_results: List[CheckResult]
    criterion_verdicts: List[CriterionVerdict]
    verdict: Verdict
    verified_by: str
    overall_reasoning: str = ""
    suggestions: List[str] = field(default_factory=list)
    changed_files: List[str] = field(default_factory=list)
    diff_summary: str = ""
    code_quality_notes: List[str] = field(default_factory=list)
    related_files_analyzed: List[str] = field(default_factory=list)
    mode: VerificationMode = VerificationMode.DIFF

    @property
    def satisfied_count(self) -> int:
        return sum(1 for criterion in self.criterion_verdicts if criterion.satisfied)

    @property
    def checks_passed(self) -> bool:
        return all(result.success for result in self.check_results)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "featureId": self.feature_id,
            "timestamp": self.timestamp,
            "commitHash": self.commit_hash,
            "verdict": self.verdict.value,
            "verifiedBy": self.verified_by,
            "mode": self.mode.value,
            "overallReasoning": self.overall_reasoning,
            "checkResults": [result.to_dict() for result in self.check_results],
            "criterionVerdicts": [verdict.to_dict() for verdict in self.criterion_verdicts],
            "suggestions": list(self.suggestions),
            "changedFiles": list(self.changed_files),
            "diffSummary": self.diff_summary,
            "codeQualityNotes": list(self.code_quality_notes),
            "relatedFilesAnalyzed": list(self.related_files_analyzed),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VerificationResult":
        return cls(
            feature_id=str(data["featureId"]),
            timestamp=str(data.get("timestamp") or ""),
            commit_hash=data.get("commitHash"),
            check_results=[CheckResult.from_dict(item) for item in data.get("checkResults") or []],
            criterion_verdicts=[
                CriterionVerdict.from_dict(item) for item in data.get("criterionVerdicts") or []
            ],
            verdict=Verdict.parse(data.get("verdict")),
            verified_by=str(data.get("verifiedBy") or "unknown"),
            overall_reasoning=str(data.get("overallReasoning") or ""),
            suggestions=list(data.get("suggestions") or []),
            changed_files=list(data.get("changedFiles") or []),
            diff_summary=str(data.get("diffSummary") or ""),
            code_quality_notes=list(data.get("codeQualityNotes") or []),
            related_files_analyzed=list(data.get("relatedFilesAnalyzed") or []),
            mode=VerificationMode(data.get("mode") or VerificationMode.DIFF.value),
        )
