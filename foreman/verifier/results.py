#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Summaries and terminal rendering of verification results."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from foreman.models.verification import VerificationResult
from foreman.terminal.formatting import (
    Colors,
    Symbols,
    colorize,
    create_bullet_item,
    create_header,
    create_section,
    verdict_color,
)


@dataclass(frozen=True)
class VerificationSummary:
    """Compact record of a verification, for embedding in feature records."""
    verified_at: str
    verdict: str
    verified_by: str
    commit_hash: Optional[str]
    summary: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "verifiedAt": self.verified_at,
            "verdict": self.verdict,
            "verifiedBy": self.verified_by,
            "commitHash": self.commit_hash,
            "summary": self.summary,
        }


def create_verification_summary(result: VerificationResult) -> VerificationSummary:
    satisfied = result.satisfied_count
    total = len(result.criterion_verdicts)
    return VerificationSummary(
        verified_at=result.timestamp,
        verdict=result.verdict.value,
        verified_by=result.verified_by,
        commit_hash=result.commit_hash,
        summary=f"{satisfied}/{total} criteria satisfied",
    )


def _shorten(text: str, width: int = 60) -> str:
    return text if len(text) <= width else text[:width - 3] + "..."


def format_verification_result(result: VerificationResult, verbose: bool = False) -> str:
    """Render a result for the terminal.

    Args:
        result: Result to render
        verbose: Include per-criterion reasoning, evidence and the overall
            reasoning

    Returns:
        Multi-line string
    """
    lines = [create_header(f"Verification Result: {result.feature_id}", width=50)]

    if result.check_results:
        lines.append(create_section("Automated Checks:"))
        for check in result.check_results:
            if check.skipped:
                status, bullet = colorize("SKIPPED", Colors.BRIGHT_BLACK), "skip"
            elif check.success:
                status, bullet = colorize("PASSED", Colors.BRIGHT_GREEN), "check"
            else:
                status, bullet = colorize("FAILED", Colors.BRIGHT_RED), "cross"
            duration = colorize(f" ({check.duration_ms / 1000:.1f}s)", Colors.BRIGHT_BLACK) \
                if check.duration_ms else ""
            label = check.name or check.kind.value
            lines.append(create_bullet_item(f"{label:<24} {status}{duration}", bullet, indent=3))

    lines.append(create_section("Criteria Analysis:"))
    for criterion in result.criterion_verdicts:
        bullet = "check" if criterion.satisfied else "cross"
        confidence = colorize(f"({criterion.confidence * 100:.0f}%)", Colors.BRIGHT_BLACK)
        text = f"[{criterion.index + 1}] {_shorten(criterion.criterion_text)} {confidence}"
        lines.append(create_bullet_item(text, bullet, indent=3))
        if verbose:
            lines.append(colorize(f"      {criterion.reasoning}", Colors.BRIGHT_BLACK))
            if criterion.evidence:
                lines.append(colorize(f"      Evidence: {', '.join(criterion.evidence)}", Colors.BRIGHT_BLACK))

    lines.append("")
    lines.append(colorize(Symbols.BOX_H * 50, Colors.BRIGHT_BLACK))
    verdict = colorize(result.verdict.value.upper(), verdict_color(result.verdict.value), bold=True)
    lines.append(f"   Verdict: {verdict}  ({create_verification_summary(result).summary})")

    if verbose and result.overall_reasoning:
        lines.append(colorize(f"\n   {result.overall_reasoning}", Colors.BRIGHT_BLACK))

    if result.suggestions:
        lines.append(create_section("Suggestions:"))
        for suggestion in result.suggestions:
            lines.append(create_bullet_item(suggestion, "warning", indent=3))

    return "\n".join(lines)
