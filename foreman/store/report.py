#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Markdown reports for stored verification runs."""

from datetime import datetime
from typing import List, Optional

from foreman.models.verification import CheckKind, CheckResult, VerificationResult

MAX_CHECK_OUTPUT_CHARS = 5000

_CHECK_TITLES = {
    CheckKind.TEST: "Tests",
    CheckKind.TYPECHECK: "Type Check",
    CheckKind.LINT: "Lint",
    CheckKind.BUILD: "Build",
    CheckKind.E2E: "E2E Tests",
    CheckKind.INIT_SCRIPT: "Init Script",
}

_VERDICT_MARKS = {
    "pass": "✅",
    "fail": "❌",
    "needs_review": "⚠️",
}


def format_run_number(run_number: int) -> str:
    return f"{run_number:03d}"


def format_date(timestamp: str) -> str:
    try:
        parsed = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return timestamp
    return parsed.strftime("%Y-%m-%d %H:%M:%S UTC")


def format_duration(duration_ms: Optional[int]) -> str:
    if duration_ms is None:
        return "N/A"
    if duration_ms < 1000:
        return f"{duration_ms}ms"
    if duration_ms < 60000:
        return f"{duration_ms / 1000:.1f}s"
    minutes, remainder = divmod(duration_ms, 60000)
    return f"{minutes}m {remainder / 1000:.1f}s"


def _check_status(check: CheckResult) -> str:
    if check.skipped:
        return "⏭️ Skipped"
    return "✅ Pass" if check.success else "❌ Fail"


def _check_section(check: CheckResult) -> List[str]:
    lines = [
        f"### {_CHECK_TITLES.get(check.kind, check.kind.value)}: {check.name}",
        "",
        f"- **Status**: {_check_status(check)}",
        f"- **Duration**: {format_duration(check.duration_ms)}",
    ]
    if check.command:
        lines.append(f"- **Command**: `{check.command}`")

    output = check.output.strip()
    if output:
        if len(output) > MAX_CHECK_OUTPUT_CHARS:
            output = output[:MAX_CHECK_OUTPUT_CHARS] + "\n... (truncated)"
        lines.extend(["", "**Output**:", "```", output, "```"])
    lines.append("")
    return lines


def generate_verification_report(result: VerificationResult, run_number: Optional[int] = None) -> str:
    """Render a verification result as a markdown document."""
    lines = [f"# Verification Report: {result.feature_id}", ""]
    if run_number is not None:
        lines.append(f"**Run**: #{format_run_number(run_number)}")
    lines.append(f"**Date**: {format_date(result.timestamp)}")
    mark = _VERDICT_MARKS.get(result.verdict.value, "❓")
    lines.append(f"**Verdict**: {mark} {result.verdict.value.upper()}")
    lines.append(f"**Verified By**: {result.verified_by}")
    lines.append(f"**Mode**: {result.mode.value}")
    if result.commit_hash:
        lines.append(f"**Commit**: `{result.commit_hash[:7]}`")
    lines.append("")

    lines.extend(["## Changed Files", ""])
    if result.changed_files:
        lines.extend(f"- `{path}`" for path in result.changed_files)
    else:
        lines.append("_No files changed_")
    if result.diff_summary:
        lines.extend(["", f"> {result.diff_summary}"])
    lines.append("")

    lines.extend(["## Automated Checks", ""])
    if result.check_results:
        lines.append("| Check | Status | Duration |")
        lines.append("|-------|--------|----------|")
        for check in result.check_results:
            lines.append(f"| {check.name or check.kind.value} | {_check_status(check)} | "
                         f"{format_duration(check.duration_ms)} |")
        lines.append("")
        for check in result.check_results:
            lines.extend(_check_section(check))
    else:
        lines.extend(["_No automated checks were run_", ""])

    lines.extend(["## Acceptance Criteria", ""])
    for criterion in result.criterion_verdicts:
        status = "✅ Yes" if criterion.satisfied else "❌ No"
        lines.extend([
            f"### {criterion.index + 1}. {criterion.criterion_text}",
            "",
            f"- **Satisfied**: {status}",
            f"- **Confidence**: {round(criterion.confidence * 100)}%",
            "",
        ])
        if criterion.reasoning:
            lines.extend(["**Reasoning**:", "", criterion.reasoning, ""])
        if criterion.evidence:
            lines.extend(["**Evidence**:", ""])
            lines.extend(f"- `{item}`" for item in criterion.evidence)
            lines.append("")

    if result.overall_reasoning:
        lines.extend(["## Overall Reasoning", "", result.overall_reasoning, ""])

    if result.suggestions:
        lines.extend(["## Suggestions", ""])
        lines.extend(f"- {suggestion}" for suggestion in result.suggestions)
        lines.append("")

    if result.code_quality_notes:
        lines.extend(["## Code Quality Notes", ""])
        lines.extend(f"- {note}" for note in result.code_quality_notes)
        lines.append("")

    if result.related_files_analyzed:
        lines.extend(["## Related Files Analyzed", ""])
        lines.extend(f"- `{path}`" for path in result.related_files_analyzed)
        lines.append("")

    return "\n".join(lines)
