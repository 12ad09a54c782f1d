#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Prompt construction for feature verification."""

import pathlib
from typing import Dict, List, Optional

from foreman.models.feature import Feature
from foreman.models.verification import CheckResult

MAX_DIFF_CHARS = 60000
MAX_RELATED_FILE_CHARS = 10000

_OUTPUT_FORMAT = """Respond with ONLY a JSON object in this format (criteria indexes are zero-based):

```json
{
  "criteriaResults": [
    {
      "index": 0,
      "satisfied": true,
      "reasoning": "Implemented in src/module.py:45 and covered by tests/test_module.py:12",
      "evidence": ["src/module.py:45", "tests/test_module.py:12"],
      "confidence": 0.95
    }
  ],
  "verdict": "pass",
  "overallReasoning": "Summary of the findings",
  "suggestions": ["Actionable improvement"],
  "codeQualityNotes": ["Quality observation"]
}
```

Verdict rules:
- "pass": ALL criteria satisfied with confidence above 0.7
- "fail": ANY criterion clearly NOT satisfied
- "needs_review": evidence is insufficient or confidence is low"""


def format_criteria(feature: Feature) -> str:
    return "\n".join(f"{index + 1}. {criterion}" for index, criterion in enumerate(feature.acceptance))


def format_check_results(results: List[CheckResult]) -> str:
    if not results:
        return "No automated checks were run."
    lines = []
    for result in results:
        if result.skipped:
            status = "SKIPPED"
        else:
            status = "PASSED" if result.success else "FAILED"
        duration = f" ({result.duration_ms}ms)" if result.duration_ms else ""
        lines.append(f"- **{result.kind.value.upper()}** {result.name}: {status}{duration}")
    return "\n".join(lines)


def format_related_files(contents: Dict[str, str]) -> str:
    if not contents:
        return ""
    sections = []
    for file_path, content in contents.items():
        if len(content) > MAX_RELATED_FILE_CHARS:
            content = content[:MAX_RELATED_FILE_CHARS] + "\n... (truncated)"
        sections.append(f"### {file_path}\n\n```\n{content}\n```")
    return "## Related Files (for context)\n\n" + "\n\n".join(sections)


def _feature_section(feature: Feature) -> str:
    lines = [
        f"- **ID**: {feature.id}",
        f"- **Description**: {feature.description}",
    ]
    if feature.module:
        lines.append(f"- **Module**: {feature.module}")
    return "\n".join(lines)


def build_verification_prompt(
    feature: Feature,
    diff: str,
    changed_files: List[str],
    check_results: List[CheckResult],
    related_files: Optional[Dict[str, str]] = None,
) -> str:
    """Prompt for diff-based verification."""
    if len(diff) > MAX_DIFF_CHARS:
        diff = diff[:MAX_DIFF_CHARS] + "\n... (diff truncated)"
    changed = "\n".join(f"- {path}" for path in changed_files) or "- (none detected)"

    return f"""You are a software verification expert. Analyze the code changes and determine whether each acceptance criterion of this feature is satisfied.

## Feature Information

{_feature_section(feature)}

## Acceptance Criteria

{format_criteria(feature)}

## Changed Files

{changed}

## Git Diff

```diff
{diff}
```

## Automated Check Results

{format_check_results(check_results)}

{format_related_files(related_files or {})}

## Your Task

For EACH acceptance criterion:
- Decide whether the changes satisfy it
- Cite specific evidence (file:line references)
- Rate your confidence from 0.0 to 1.0
- Explain your reasoning

Also note code quality issues (bugs, security, missing error handling) and give actionable suggestions.

## Output Format

{_OUTPUT_FORMAT}"""


def build_autonomous_prompt(
    project_root: pathlib.Path,
    feature: Feature,
    check_results: List[CheckResult],
) -> str:
    """Prompt for autonomous verification: the agent explores the checkout."""
    return f"""You are a software verification expert. Verify whether a feature's acceptance criteria are satisfied.

## Working Directory

{project_root}

You are working in this directory. Explore it with your available tools.

## Feature Information

{_feature_section(feature)}

## Acceptance Criteria to Verify

{format_criteria(feature)}

## Automated Check Results

{format_check_results(check_results)}

## Your Task

For EACH acceptance criterion:
1. Read the source files that implement it
2. Check that tests exist and cover the behaviour
3. Decide whether the criterion is fully satisfied

## Output Format

{_OUTPUT_FORMAT}

Begin exploring now."""
