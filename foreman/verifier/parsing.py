#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Turning agent verification answers into criterion verdicts."""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from foreman.agents.response import clamp_confidence, extract_json_object
from foreman.errors import ResponseParseError
from foreman.models.verification import CriterionVerdict, Verdict


@dataclass(frozen=True)
class ParsedVerification:
    criterion_verdicts: List[CriterionVerdict]
    verdict: Verdict
    overall_reasoning: str
    suggestions: List[str] = field(default_factory=list)
    code_quality_notes: List[str] = field(default_factory=list)


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if isinstance(item, (str, int, float)) and str(item).strip()]


def _index_of(item: Dict[str, Any], position: int) -> int:
    raw = item.get("index")
    if isinstance(raw, bool):
        return position
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.strip().isdigit():
        return int(raw.strip())
    return position


def unsatisfied_verdicts(acceptance: List[str], reason: str) -> List[CriterionVerdict]:
    """Every criterion unsatisfied with zero confidence."""
    return [
        CriterionVerdict(
            index=index,
            criterion_text=criterion,
            satisfied=False,
            confidence=0.0,
            reasoning=reason,
        )
        for index, criterion in enumerate(acceptance)
    ]


def parse_verification_response(response: str, acceptance: List[str]) -> ParsedVerification:
    """Parse an agent verification answer.

    Args:
        response: Raw agent output
        acceptance: The feature's acceptance criteria, in order

    Returns:
        ParsedVerification with one verdict per criterion

    Raises:
        ResponseParseError: If no JSON object is found or ``criteriaResults``
            is missing or not a list.
    """
    data = extract_json_object(response)
    raw_results = data.get("criteriaResults")
    if not isinstance(raw_results, list):
        raise ResponseParseError("response is missing the 'criteriaResults' list")

    by_index: Dict[int, Dict[str, Any]] = {}
    for position, item in enumerate(raw_results):
        if isinstance(item, dict):
            by_index.setdefault(_index_of(item, position), item)

    verdicts = []
    for index, criterion in enumerate(acceptance):
        item = by_index.get(index)
        if item is None:
            verdicts.append(CriterionVerdict(
                index=index,
                criterion_text=criterion,
                satisfied=False,
                confidence=0.0,
                reasoning="Criterion not analyzed by agent",
            ))
            continue
        reasoning = item.get("reasoning")
        verdicts.append(CriterionVerdict(
            index=index,
            criterion_text=criterion,
            satisfied=item.get("satisfied") is True,
            confidence=clamp_confidence(item.get("confidence"), default=0.0),
            reasoning=reasoning if isinstance(reasoning, str) and reasoning else "No reasoning provided",
            evidence=_string_list(item.get("evidence")),
        ))

    reasoning = data.get("overallReasoning")
    return ParsedVerification(
        criterion_verdicts=verdicts,
        verdict=Verdict.parse(data.get("verdict")),
        overall_reasoning=reasoning if isinstance(reasoning, str) and reasoning else "No reasoning provided",
        suggestions=_string_list(data.get("suggestions")),
        code_quality_notes=_string_list(data.get("codeQualityNotes")),
    )


def apply_safety_net(
    verdict: Verdict,
    criteria: List[CriterionVerdict],
    trust_threshold: float,
) -> Verdict:
    """Downgrade an implausible ``pass`` to ``needs_review``.

    A pass stands only if every criterion is satisfied with confidence above
    ``trust_threshold``.
    """
    if verdict != Verdict.PASS:
        return verdict
    for criterion in criteria:
        if not criterion.satisfied or criterion.confidence <= trust_threshold:
            return Verdict.NEEDS_REVIEW
    return verdict
