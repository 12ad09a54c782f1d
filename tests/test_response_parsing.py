"""Tests for JSON extraction and verification response parsing."""

import json

import pytest

from foreman.agents.response import clamp_confidence, extract_json_object
from foreman.errors import ResponseParseError
from foreman.models.verification import CriterionVerdict, Verdict
from foreman.verifier.parsing import apply_safety_net, parse_verification_response


ACCEPTANCE = ["Users can log in", "Invalid passwords are rejected"]


def _response(**overrides):
    body = {
        "criteriaResults": [
            {"index": 0, "satisfied": True, "reasoning": "login.py:10", "evidence": ["login.py:10"], "confidence": 0.95},
            {"index": 1, "satisfied": True, "reasoning": "test_login.py:30", "evidence": [], "confidence": 0.9},
        ],
        "verdict": "pass",
        "overallReasoning": "Looks complete",
        "suggestions": ["Add rate limiting"],
        "codeQualityNotes": ["Clean"],
    }
    body.update(overrides)
    return body


class TestExtractJsonObject:
    def test_fenced_block_is_preferred(self):
        text = 'Thinking {"not": "this"}\n```json\n{"verdict": "pass"}\n```\n'
        # The first balanced span parses too, but fenced content wins
        assert extract_json_object(text) == {"verdict": "pass"}

    def test_first_balanced_span(self):
        text = 'Here you go: {"a": {"b": "}"}} trailing {"c": 1}'
        assert extract_json_object(text) == {"a": {"b": "}"}}

    def test_skips_unparseable_spans(self):
        text = "{not json} then {\"ok\": true}"
        assert extract_json_object(text) == {"ok": True}

    @pytest.mark.parametrize("text", ["", "   ", "no braces at all", "[1, 2, 3]"])
    def test_raises_when_no_object(self, text):
        with pytest.raises(ResponseParseError):
            extract_json_object(text)


class TestClampConfidence:
    @pytest.mark.parametrize("value,expected", [
        (0.5, 0.5),
        (-0.2, 0.0),
        (1.0, 1.0),
        (85, 0.85),
        (150, 1.0),
        ("0.7", 0.7),
    ])
    def test_values(self, value, expected):
        assert clamp_confidence(value) == pytest.approx(expected)

    @pytest.mark.parametrize("value", [None, "high", True, float("nan")])
    def test_invalid_values_use_default(self, value):
        assert clamp_confidence(value, default=0.25) == 0.25


class TestParseVerificationResponse:
    def test_full_response(self):
        parsed = parse_verification_response(json.dumps(_response()), ACCEPTANCE)

        assert parsed.verdict == Verdict.PASS
        assert [c.criterion_text for c in parsed.criterion_verdicts] == ACCEPTANCE
        assert parsed.criterion_verdicts[0].evidence == ["login.py:10"]
        assert parsed.suggestions == ["Add rate limiting"]
        assert parsed.code_quality_notes == ["Clean"]

    def test_missing_criteria_results_raises(self):
        body = _response()
        del body["criteriaResults"]
        with pytest.raises(ResponseParseError):
            parse_verification_response(json.dumps(body), ACCEPTANCE)

    def test_unanalyzed_criterion_is_unsatisfied(self):
        body = _response(criteriaResults=[{"index": 1, "satisfied": True, "confidence": 0.9}])
        parsed = parse_verification_response(json.dumps(body), ACCEPTANCE)

        first = parsed.criterion_verdicts[0]
        assert first.satisfied is False
        assert first.confidence == 0.0
        assert "not analyzed" in first.reasoning
        assert parsed.criterion_verdicts[1].satisfied is True

    def test_unknown_verdict_becomes_needs_review(self):
        parsed = parse_verification_response(json.dumps(_response(verdict="looks good")), ACCEPTANCE)
        assert parsed.verdict == Verdict.NEEDS_REVIEW

    def test_confidence_is_clamped(self):
        body = _response(criteriaResults=[
            {"index": 0, "satisfied": True, "confidence": 95},
            {"index": 1, "satisfied": True, "confidence": -3},
        ])
        parsed = parse_verification_response(json.dumps(body), ACCEPTANCE)
        assert parsed.criterion_verdicts[0].confidence == pytest.approx(0.95)
        assert parsed.criterion_verdicts[1].confidence == 0.0

    def test_non_boolean_satisfied_is_false(self):
        body = _response(criteriaResults=[
            {"index": 0, "satisfied": "yes", "confidence": 0.9},
            {"index": 1, "satisfied": True, "confidence": 0.9},
        ])
        parsed = parse_verification_response(json.dumps(body), ACCEPTANCE)
        assert parsed.criterion_verdicts[0].satisfied is False


class TestSafetyNet:
    def _criteria(self, *pairs):
        return [
            CriterionVerdict(index=i, criterion_text=f"c{i}", satisfied=satisfied, confidence=confidence)
            for i, (satisfied, confidence) in enumerate(pairs)
        ]

    def test_confident_pass_stands(self):
        criteria = self._criteria((True, 0.9), (True, 0.71))
        assert apply_safety_net(Verdict.PASS, criteria, 0.7) == Verdict.PASS

    def test_pass_at_threshold_is_downgraded(self):
        criteria = self._criteria((True, 0.9), (True, 0.7))
        assert apply_safety_net(Verdict.PASS, criteria, 0.7) == Verdict.NEEDS_REVIEW

    def test_pass_with_unsatisfied_criterion_is_downgraded(self):
        criteria = self._criteria((True, 0.9), (False, 0.95))
        assert apply_safety_net(Verdict.PASS, criteria, 0.7) == Verdict.NEEDS_REVIEW

    def test_fail_is_left_alone(self):
        criteria = self._criteria((False, 0.9))
        assert apply_safety_net(Verdict.FAIL, criteria, 0.7) == Verdict.FAIL
