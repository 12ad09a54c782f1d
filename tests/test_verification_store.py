"""Tests for the verification result store and markdown reports."""

import json

import pytest

from foreman.errors import StoreError
from foreman.models.verification import (
    CheckKind,
    CheckResult,
    CriterionVerdict,
    Verdict,
    VerificationMode,
    VerificationResult,
)
from foreman.store import report
from foreman.store.verification_store import (
    VerificationStore,
    clear_feature_results,
    get_last_verification,
    get_verification_history,
    get_verification_stats,
    save_verification_result,
)


def make_result(feature_id="auth.login", verdict=Verdict.PASS, timestamp="2026-01-15T10:30:00+00:00", **kwargs):
    values = dict(
        feature_id=feature_id,
        timestamp=timestamp,
        commit_hash="0123456789abcdef",
        check_results=[CheckResult(CheckKind.TEST, True, "5 passed", 2300, name="tests", command="npm test")],
        criterion_verdicts=[
            CriterionVerdict(0, "Valid credentials create a session", True, 0.92, "login.ts:12", ["login.ts:12"]),
        ],
        verdict=verdict,
        verified_by="claude",
        overall_reasoning="Looks good",
        changed_files=["src/auth/login.ts"],
        diff_summary="1 files changed",
    )
    values.update(kwargs)
    return VerificationResult(**values)


class TestSave:
    def test_first_run_layout(self, tmp_path):
        store = VerificationStore(tmp_path)

        assert store.save(make_result()) == 1

        feature_dir = tmp_path / "ai" / "verification" / "auth.login"
        record = json.loads((feature_dir / "001.json").read_text())
        assert record["runNumber"] == 1
        assert record["featureId"] == "auth.login"
        assert record["verdict"] == "pass"
        assert (feature_dir / "001.md").read_text().startswith("# Verification Report: auth.login")

        index = json.loads((tmp_path / "ai" / "verification" / "index.json").read_text())
        assert index["version"] == "2.0.0"
        summary = index["features"]["auth.login"]
        assert summary["latestRun"] == 1
        assert summary["latestVerdict"] == "pass"
        assert summary["totalRuns"] == 1
        assert summary["passCount"] == 1
        assert summary["failCount"] == 0

    def test_runs_are_numbered_sequentially(self, tmp_path):
        store = VerificationStore(tmp_path)

        numbers = [
            store.save(make_result(verdict=Verdict.FAIL)),
            store.save(make_result(verdict=Verdict.NEEDS_REVIEW)),
            store.save(make_result(verdict=Verdict.PASS)),
        ]

        assert numbers == [1, 2, 3]
        summary = store.get_summary("auth.login")
        assert summary["totalRuns"] == 3
        assert summary["passCount"] == 1
        assert summary["failCount"] == 1
        assert summary["latestVerdict"] == "pass"

    def test_existing_run_file_is_never_overwritten(self, tmp_path):
        store = VerificationStore(tmp_path)
        store.save(make_result())
        # A run written by another process that has not reached the index yet
        stray = tmp_path / "ai" / "verification" / "auth.login" / "002.json"
        stray.write_text('{"featureId": "auth.login", "verdict": "fail"}')

        assert store.save(make_result()) == 3
        assert json.loads(stray.read_text())["verdict"] == "fail"

    def test_features_are_independent(self, tmp_path):
        store = VerificationStore(tmp_path)
        store.save(make_result("a"))
        store.save(make_result("a"))

        assert store.save(make_result("b")) == 1

    @pytest.mark.parametrize("feature_id", ["", "..", "a/b", "a\\b"])
    def test_unsafe_feature_ids_are_rejected(self, tmp_path, feature_id):
        with pytest.raises(StoreError):
            VerificationStore(tmp_path).save(make_result(feature_id))


class TestQueries:
    def test_get_last_and_history(self, tmp_path):
        save_verification_result(tmp_path, make_result(verdict=Verdict.FAIL, timestamp="2026-01-01T00:00:00+00:00"))
        save_verification_result(tmp_path, make_result(verdict=Verdict.PASS, timestamp="2026-01-02T00:00:00+00:00"))

        last = get_last_verification(tmp_path, "auth.login")
        history = get_verification_history(tmp_path, "auth.login")

        assert last.verdict == Verdict.PASS
        assert last.criterion_verdicts[0].evidence == ["login.ts:12"]
        assert [r.verdict for r in history] == [Verdict.FAIL, Verdict.PASS]

    def test_unknown_feature(self, tmp_path):
        assert get_last_verification(tmp_path, "nope") is None
        assert get_verification_history(tmp_path, "nope") == []

    def test_stats_use_latest_verdicts(self, tmp_path):
        store = VerificationStore(tmp_path)
        store.save(make_result("a", Verdict.FAIL))
        store.save(make_result("a", Verdict.PASS))
        store.save(make_result("b", Verdict.FAIL))
        store.save(make_result("c", Verdict.NEEDS_REVIEW))

        stats = get_verification_stats(tmp_path)

        assert stats.to_dict() == {"total": 3, "passing": 1, "failing": 1, "needsReview": 1}

    def test_corrupt_index_reads_as_empty(self, tmp_path):
        index = tmp_path / "ai" / "verification" / "index.json"
        index.parent.mkdir(parents=True)
        index.write_text("{broken")

        assert get_verification_stats(tmp_path).total == 0
        assert VerificationStore(tmp_path).save(make_result()) == 1


class TestClear:
    def test_clear_keeps_history_and_numbering(self, tmp_path):
        store = VerificationStore(tmp_path)
        store.save(make_result())
        store.save(make_result())

        assert clear_feature_results(tmp_path, "auth.login") is True
        assert store.get_summary("auth.login") is None
        assert get_last_verification(tmp_path, "auth.login") is None
        assert len(store.get_history("auth.login")) == 2

        assert store.save(make_result()) == 3
        assert store.get_summary("auth.login")["totalRuns"] == 1

    def test_clear_unknown_feature(self, tmp_path):
        assert clear_feature_results(tmp_path, "missing") is False


class TestReport:
    def test_report_sections(self):
        result = make_result(
            verdict=Verdict.NEEDS_REVIEW,
            suggestions=["Add lockout"],
            code_quality_notes=["Consider constant-time compare"],
            related_files_analyzed=["src/auth/login.ts"],
            check_results=[
                CheckResult(CheckKind.TEST, True, "ok", 2300, name="tests", command="npm test"),
                CheckResult(CheckKind.E2E, False, "Skipped: unit tests failed", 0, name="E2E tests (full)", skipped=True),
            ],
        )

        text = report.generate_verification_report(result, run_number=7)

        assert "**Run**: #007" in text
        assert "**Date**: 2026-01-15 10:30:00 UTC" in text
        assert "NEEDS_REVIEW" in text
        assert "**Commit**: `0123456`" in text
        assert "| tests | ✅ Pass | 2.3s |" in text
        assert "⏭️ Skipped" in text
        assert "- **Confidence**: 92%" in text
        assert "## Suggestions" in text
        assert "## Code Quality Notes" in text
        assert "## Related Files Analyzed" in text

    def test_long_check_output_is_truncated(self):
        check = CheckResult(CheckKind.LINT, False, "e" * 6000, 10, name="linter")
        text = report.generate_verification_report(make_result(check_results=[check]))
        assert "e" * 5001 not in text
        assert "... (truncated)" in text

    @pytest.mark.parametrize("duration,expected", [
        (None, "N/A"),
        (450, "450ms"),
        (2300, "2.3s"),
        (125000, "2m 5.0s"),
    ])
    def test_format_duration(self, duration, expected):
        assert report.format_duration(duration) == expected

    def test_mode_is_reported(self):
        text = report.generate_verification_report(make_result(mode=VerificationMode.TDD, verified_by="tdd"))
        assert "**Mode**: tdd" in text
        assert "**Verified By**: tdd" in text
