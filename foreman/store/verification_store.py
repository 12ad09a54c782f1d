#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Append-only store of verification runs.

Layout under ``<root>/ai/verification/``::

    index.json                 per-feature summaries
    <featureId>/001.json       full result of run 1, plus ``runNumber``
    <featureId>/001.md         markdown report of run 1

Run files are created exclusively and never rewritten. Only ``index.json``
is replaced on every save.
"""

import json
import pathlib
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from foreman import config
from foreman.debug_logger import get_logger
from foreman.errors import StoreError
from foreman.models.capability import utc_timestamp
from foreman.models.verification import Verdict, VerificationResult
from foreman.store.report import format_run_number, generate_verification_report
from foreman.tools.file_utils import write_json_atomic, write_text_exclusive


logger = get_logger()

INDEX_FILENAME = "index.json"
_RUN_FILE_RE = re.compile(r"^(\d+)\.json$")
_MAX_CLAIM_ATTEMPTS = 100


@dataclass(frozen=True)
class VerificationStats:
    total: int = 0
    passing: int = 0
    failing: int = 0
    needs_review: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "passing": self.passing,
            "failing": self.failing,
            "needsReview": self.needs_review,
        }


def _empty_index() -> Dict[str, Any]:
    return {
        "version": config.VERIFICATION_INDEX_VERSION,
        "updatedAt": utc_timestamp(),
        "features": {},
    }


class VerificationStore:
    """Reads and writes verification runs for one project."""

    def __init__(self, project_root: Union[str, pathlib.Path]):
        self.project_root = pathlib.Path(project_root)
        self.store_dir = config.metadata_dir(self.project_root) / config.VERIFICATION_DIRNAME
        self.index_path = self.store_dir / INDEX_FILENAME

    def _feature_dir(self, feature_id: str) -> pathlib.Path:
        if not feature_id or feature_id in (".", "..") or "/" in feature_id or "\\" in feature_id:
            raise StoreError(f"invalid feature id for storage: {feature_id!r}")
        return self.store_dir / feature_id

    def load_index(self) -> Dict[str, Any]:
        """Load ``index.json``; a missing or unreadable index is empty."""
        if not self.index_path.exists():
            return _empty_index()
        try:
            data = json.loads(self.index_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"[store] ignoring unreadable index {self.index_path}: {e}")
            return _empty_index()
        if not isinstance(data, dict) or not isinstance(data.get("features"), dict):
            return _empty_index()
        return data

    def _save_index(self, index: Dict[str, Any]) -> None:
        index["version"] = config.VERIFICATION_INDEX_VERSION
        index["updatedAt"] = utc_timestamp()
        write_json_atomic(self.index_path, index)

    def _existing_run_numbers(self, feature_id: str) -> List[int]:
        feature_dir = self._feature_dir(feature_id)
        if not feature_dir.is_dir():
            return []
        numbers = []
        for entry in feature_dir.iterdir():
            match = _RUN_FILE_RE.match(entry.name)
            if match:
                numbers.append(int(match.group(1)))
        return sorted(numbers)

    def next_run_number(self, feature_id: str, index: Optional[Dict[str, Any]] = None) -> int:
        index = index if index is not None else self.load_index()
        summary = index["features"].get(feature_id) or {}
        latest_indexed = summary.get("latestRun") if isinstance(summary.get("latestRun"), int) else 0
        existing = self._existing_run_numbers(feature_id)
        return max([latest_indexed, *existing]) + 1

    def save(self, result: VerificationResult) -> int:
        """Persist a run and update the index.

        Returns:
            The run number assigned to ``result``.

        Raises:
            StoreError: If the feature id is unusable as a directory name or
                no free run number could be claimed.
        """
        feature_dir = self._feature_dir(result.feature_id)
        index = self.load_index()
        run_number = self.next_run_number(result.feature_id, index)

        for _ in range(_MAX_CLAIM_ATTEMPTS):
            record = {"runNumber": run_number, **result.to_dict()}
            json_path = feature_dir / f"{format_run_number(run_number)}.json"
            try:
                write_text_exclusive(json_path, json.dumps(record, indent=2, ensure_ascii=False) + "\n")
                break
            except FileExistsError:
                run_number += 1
        else:
            raise StoreError(f"could not claim a run number for {result.feature_id}")

        report_path = feature_dir / f"{format_run_number(run_number)}.md"
        try:
            write_text_exclusive(report_path, generate_verification_report(result, run_number))
        except FileExistsError:
            logger.warning(f"[store] report {report_path} already exists; leaving it untouched")

        self._update_summary(index, result, run_number)
        self._save_index(index)
        logger.info(f"[store] saved run {run_number} for {result.feature_id} ({result.verdict.value})")
        return run_number

    @staticmethod
    def _update_summary(index: Dict[str, Any], result: VerificationResult, run_number: int) -> None:
        features = index["features"]
        summary = features.get(result.feature_id)
        if not isinstance(summary, dict):
            summary = {
                "featureId": result.feature_id,
                "totalRuns": 0,
                "passCount": 0,
                "failCount": 0,
            }
            features[result.feature_id] = summary

        summary["latestRun"] = run_number
        summary["latestTimestamp"] = result.timestamp
        summary["latestVerdict"] = result.verdict.value
        summary["totalRuns"] = int(summary.get("totalRuns") or 0) + 1
        if result.verdict == Verdict.PASS:
            summary["passCount"] = int(summary.get("passCount") or 0) + 1
        elif result.verdict == Verdict.FAIL:
            summary["failCount"] = int(summary.get("failCount") or 0) + 1

    def _load_run(self, path: pathlib.Path) -> Optional[VerificationResult]:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return VerificationResult.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"[store] skipping unreadable run {path}: {e}")
            return None

    def get_last(self, feature_id: str) -> Optional[VerificationResult]:
        """Most recent result for a feature, or None if it was never verified."""
        summary = self.load_index()["features"].get(feature_id)
        if not isinstance(summary, dict) or not isinstance(summary.get("latestRun"), int):
            return None
        path = self._feature_dir(feature_id) / f"{format_run_number(summary['latestRun'])}.json"
        if not path.exists():
            return None
        return self._load_run(path)

    def get_history(self, feature_id: str) -> List[VerificationResult]:
        """All stored runs for a feature, oldest first."""
        feature_dir = self._feature_dir(feature_id)
        history = []
        for number in self._existing_run_numbers(feature_id):
            result = self._load_run(feature_dir / f"{format_run_number(number)}.json")
            if result is not None:
                history.append(result)
        return history

    def get_summary(self, feature_id: str) -> Optional[Dict[str, Any]]:
        summary = self.load_index()["features"].get(feature_id)
        return dict(summary) if isinstance(summary, dict) else None

    def get_stats(self) -> VerificationStats:
        """Count features by their latest verdict."""
        summaries = [s for s in self.load_index()["features"].values() if isinstance(s, dict)]
        verdicts = [s.get("latestVerdict") for s in summaries]
        return VerificationStats(
            total=len(summaries),
            passing=verdicts.count(Verdict.PASS.value),
            failing=verdicts.count(Verdict.FAIL.value),
            needs_review=verdicts.count(Verdict.NEEDS_REVIEW.value),
        )

    def clear_feature(self, feature_id: str) -> bool:
        """Remove a feature from the index.

        Run files stay on disk as history; later runs continue numbering
        after them. Returns True if the feature was indexed.
        """
        index = self.load_index()
        if feature_id not in index["features"]:
            return False
        del index["features"][feature_id]
        self._save_index(index)
        logger.info(f"[store] cleared index entry for {feature_id}")
        return True


def save_verification_result(project_root: Union[str, pathlib.Path], result: VerificationResult) -> int:
    return VerificationStore(project_root).save(result)


def get_last_verification(project_root: Union[str, pathlib.Path], feature_id: str) -> Optional[VerificationResult]:
    return VerificationStore(project_root).get_last(feature_id)


def get_verification_history(project_root: Union[str, pathlib.Path], feature_id: str) -> List[VerificationResult]:
    return VerificationStore(project_root).get_history(feature_id)


def get_verification_stats(project_root: Union[str, pathlib.Path]) -> VerificationStats:
    return VerificationStore(project_root).get_stats()


def clear_feature_results(project_root: Union[str, pathlib.Path], feature_id: str) -> bool:
    return VerificationStore(project_root).clear_feature(feature_id)
