#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Test-only verification: the verdict comes from test runs, not an agent."""

import pathlib
from typing import List, Optional, Union

from foreman.debug_logger import get_logger
from foreman.models.capability import CapabilityProfile, utc_timestamp
from foreman.models.feature import Feature
from foreman.models.verification import (
    CheckDefinition,
    CheckKind,
    CheckResult,
    CriterionVerdict,
    Verdict,
    VerificationMode,
    VerificationResult,
)
from foreman.tools import git_ops
from foreman.verifier.check_executor import CI_ENV, E2E_SKIPPED_OUTPUT, CheckExecutor, CheckOptions
from foreman.verifier.test_selection import (
    E2EMode,
    TestSelection,
    build_e2e_command,
    build_selective_test_command,
    describe_e2e_mode,
)


logger = get_logger()

FAILED_CRITERION_CONFIDENCE = 0.9


def _criteria(feature: Feature, passed: bool, evidence: List[str]) -> List[CriterionVerdict]:
    if passed:
        reasoning = "All tests passed; criterion verified by the TDD workflow"
    else:
        reasoning = "Tests failed; criterion not verified"
    return [
        CriterionVerdict(
            index=index,
            criterion_text=criterion,
            satisfied=passed,
            confidence=1.0 if passed else FAILED_CRITERION_CONFIDENCE,
            reasoning=reasoning,
            evidence=list(evidence),
        )
        for index, criterion in enumerate(feature.acceptance)
    ]


async def verify_tdd(
    project_root: Union[str, pathlib.Path],
    feature: Feature,
    profile: CapabilityProfile,
    selection: TestSelection,
    executor: Optional[CheckExecutor] = None,
    skip_e2e: bool = False,
    e2e_tags: Optional[List[str]] = None,
    options: Optional[CheckOptions] = None,
) -> VerificationResult:
    """Verify a feature purely from its tests.

    The selected unit tests run first. E2E tests run afterwards when the
    feature requires them, the project has an E2E runner, and the unit
    tests passed. The verdict is ``pass`` when every run succeeded and
    ``fail`` otherwise. If no test command exists at all the result is
    ``needs_review``.

    Args:
        project_root: Root of the project checkout
        feature: Feature under verification
        profile: Resolved capabilities of the project
        selection: Tests chosen for the feature
        executor: Runs the commands
        skip_e2e: Never run E2E tests
        e2e_tags: Tags narrowing the E2E run, defaults to the feature's tags
        options: Timeouts and buffer limits for the runs

    Returns:
        VerificationResult with ``verified_by="tdd"``
    """
    root = pathlib.Path(project_root)
    executor = executor or CheckExecutor()
    options = options or CheckOptions()
    tags = e2e_tags if e2e_tags is not None else feature.effective_e2e_tags()

    results: List[CheckResult] = []
    command = build_selective_test_command(profile, selection)
    if command:
        label = "tests (TDD)" if not selection.is_selective else f"tests ({selection.source})"
        check = CheckDefinition(CheckKind.TEST, command, label, env=dict(CI_ENV))
        results.append(await executor.run_check(root, check, options))
    else:
        logger.warning(f"[tdd] no test command available for {feature.id}")

    if not skip_e2e and feature.requires_e2e_tests and profile.has_e2e:
        mode = E2EMode.TAGS if tags else E2EMode.FULL
        e2e_command = build_e2e_command(profile, tags, mode)
        if e2e_command:
            e2e_check = CheckDefinition(
                CheckKind.E2E, e2e_command, describe_e2e_mode(mode, tags), is_e2e=True, env=dict(CI_ENV)
            )
            if all(result.success for result in results):
                results.append(await executor.run_check(root, e2e_check, options))
            else:
                results.append(CheckResult(
                    kind=CheckKind.E2E,
                    success=False,
                    output=E2E_SKIPPED_OUTPUT,
                    name=e2e_check.name,
                    command=e2e_command,
                    skipped=True,
                ))

    evidence = selection.test_files or ([selection.pattern] if selection.pattern else [])
    failed = [result for result in results if not result.success]

    if not results:
        verdict = Verdict.NEEDS_REVIEW
        criteria = [
            CriterionVerdict(index, criterion, False, 0.0, "No tests were run")
            for index, criterion in enumerate(feature.acceptance)
        ]
        overall = "No test command available; tests could not be run"
    else:
        passed = not failed
        verdict = Verdict.PASS if passed else Verdict.FAIL
        criteria = _criteria(feature, passed, evidence)
        if passed:
            overall = f"All {len(results)} test run(s) passed"
        else:
            overall = f"{len(failed)} of {len(results)} test run(s) failed"

    logger.info(f"[tdd] {feature.id}: {verdict.value} ({overall})")
    return VerificationResult(
        feature_id=feature.id,
        timestamp=utc_timestamp(),
        commit_hash=await git_ops.get_commit_hash(root),
        check_results=results,
        criterion_verdicts=criteria,
        verdict=verdict,
        verified_by="tdd",
        overall_reasoning=overall,
        suggestions=["Review failing tests and fix the implementation"] if failed else [],
        diff_summary=f"TDD verification with {len(evidence)} test target(s)",
        related_files_analyzed=list(selection.test_files),
        mode=VerificationMode.TDD,
    )
