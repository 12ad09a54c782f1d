#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Feature verification orchestration.

Resolver -> check executor -> analyzer (or the TDD path) -> result store.
"""

import asyncio
import dataclasses
import pathlib
from dataclasses import dataclass
from typing import List, Optional, Union

from foreman.agents.gateway import AgentGateway
from foreman.capabilities.resolver import CapabilityResolver
from foreman.config import DEFAULT_POLICY, VerificationPolicy, load_policy
from foreman.debug_logger import get_logger
from foreman.errors import ForemanError
from foreman.models.capability import CapabilityProfile
from foreman.models.feature import Feature
from foreman.models.verification import CheckResult, VerificationMode, VerificationResult
from foreman.store.verification_store import VerificationStore
from foreman.terminal.formatting import Colors, colorize
from foreman.tools import git_ops
from foreman.tools.git_ops import GitDiff
from foreman.verifier.analyzer import VerificationAnalyzer
from foreman.verifier.check_executor import CheckExecutor, CheckOptions, ExecutionMode, init_script_path
from foreman.verifier.results import format_verification_result
from foreman.verifier.tdd import verify_tdd
from foreman.verifier.test_selection import (
    E2EMode,
    TestMode,
    TestSelection,
    build_selective_test_command,
    discover_tests_for_feature,
)


logger = get_logger()

TDD_MODE = "tdd"
AI_MODE = "ai"


def determine_verification_mode(feature: Feature, strict_tdd: bool = False) -> str:
    """Return ``"tdd"`` when tests decide the verdict, otherwise ``"ai"``."""
    if strict_tdd or feature.requires_unit_tests or feature.requires_e2e_tests:
        return TDD_MODE
    return AI_MODE


@dataclass
class VerifyOptions:
    """Knobs for a single feature verification."""
    verbose: bool = False
    skip_checks: bool = False
    test_mode: TestMode = TestMode.FULL
    test_pattern: Optional[str] = None
    skip_e2e: bool = False
    e2e_tags: Optional[List[str]] = None
    e2e_mode: Optional[E2EMode] = None
    autonomous: bool = False
    parallel: bool = False
    strict_tdd: bool = False
    force_capabilities: bool = False
    save: bool = True
    timeout_ms: Optional[int] = None


class FeatureVerifier:
    """Wires the resolver, executor, analyzer and store together."""

    def __init__(
        self,
        resolver: Optional[CapabilityResolver] = None,
        executor: Optional[CheckExecutor] = None,
        analyzer: Optional[VerificationAnalyzer] = None,
        gateway: Optional[AgentGateway] = None,
        policy: VerificationPolicy = DEFAULT_POLICY,
    ):
        self.policy = policy
        self.gateway = gateway
        self.resolver = resolver or CapabilityResolver(gateway=gateway, policy=policy)
        self.executor = executor or CheckExecutor()
        self.analyzer = analyzer or VerificationAnalyzer(gateway=gateway, policy=policy)

    async def verify(
        self,
        project_root: Union[str, pathlib.Path],
        feature: Feature,
        options: Optional[VerifyOptions] = None,
    ) -> VerificationResult:
        """Verify one feature and persist the result.

        Args:
            project_root: Root of the project checkout
            feature: Feature to verify
            options: Test scope, E2E filters, analysis mode and persistence

        Returns:
            The VerificationResult. Storage failures are logged, not raised.
        """
        options = options or VerifyOptions()
        root = pathlib.Path(project_root)
        if options.test_pattern:
            feature = dataclasses.replace(feature, test_pattern=options.test_pattern)

        mode = determine_verification_mode(feature, options.strict_tdd)
        logger.log("verifier", "start", {"feature": feature.id, "mode": mode, "test_mode": options.test_mode.value})
        if options.verbose:
            print(colorize(f"\n   Verifying feature: {feature.id} ({mode.upper()})", Colors.BRIGHT_WHITE, bold=True))

        needs_diff = not options.autonomous or options.test_mode == TestMode.QUICK or mode == TDD_MODE
        profile, diff = await asyncio.gather(
            self.resolver.resolve(root, force=options.force_capabilities, verbose=options.verbose),
            git_ops.get_diff_for_verification(root) if needs_diff else _no_diff(),
        )

        if mode == TDD_MODE and profile.has_tests:
            selection = discover_tests_for_feature(root, feature, diff.files if diff else [])
            result = await verify_tdd(
                root,
                feature,
                profile,
                selection,
                executor=self.executor,
                skip_e2e=options.skip_e2e,
                e2e_tags=options.e2e_tags,
                options=CheckOptions(verbose=options.verbose),
            )
        else:
            if mode == TDD_MODE:
                logger.warning(f"[verifier] {feature.id} requires tests but none were detected; using AI analysis")
            check_results = await self._run_checks(root, feature, profile, diff, options)
            analysis_mode = VerificationMode.AUTONOMOUS if options.autonomous else VerificationMode.DIFF
            result = await self.analyzer.analyze(
                root,
                feature,
                check_results,
                mode=analysis_mode,
                diff=diff if analysis_mode == VerificationMode.DIFF else None,
                timeout_ms=options.timeout_ms,
                verbose=options.verbose,
            )

        logger.log_verdict(result.feature_id, result.verdict.value, result.verified_by, {
            "mode": result.mode.value,
            "satisfied": result.satisfied_count,
            "criteria": len(result.criterion_verdicts),
        })
        if options.save:
            self._save(root, result)
        if options.verbose:
            print(format_verification_result(result, verbose=True))
        return result

    async def _run_checks(
        self,
        root: pathlib.Path,
        feature: Feature,
        profile: CapabilityProfile,
        diff: Optional[GitDiff],
        options: VerifyOptions,
    ) -> List[CheckResult]:
        if options.skip_checks:
            return []

        script = init_script_path(root)
        use_init_script = script.is_file()
        if use_init_script:
            logger.info(f"[verifier] delegating checks to {script}")

        selection: Optional[TestSelection] = None
        selective_command = None
        if options.test_mode == TestMode.QUICK:
            selection = discover_tests_for_feature(root, feature, diff.files if diff else [])
            selective_command = build_selective_test_command(profile, selection)
            logger.info(f"[verifier] test selection: {selection.source} ({selection.pattern})")

        tags = options.e2e_tags if options.e2e_tags is not None else feature.effective_e2e_tags()
        check_options = CheckOptions(
            mode=ExecutionMode.PARALLEL if options.parallel else ExecutionMode.SEQUENTIAL,
            test_mode=options.test_mode,
            selective_test_command=selective_command,
            selective_label=f"tests ({selection.source})" if selection and selection.is_selective else None,
            test_pattern=selection.pattern if selection else None,
            skip_e2e=options.skip_e2e,
            e2e_tags=list(tags),
            e2e_mode=options.e2e_mode,
            use_init_script=use_init_script,
            init_script_path=script if use_init_script else None,
            verbose=options.verbose,
        )
        return await self.executor.run(root, profile, check_options)

    @staticmethod
    def _save(root: pathlib.Path, result: VerificationResult) -> None:
        try:
            run_number = VerificationStore(root).save(result)
            logger.debug(f"[verifier] stored {result.feature_id} run {run_number}")
        except (ForemanError, OSError) as e:
            logger.log_error("verifier", e, {"feature": result.feature_id, "stage": "save"})


async def _no_diff() -> Optional[GitDiff]:
    return None


async def verify_feature(
    project_root: Union[str, pathlib.Path],
    feature: Feature,
    options: Optional[VerifyOptions] = None,
    gateway: Optional[AgentGateway] = None,
) -> VerificationResult:
    """Verify a feature with the project's policy from ``ai/foreman.yaml``."""
    policy = load_policy(pathlib.Path(project_root))
    verifier = FeatureVerifier(gateway=gateway, policy=policy)
    return await verifier.verify(project_root, feature, options)
