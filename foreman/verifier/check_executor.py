#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Automated check execution.

Checks are built from a capability profile in a fixed order (test,
typecheck, lint, build, E2E) and run either one at a time or concurrently.
E2E checks are gated: they run only after every unit test check passed,
and never alongside each other.
"""

import asyncio
import pathlib
import shlex
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from foreman import config
from foreman.debug_logger import get_logger
from foreman.models.capability import CapabilityProfile
from foreman.models.verification import CheckDefinition, CheckKind, CheckResult
from foreman.terminal.formatting import Colors, colorize, create_bullet_item
from foreman.tools.command_runner import CommandResult, execute
from foreman.verifier.test_selection import (
    E2EMode,
    TestMode,
    build_e2e_command,
    describe_e2e_mode,
    determine_e2e_mode,
)


logger = get_logger()

CI_ENV = {"CI": "true"}
E2E_SKIPPED_OUTPUT = "Skipped: unit tests failed"

Runner = Callable[..., Awaitable[CommandResult]]


class ExecutionMode(str, Enum):
    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"


@dataclass
class CheckOptions:
    """How a verification should run its checks."""
    mode: ExecutionMode = ExecutionMode.SEQUENTIAL
    test_mode: TestMode = TestMode.FULL
    selective_test_command: Optional[str] = None
    selective_label: Optional[str] = None
    test_pattern: Optional[str] = None
    skip_e2e: bool = False
    e2e_tags: List[str] = field(default_factory=list)
    e2e_mode: Optional[E2EMode] = None
    use_init_script: bool = False
    init_script_path: Optional[pathlib.Path] = None
    timeout_ms: Optional[int] = None
    max_buffer_bytes: Optional[int] = None
    verbose: bool = False


def init_script_path(project_root: pathlib.Path) -> pathlib.Path:
    return config.metadata_dir(project_root) / config.INIT_SCRIPT_NAME


def build_init_script_check(project_root: pathlib.Path, options: CheckOptions) -> CheckDefinition:
    """Single check delegating every verification step to the init script."""
    script = options.init_script_path or init_script_path(project_root)
    command = f'"{script}" check'
    if options.test_mode == TestMode.QUICK:
        command += " --quick"
    elif options.test_mode == TestMode.FULL:
        command += " --full"
    if options.skip_e2e:
        command += " --skip-e2e"
    if options.test_mode == TestMode.QUICK and options.test_pattern:
        command += f" {shlex.quote(options.test_pattern)}"

    env = dict(CI_ENV)
    if options.e2e_tags:
        env["E2E_TAGS"] = ",".join(options.e2e_tags)
    return CheckDefinition(
        kind=CheckKind.INIT_SCRIPT,
        command=command,
        name=f"init script check ({options.test_mode.value})",
        env=env,
    )


def build_checks(
    project_root: pathlib.Path,
    profile: CapabilityProfile,
    options: CheckOptions,
) -> List[CheckDefinition]:
    """Build the ordered list of checks to run."""
    if options.use_init_script:
        return [build_init_script_check(project_root, options)]

    checks: List[CheckDefinition] = []

    if options.test_mode != TestMode.SKIP and profile.has_tests and profile.test_command:
        if options.test_mode == TestMode.QUICK and options.selective_test_command:
            checks.append(CheckDefinition(
                kind=CheckKind.TEST,
                command=options.selective_test_command,
                name=options.selective_label or "selective tests",
                env=dict(CI_ENV),
            ))
        else:
            checks.append(CheckDefinition(
                kind=CheckKind.TEST, command=profile.test_command, name="tests", env=dict(CI_ENV)
            ))

    if profile.has_type_check and profile.type_check_command:
        checks.append(CheckDefinition(CheckKind.TYPECHECK, profile.type_check_command, "type check"))
    if profile.has_lint and profile.lint_command:
        checks.append(CheckDefinition(CheckKind.LINT, profile.lint_command, "linter"))
    if profile.has_build and profile.build_command:
        checks.append(CheckDefinition(CheckKind.BUILD, profile.build_command, "build"))

    if not options.skip_e2e and profile.has_e2e and profile.e2e_command:
        e2e_mode = options.e2e_mode or determine_e2e_mode(options.test_mode, bool(options.e2e_tags))
        e2e_command = build_e2e_command(profile, options.e2e_tags, e2e_mode)
        if e2e_command:
            checks.append(CheckDefinition(
                kind=CheckKind.E2E,
                command=e2e_command,
                name=describe_e2e_mode(e2e_mode, options.e2e_tags),
                is_e2e=True,
                env=dict(CI_ENV),
            ))

    return checks


def _skipped_e2e(check: CheckDefinition) -> CheckResult:
    return CheckResult(
        kind=check.kind,
        success=False,
        output=E2E_SKIPPED_OUTPUT,
        duration_ms=0,
        name=check.name,
        command=check.command,
        skipped=True,
    )


class CheckExecutor:
    """Runs check definitions as subprocesses."""

    def __init__(self, runner: Runner = execute):
        self._runner = runner

    async def run_check(
        self,
        project_root: pathlib.Path,
        check: CheckDefinition,
        options: Optional[CheckOptions] = None,
    ) -> CheckResult:
        """Run one check; failures come back as ``success=False``."""
        options = options or CheckOptions()
        try:
            outcome = await self._runner(
                project_root,
                check.command,
                env_overlay=check.env or None,
                max_buffer_bytes=options.max_buffer_bytes or config.get_max_buffer_bytes(),
                timeout_ms=options.timeout_ms or config.get_check_timeout_ms(),
            )
        except Exception as e:
            logger.log_error("executor", e, {"check": check.name})
            return CheckResult(
                kind=check.kind,
                success=False,
                output=f"Check failed with error: {e}",
                name=check.name,
                command=check.command,
            )

        return CheckResult(
            kind=check.kind,
            success=outcome.success,
            output=outcome.combined_output,
            duration_ms=outcome.duration_ms,
            name=check.name,
            command=check.command,
        )

    async def run(
        self,
        project_root: pathlib.Path,
        profile: CapabilityProfile,
        options: Optional[CheckOptions] = None,
    ) -> List[CheckResult]:
        """Build and run all applicable checks.

        Args:
            project_root: Working directory for every check
            profile: Resolved capabilities of the project
            options: Execution mode, test scope and E2E filters

        Returns:
            One CheckResult per check, in declaration order.
        """
        options = options or CheckOptions()
        root = pathlib.Path(project_root)
        checks = build_checks(root, profile, options)
        if not checks:
            logger.info("[executor] no checks to run")
            return []

        logger.info(
            f"[executor] running {len(checks)} checks ({options.mode.value}): "
            f"{', '.join(check.name for check in checks)}"
        )

        unit_checks = [check for check in checks if not check.is_e2e]
        e2e_checks = [check for check in checks if check.is_e2e]

        if options.mode == ExecutionMode.PARALLEL:
            results = await self._run_parallel(root, unit_checks, options)
        else:
            results = []
            for check in unit_checks:
                result = await self.run_check(root, check, options)
                self._report(options, result)
                results.append(result)

        if e2e_checks:
            results.extend(await self._run_e2e(root, e2e_checks, results, options))
        return results

    async def _run_parallel(
        self,
        root: pathlib.Path,
        checks: List[CheckDefinition],
        options: CheckOptions,
    ) -> List[CheckResult]:
        settled = await asyncio.gather(
            *(self.run_check(root, check, options) for check in checks),
            return_exceptions=True,
        )
        results: List[CheckResult] = []
        for check, outcome in zip(checks, settled):
            if isinstance(outcome, BaseException):
                if isinstance(outcome, asyncio.CancelledError):
                    raise outcome
                logger.log_error("executor", outcome, {"check": check.name})
                outcome = CheckResult(
                    kind=check.kind,
                    success=False,
                    output=f"Check failed with error: {outcome}",
                    name=check.name,
                    command=check.command,
                )
            self._report(options, outcome)
            results.append(outcome)
        return results

    async def _run_e2e(
        self,
        root: pathlib.Path,
        e2e_checks: List[CheckDefinition],
        prior: List[CheckResult],
        options: CheckOptions,
    ) -> List[CheckResult]:
        unit_tests_passed = all(result.success for result in prior if result.kind == CheckKind.TEST)
        if not unit_tests_passed:
            logger.info("[executor] skipping E2E checks: unit tests failed")
            if options.verbose:
                print(colorize("   Skipping E2E tests (unit tests failed)", Colors.YELLOW))
            return [_skipped_e2e(check) for check in e2e_checks]

        results = []
        # E2E suites always run one at a time
        for check in e2e_checks:
            result = await self.run_check(root, check, options)
            self._report(options, result)
            results.append(result)
        return results

    @staticmethod
    def _report(options: CheckOptions, result: CheckResult) -> None:
        status = "passed" if result.success else "failed"
        logger.log_check_execution(result.name, result.command, result.success, result.duration_ms, result.output)
        if options.verbose:
            bullet = "check" if result.success else "cross"
            print(create_bullet_item(f"{result.name}: {status}", bullet, indent=3))
