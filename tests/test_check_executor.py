"""Tests for building and running automated checks."""

import asyncio
import os

import pytest

from foreman.models.capability import CapabilityProfile, E2ETemplates
from foreman.models.verification import CheckDefinition, CheckKind
from foreman.tools.command_runner import CommandResult
from foreman.verifier.check_executor import (
    E2E_SKIPPED_OUTPUT,
    CheckExecutor,
    CheckOptions,
    ExecutionMode,
    build_checks,
    build_init_script_check,
)
from foreman.verifier.test_selection import E2EMode, TestMode


def full_profile(**overrides):
    values = dict(
        has_tests=True,
        test_command="npm test",
        has_type_check=True,
        type_check_command="npx tsc --noEmit",
        has_lint=True,
        lint_command="npm run lint",
        has_build=False,
        has_e2e=True,
        e2e_command="npx playwright test",
        e2e_templates=E2ETemplates(grep_template='npx playwright test --grep "{tags}"'),
    )
    values.update(overrides)
    return CapabilityProfile(**values)


class FakeRunner:
    """Records commands; any command listed in ``failing`` exits 1."""

    def __init__(self, failing=(), delay=0.0):
        self.failing = set(failing)
        self.delay = delay
        self.calls = []
        self.active = 0
        self.max_active = 0

    async def __call__(self, cwd, command, env_overlay=None, max_buffer_bytes=None, timeout_ms=None):
        self.calls.append((command, env_overlay))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.active -= 1
        ok = command not in self.failing
        return CommandResult(ok, f"ran {command}", "", 5, exit_code=0 if ok else 1)


class TestBuildChecks:
    def test_fixed_order(self, tmp_path):
        checks = build_checks(tmp_path, full_profile(has_build=True, build_command="npm run build"), CheckOptions())

        assert [check.kind for check in checks] == [
            CheckKind.TEST, CheckKind.TYPECHECK, CheckKind.LINT, CheckKind.BUILD, CheckKind.E2E,
        ]
        assert checks[0].env == {"CI": "true"}
        assert checks[-1].is_e2e

    def test_skip_test_mode_omits_unit_tests(self, tmp_path):
        checks = build_checks(tmp_path, full_profile(), CheckOptions(test_mode=TestMode.SKIP, skip_e2e=True))
        assert [check.kind for check in checks] == [CheckKind.TYPECHECK, CheckKind.LINT]

    def test_quick_mode_uses_selective_command(self, tmp_path):
        options = CheckOptions(
            test_mode=TestMode.QUICK,
            selective_test_command="npx vitest run src/auth.test.ts",
            selective_label="tests (auto-detected)",
        )
        checks = build_checks(tmp_path, full_profile(), options)

        assert checks[0].command == "npx vitest run src/auth.test.ts"
        assert checks[0].name == "tests (auto-detected)"

    def test_e2e_tags_use_grep_template(self, tmp_path):
        checks = build_checks(tmp_path, full_profile(), CheckOptions(e2e_tags=["@auth", "@login"]))

        e2e = checks[-1]
        assert e2e.command == 'npx playwright test --grep "@auth|@login"'
        assert e2e.name == "E2E tests (@auth, @login)"

    def test_quick_mode_without_tags_runs_smoke(self, tmp_path):
        checks = build_checks(tmp_path, full_profile(), CheckOptions(test_mode=TestMode.QUICK))
        assert checks[-1].command == 'npx playwright test --grep "@smoke"'

    def test_explicit_e2e_mode_wins(self, tmp_path):
        checks = build_checks(tmp_path, full_profile(), CheckOptions(test_mode=TestMode.QUICK, e2e_mode=E2EMode.FULL))
        assert checks[-1].command == "npx playwright test"

    def test_init_script_replaces_everything(self, tmp_path):
        script = tmp_path / "ai" / "init.sh"
        options = CheckOptions(
            use_init_script=True,
            init_script_path=script,
            test_mode=TestMode.QUICK,
            test_pattern="auth login",
            skip_e2e=True,
            e2e_tags=["@auth"],
        )
        checks = build_checks(tmp_path, full_profile(), options)

        assert len(checks) == 1
        check = checks[0]
        assert check.kind == CheckKind.INIT_SCRIPT
        assert check.command == f"\"{script}\" check --quick --skip-e2e 'auth login'"
        assert check.env == {"CI": "true", "E2E_TAGS": "@auth"}

    def test_init_script_full_mode(self, tmp_path):
        check = build_init_script_check(tmp_path, CheckOptions(test_mode=TestMode.FULL))
        assert check.command.endswith("init.sh\" check --full")


class TestCheckExecutor:
    @pytest.mark.asyncio
    async def test_parallel_mode_reports_every_check(self, tmp_path):
        runner = FakeRunner(failing={"npx tsc --noEmit"}, delay=0.05)
        executor = CheckExecutor(runner=runner)

        results = await executor.run(
            tmp_path, full_profile(has_e2e=False), CheckOptions(mode=ExecutionMode.PARALLEL)
        )

        assert [result.kind for result in results] == [CheckKind.TEST, CheckKind.TYPECHECK, CheckKind.LINT]
        assert [result.success for result in results] == [True, False, True]
        assert runner.max_active == 3

    @pytest.mark.asyncio
    async def test_sequential_mode_runs_one_at_a_time(self, tmp_path):
        runner = FakeRunner(delay=0.01)

        results = await CheckExecutor(runner=runner).run(tmp_path, full_profile(has_e2e=False))

        assert len(results) == 3
        assert runner.max_active == 1

    @pytest.mark.asyncio
    async def test_e2e_not_started_when_unit_tests_fail(self, tmp_path):
        runner = FakeRunner(failing={"npm test"})

        results = await CheckExecutor(runner=runner).run(tmp_path, full_profile())

        e2e = results[-1]
        assert e2e.kind == CheckKind.E2E
        assert e2e.skipped
        assert not e2e.success
        assert e2e.output == E2E_SKIPPED_OUTPUT
        assert "npx playwright test" not in [command for command, _ in runner.calls]

    @pytest.mark.asyncio
    async def test_parallel_mode_holds_e2e_until_tests_settle(self, tmp_path):
        runner = FakeRunner(failing={"npm test"}, delay=0.01)

        results = await CheckExecutor(runner=runner).run(
            tmp_path, full_profile(), CheckOptions(mode=ExecutionMode.PARALLEL)
        )

        assert [result.kind for result in results] == [
            CheckKind.TEST, CheckKind.TYPECHECK, CheckKind.LINT, CheckKind.E2E,
        ]
        assert not results[0].success
        assert results[-1].skipped
        assert not results[-1].success
        assert results[-1].output == E2E_SKIPPED_OUTPUT
        assert runner.max_active == 3
        assert "npx playwright test" not in [command for command, _ in runner.calls]

    @pytest.mark.asyncio
    async def test_e2e_runs_after_passing_tests(self, tmp_path):
        runner = FakeRunner(failing={"npm run lint"})

        results = await CheckExecutor(runner=runner).run(
            tmp_path, full_profile(), CheckOptions(mode=ExecutionMode.PARALLEL)
        )

        assert results[-1].kind == CheckKind.E2E
        assert results[-1].success
        assert runner.calls[-1][0] == "npx playwright test"

    @pytest.mark.asyncio
    async def test_test_checks_get_ci_env(self, tmp_path):
        runner = FakeRunner()

        await CheckExecutor(runner=runner).run(tmp_path, full_profile(has_e2e=False))

        envs = dict(runner.calls)
        assert envs["npm test"] == {"CI": "true"}
        assert envs["npm run lint"] is None

    @pytest.mark.asyncio
    async def test_no_checks(self, tmp_path):
        results = await CheckExecutor(runner=FakeRunner()).run(tmp_path, CapabilityProfile())
        assert results == []

    @pytest.mark.asyncio
    async def test_runner_exception_becomes_failed_result(self, tmp_path):
        async def broken(*args, **kwargs):
            raise RuntimeError("spawn exploded")

        check = CheckDefinition(CheckKind.LINT, "npm run lint", "linter")
        result = await CheckExecutor(runner=broken).run_check(tmp_path, check)

        assert not result.success
        assert "spawn exploded" in result.output

    @pytest.mark.asyncio
    @pytest.mark.skipif(os.name == "nt", reason="uses POSIX shell commands")
    async def test_real_commands(self, tmp_path):
        profile = CapabilityProfile(
            has_tests=True, test_command="echo all good",
            has_lint=True, lint_command="echo lint broke && exit 2",
        )

        results = await CheckExecutor().run(tmp_path, profile, CheckOptions(mode=ExecutionMode.PARALLEL))

        assert results[0].success
        assert "all good" in results[0].output
        assert not results[1].success
        assert "lint broke" in results[1].output
