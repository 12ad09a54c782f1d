"""Tests for unit and E2E test selection."""

import pytest

from foreman.models.capability import CapabilityProfile, E2ETemplates, SelectiveTestTemplates
from foreman.models.feature import Feature, TestRequirement
from foreman.verifier.test_selection import (
    E2EMode,
    TestMode,
    TestSelection,
    build_e2e_command,
    build_selective_test_command,
    determine_e2e_mode,
    discover_tests_for_feature,
    extract_module_from_path,
    map_source_to_test_files,
)


def feature(**kwargs):
    return Feature(id="auth.login", description="Login", acceptance=["works"], **kwargs)


class TestDiscoverTestsForFeature:
    def test_explicit_pattern_wins(self, tmp_path):
        selection = discover_tests_for_feature(tmp_path, feature(test_pattern="auth/**"), ["src/auth/login.ts"])

        assert selection.source == "explicit"
        assert selection.pattern == "auth/**"
        assert selection.confidence == 1.0

    def test_requirement_pattern_is_explicit(self, tmp_path):
        f = feature(unit_requirement=TestRequirement(required=True, pattern="tests/auth/*"))
        assert discover_tests_for_feature(tmp_path, f, []).pattern == "tests/auth/*"

    def test_existing_test_files_are_auto_detected(self, tmp_path):
        (tmp_path / "src" / "auth").mkdir(parents=True)
        (tmp_path / "src" / "auth" / "login.test.ts").write_text("")

        selection = discover_tests_for_feature(tmp_path, feature(), ["src/auth/login.ts", "README.md"])

        assert selection.source == "auto-detected"
        assert selection.test_files == ["src/auth/login.test.ts"]
        assert selection.confidence == 0.9

    def test_changed_test_file_is_selected_directly(self, tmp_path):
        (tmp_path / "tests").mkdir()
        (tmp_path / "tests" / "test_login.py").write_text("")

        selection = discover_tests_for_feature(tmp_path, feature(), ["tests/test_login.py"])

        assert selection.test_files == ["tests/test_login.py"]

    def test_module_fallback(self, tmp_path):
        selection = discover_tests_for_feature(tmp_path, feature(), ["src/billing/invoice.ts"])

        assert selection.source == "module-based"
        assert selection.pattern == "**/billing/**/*.test.*"
        assert selection.confidence == 0.6

    def test_nothing_changed(self, tmp_path):
        selection = discover_tests_for_feature(tmp_path, feature(), [])

        assert selection.source == "none"
        assert not selection.is_selective


class TestPathHelpers:
    def test_typescript_candidates(self):
        candidates = map_source_to_test_files("src/auth/login.ts")

        assert "src/auth/login.test.ts" in candidates
        assert "src/auth/__tests__/login.test.ts" in candidates
        assert "tests/auth/login.test.ts" in candidates

    def test_python_and_go_candidates(self):
        assert "tests/test_models.py" in map_source_to_test_files("app/models.py")
        assert "pkg/server_test.go" in map_source_to_test_files("pkg/server.go")

    @pytest.mark.parametrize("path,module", [
        ("src/auth/login.ts", "auth"),
        ("lib/core/index.js", "core"),
        ("docs/guide.md", "docs"),
        ("README.md", None),
        (".github/workflows/ci.yml", None),
    ])
    def test_extract_module(self, path, module):
        assert extract_module_from_path(path) == module


class TestSelectiveCommand:
    def test_templates_are_preferred(self):
        profile = CapabilityProfile(
            has_tests=True,
            test_command="pnpm test",
            test_templates=SelectiveTestTemplates("pnpm vitest run {files}", 'pnpm vitest run -t "{pattern}"'),
        )
        files = TestSelection("a.test.ts b.test.ts", "auto-detected", ["a.test.ts", "b.test.ts"], 0.9)
        pattern = TestSelection("login", "explicit", [], 1.0)

        assert build_selective_test_command(profile, files) == "pnpm vitest run a.test.ts b.test.ts"
        assert build_selective_test_command(profile, pattern) == 'pnpm vitest run -t "login"'

    @pytest.mark.parametrize("framework,expected", [
        ("vitest", 'npx vitest run --testNamePattern "login"'),
        ("jest", 'npx jest --testPathPattern "login"'),
        ("pytest", 'pytest -k "login"'),
        ("go", 'go test -run "login" ./...'),
    ])
    def test_framework_defaults(self, framework, expected):
        profile = CapabilityProfile(has_tests=True, test_command="run-tests", test_framework=framework)
        selection = TestSelection("login", "explicit", [], 1.0)
        assert build_selective_test_command(profile, selection) == expected

    def test_non_selective_uses_full_command(self):
        profile = CapabilityProfile(has_tests=True, test_command="make test")
        assert build_selective_test_command(profile, TestSelection(None, "none")) == "make test"

    def test_no_test_command(self):
        assert build_selective_test_command(CapabilityProfile(), TestSelection("x", "explicit")) is None


class TestE2E:
    @pytest.mark.parametrize("test_mode,has_tags,expected", [
        (TestMode.FULL, True, E2EMode.TAGS),
        (TestMode.FULL, False, E2EMode.FULL),
        (TestMode.QUICK, False, E2EMode.SMOKE),
        (TestMode.SKIP, False, E2EMode.SMOKE),
    ])
    def test_determine_mode(self, test_mode, has_tags, expected):
        assert determine_e2e_mode(test_mode, has_tags) == expected

    def test_commands(self):
        profile = CapabilityProfile(
            has_e2e=True,
            e2e_command="npx playwright test",
            e2e_templates=E2ETemplates(grep_template='npx playwright test --grep "{tags}"'),
        )

        assert build_e2e_command(profile, ["@auth"], E2EMode.TAGS) == 'npx playwright test --grep "@auth"'
        assert build_e2e_command(profile, [], E2EMode.SMOKE) == 'npx playwright test --grep "@smoke"'
        assert build_e2e_command(profile, [], E2EMode.FULL) == "npx playwright test"
        assert build_e2e_command(profile, ["@auth"], E2EMode.SKIP) is None

    def test_without_grep_template_runs_everything(self):
        profile = CapabilityProfile(has_e2e=True, e2e_command="npx cypress run")
        assert build_e2e_command(profile, ["@auth"], E2EMode.TAGS) == "npx cypress run"
