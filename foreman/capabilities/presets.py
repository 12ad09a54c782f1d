#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Heuristic capability detection from well-known manifest files."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from foreman.debug_logger import get_logger
from foreman.models.capability import (
    CapabilityProfile,
    CapabilitySource,
    E2ETemplates,
    SelectiveTestTemplates,
)


logger = get_logger()

BASE_CONFIDENCE = 0.7
CAPABILITY_BONUSES = {
    "tests": 0.1,
    "typecheck": 0.05,
    "lint": 0.05,
    "build": 0.05,
    "git": 0.05,
}

_ESLINT_CONFIGS = (".eslintrc.js", ".eslintrc.cjs", ".eslintrc.json", "eslint.config.js", "eslint.config.mjs")
_PLAYWRIGHT_CONFIGS = ("playwright.config.ts", "playwright.config.js", "playwright.config.mjs")
_CYPRESS_CONFIGS = ("cypress.config.ts", "cypress.config.js", "cypress.config.mjs")

_NODE_TEST_RUNNERS = (
    ("vitest", "npx vitest run", 'npx vitest run {files}', 'npx vitest run -t "{pattern}"'),
    ("jest", "npx jest", 'npx jest {files}', 'npx jest -t "{pattern}"'),
    ("mocha", "npx mocha", 'npx mocha {files}', 'npx mocha --grep "{pattern}"'),
)


@dataclass(frozen=True)
class PresetDetection:
    """Profile deduced from manifests, plus the files it was deduced from."""
    profile: CapabilityProfile
    tracked_files: List[str] = field(default_factory=list)


class _ProjectFiles:
    """Reads manifest files once and remembers which ones were consulted."""

    def __init__(self, root: Path):
        self.root = root
        self.consulted: List[str] = []
        self._text: Dict[str, Optional[str]] = {}

    def exists(self, name: str) -> bool:
        if (self.root / name).is_file():
            if name not in self.consulted:
                self.consulted.append(name)
            return True
        return False

    def any_exists(self, names: Tuple[str, ...]) -> Optional[str]:
        for name in names:
            if self.exists(name):
                return name
        return None

    def read(self, name: str) -> Optional[str]:
        if name not in self._text:
            content = None
            if self.exists(name):
                try:
                    content = (self.root / name).read_text(encoding="utf-8", errors="ignore")
                except OSError:
                    content = None
            self._text[name] = content
        return self._text[name]

    def contains(self, name: str, needle: str) -> bool:
        content = self.read(name)
        return bool(content and needle in content)


def _load_package_json(files: _ProjectFiles) -> Optional[Dict[str, Any]]:
    content = files.read("package.json")
    if content is None:
        return None
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def _detect_package_manager(files: _ProjectFiles) -> str:
    if files.exists("pnpm-lock.yaml"):
        return "pnpm"
    if files.exists("yarn.lock"):
        return "yarn"
    if files.exists("bun.lockb"):
        return "bun"
    return "npm"


def _is_placeholder_test_script(script: str) -> bool:
    if not script:
        return True
    lowered = script.lower()
    if "no test specified" in lowered:
        return True
    if "echo" in lowered and "test specified" in lowered and "exit 1" in lowered:
        return True
    return False


def _all_deps(package_data: Dict[str, Any]) -> Dict[str, Any]:
    deps: Dict[str, Any] = {}
    for section in ("dependencies", "devDependencies", "peerDependencies", "optionalDependencies"):
        data = package_data.get(section)
        if isinstance(data, dict):
            deps.update(data)
    return deps


def _scripts(package_data: Optional[Dict[str, Any]]) -> Dict[str, str]:
    scripts = (package_data or {}).get("scripts")
    if not isinstance(scripts, dict):
        return {}
    return {key: value for key, value in scripts.items() if isinstance(value, str)}


def _run_script(package_manager: str, script: str) -> str:
    if package_manager == "npm":
        return f"npm run {script}"
    return f"{package_manager} run {script}"


def _detect_tests(files: _ProjectFiles, pkg: Optional[Dict[str, Any]], package_manager: str):
    """Return (command, framework, templates) or None."""
    if pkg is not None:
        scripts = _scripts(pkg)
        deps = _all_deps(pkg)
        test_script = scripts.get("test", "")
        for runner, default_cmd, file_tpl, name_tpl in _NODE_TEST_RUNNERS:
            if runner in deps or runner in test_script:
                command = test_script if not _is_placeholder_test_script(test_script) else default_cmd
                return command, runner, SelectiveTestTemplates(file_tpl, name_tpl)
        if not _is_placeholder_test_script(test_script):
            test_cmd = "npm test" if package_manager == "npm" else f"{package_manager} test"
            return test_cmd, package_manager, None

    pytest_templates = SelectiveTestTemplates("pytest {files}", 'pytest -k "{pattern}"')
    if files.exists("pytest.ini") or files.contains("pyproject.toml", "[tool.pytest"):
        return "pytest", "pytest", pytest_templates
    if files.contains("setup.cfg", "[tool:pytest]"):
        return "pytest", "pytest", pytest_templates
    if files.exists("setup.py"):
        return "python -m pytest", "pytest", SelectiveTestTemplates(
            "python -m pytest {files}", 'python -m pytest -k "{pattern}"'
        )

    if files.exists("go.mod"):
        return "go test ./...", "go", SelectiveTestTemplates("go test {files}", 'go test -run "{pattern}" ./...')

    if files.exists("Cargo.toml"):
        return "cargo test", "cargo", SelectiveTestTemplates("cargo test --test {files}", 'cargo test "{pattern}"')

    return None


def _detect_typecheck(files: _ProjectFiles, pkg: Optional[Dict[str, Any]], package_manager: str) -> Optional[str]:
    if files.exists("tsconfig.json"):
        if "typecheck" in _scripts(pkg):
            return _run_script(package_manager, "typecheck")
        return "npx tsc --noEmit"
    if files.exists("mypy.ini") or files.contains("pyproject.toml", "[tool.mypy]"):
        return "mypy ."
    return None


def _detect_lint(files: _ProjectFiles, pkg: Optional[Dict[str, Any]], package_manager: str) -> Optional[str]:
    if pkg is not None:
        if "lint" in _scripts(pkg):
            return _run_script(package_manager, "lint")
        deps = _all_deps(pkg)
        if "eslint" in deps or files.any_exists(_ESLINT_CONFIGS):
            return "npx eslint ."
        if "@biomejs/biome" in deps or files.exists("biome.json"):
            return "npx biome lint ."

    if files.exists("ruff.toml") or files.contains("pyproject.toml", "[tool.ruff"):
        return "ruff check ."
    if files.exists(".flake8") or files.contains("pyproject.toml", "[tool.flake8]"):
        return "flake8 ."
    if files.exists(".golangci.yml") or files.exists(".golangci.yaml"):
        return "golangci-lint run"
    if files.exists("Cargo.toml"):
        return "cargo clippy"
    return None


def _detect_build(files: _ProjectFiles, pkg: Optional[Dict[str, Any]], package_manager: str) -> Optional[str]:
    if pkg is not None:
        if "build" in _scripts(pkg):
            return _run_script(package_manager, "build")
        if files.exists("tsconfig.json"):
            return "npx tsc"
    if files.exists("go.mod"):
        return "go build ./..."
    if files.exists("Cargo.toml"):
        return "cargo build"
    if files.exists("setup.py"):
        return "python setup.py build"
    return None


def _detect_e2e(files: _ProjectFiles, pkg: Optional[Dict[str, Any]]):
    """Return (command, framework, templates) or None."""
    deps = _all_deps(pkg) if pkg else {}
    if files.any_exists(_PLAYWRIGHT_CONFIGS) or "@playwright/test" in deps:
        return "npx playwright test", "playwright", E2ETemplates(
            grep_template='npx playwright test --grep "{tags}"',
            file_template="npx playwright test {files}",
        )
    if files.any_exists(_CYPRESS_CONFIGS) or "cypress" in deps:
        return "npx cypress run", "cypress", E2ETemplates(
            grep_template=None,
            file_template="npx cypress run --spec {files}",
        )
    return None


def _detect_languages(files: _ProjectFiles) -> List[str]:
    languages: List[str] = []
    if files.exists("package.json"):
        languages.append("javascript")
    if files.exists("tsconfig.json"):
        languages.append("typescript")
    if any(files.exists(name) for name in ("pyproject.toml", "setup.py", "requirements.txt", "pytest.ini")):
        languages.append("python")
    if files.exists("go.mod"):
        languages.append("go")
    if files.exists("Cargo.toml"):
        languages.append("rust")
    return languages


def compute_preset_confidence(
    languages: List[str],
    has_tests: bool,
    has_type_check: bool,
    has_lint: bool,
    has_build: bool,
    has_git: bool,
) -> float:
    """Base score for a recognised ecosystem plus a bonus per capability."""
    if not languages:
        return 0.0
    score = BASE_CONFIDENCE
    if has_tests:
        score += CAPABILITY_BONUSES["tests"]
    if has_type_check:
        score += CAPABILITY_BONUSES["typecheck"]
    if has_lint:
        score += CAPABILITY_BONUSES["lint"]
    if has_build:
        score += CAPABILITY_BONUSES["build"]
    if has_git:
        score += CAPABILITY_BONUSES["git"]
    return round(min(score, 1.0), 3)


def detect_preset(root: Path, has_git: bool = False) -> PresetDetection:
    """Deduce a capability profile from manifests under ``root``."""
    files = _ProjectFiles(Path(root))
    pkg = _load_package_json(files)
    package_manager = _detect_package_manager(files) if pkg is not None else "npm"

    tests = _detect_tests(files, pkg, package_manager)
    typecheck = _detect_typecheck(files, pkg, package_manager)
    lint = _detect_lint(files, pkg, package_manager)
    build = _detect_build(files, pkg, package_manager)
    e2e = _detect_e2e(files, pkg)
    languages = _detect_languages(files)

    confidence = compute_preset_confidence(
        languages,
        has_tests=tests is not None,
        has_type_check=typecheck is not None,
        has_lint=lint is not None,
        has_build=build is not None,
        has_git=has_git,
    )

    profile = CapabilityProfile(
        has_tests=tests is not None,
        test_command=tests[0] if tests else None,
        test_framework=tests[1] if tests else None,
        test_templates=tests[2] if tests else None,
        has_type_check=typecheck is not None,
        type_check_command=typecheck,
        has_lint=lint is not None,
        lint_command=lint,
        has_build=build is not None,
        build_command=build,
        has_e2e=e2e is not None,
        e2e_command=e2e[0] if e2e else None,
        e2e_framework=e2e[1] if e2e else None,
        e2e_templates=e2e[2] if e2e else None,
        has_git=has_git,
        languages=languages,
        source=CapabilitySource.PRESET,
        confidence=confidence,
    )
    logger.debug(f"[presets] {root}: languages={languages} confidence={confidence}")
    return PresetDetection(profile=profile, tracked_files=list(files.consulted))
