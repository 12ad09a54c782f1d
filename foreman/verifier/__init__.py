#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Check execution, agent analysis and verification orchestration."""

from foreman.verifier.analyzer import VerificationAnalyzer, read_related_files
from foreman.verifier.check_executor import (
    CheckExecutor,
    CheckOptions,
    ExecutionMode,
    build_checks,
    build_init_script_check,
)
from foreman.verifier.core import (
    FeatureVerifier,
    VerifyOptions,
    determine_verification_mode,
    verify_feature,
)
from foreman.verifier.parsing import ParsedVerification, apply_safety_net, parse_verification_response
from foreman.verifier.prompts import build_autonomous_prompt, build_verification_prompt
from foreman.verifier.results import (
    VerificationSummary,
    create_verification_summary,
    format_verification_result,
)
from foreman.verifier.tdd import verify_tdd
from foreman.verifier.test_selection import (
    E2EMode,
    TestMode,
    TestSelection,
    build_e2e_command,
    build_selective_test_command,
    determine_e2e_mode,
    discover_tests_for_feature,
)

__all__ = [
    "VerificationAnalyzer",
    "read_related_files",
    "CheckExecutor",
    "CheckOptions",
    "ExecutionMode",
    "build_checks",
    "build_init_script_check",
    "FeatureVerifier",
    "VerifyOptions",
    "determine_verification_mode",
    "verify_feature",
    "ParsedVerification",
    "apply_safety_net",
    "parse_verification_response",
    "build_autonomous_prompt",
    "build_verification_prompt",
    "VerificationSummary",
    "create_verification_summary",
    "format_verification_result",
    "verify_tdd",
    "E2EMode",
    "TestMode",
    "TestSelection",
    "build_e2e_command",
    "build_selective_test_command",
    "determine_e2e_mode",
    "discover_tests_for_feature",
]
