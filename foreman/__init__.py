#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""foreman - Feature Verification Engine."""

from foreman.versioning import get_version

__version__ = get_version()

# Configuration
from foreman.config import ROOT, DEFAULT_POLICY, VerificationPolicy, load_policy

# Core models
from foreman.models import (
    CapabilityProfile,
    CapabilitySource,
    CheckResult,
    CriterionVerdict,
    Feature,
    Verdict,
    VerificationMode,
    VerificationResult,
)

# Agents
from foreman.agents import AgentGateway, RetryHandler, classify_error

# Capability resolution
from foreman.capabilities import CapabilityResolver, format_capabilities

# Verification
from foreman.verifier import (
    CheckExecutor,
    FeatureVerifier,
    VerificationAnalyzer,
    VerifyOptions,
    determine_verification_mode,
    verify_feature,
)

# Result store
from foreman.store import VerificationStore

__all__ = [
    "__version__",
    "ROOT",
    "DEFAULT_POLICY",
    "VerificationPolicy",
    "load_policy",
    "CapabilityProfile",
    "CapabilitySource",
    "CheckResult",
    "CriterionVerdict",
    "Feature",
    "Verdict",
    "VerificationMode",
    "VerificationResult",
    "AgentGateway",
    "RetryHandler",
    "classify_error",
    "CapabilityResolver",
    "format_capabilities",
    "CheckExecutor",
    "FeatureVerifier",
    "VerificationAnalyzer",
    "VerifyOptions",
    "determine_verification_mode",
    "verify_feature",
    "VerificationStore",
]
