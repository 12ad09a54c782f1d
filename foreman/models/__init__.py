#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Data models for foreman."""

from foreman.models.capability import (
    CacheRecord,
    CapabilityProfile,
    CapabilitySource,
    CustomRule,
    E2ETemplates,
    SelectiveTestTemplates,
    minimal_profile,
    utc_timestamp,
)
from foreman.models.feature import Feature, TestRequirement
from foreman.models.verification import (
    CheckDefinition,
    CheckKind,
    CheckResult,
    CriterionVerdict,
    Verdict,
    VerificationMode,
    VerificationResult,
)

__all__ = [
    "CacheRecord",
    "CapabilityProfile",
    "CapabilitySource",
    "CustomRule",
    "E2ETemplates",
    "SelectiveTestTemplates",
    "minimal_profile",
    "utc_timestamp",
    "Feature",
    "TestRequirement",
    "CheckDefinition",
    "CheckKind",
    "CheckResult",
    "CriterionVerdict",
    "Verdict",
    "VerificationMode",
    "VerificationResult",
]
