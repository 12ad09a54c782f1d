"""Persistence of verification results under ``ai/verification/``."""

from foreman.store.report import generate_verification_report
from foreman.store.verification_store import (
    VerificationStats,
    VerificationStore,
    clear_feature_results,
    get_last_verification,
    get_verification_history,
    get_verification_stats,
    save_verification_result,
)

__all__ = [
    "VerificationStats",
    "VerificationStore",
    "clear_feature_results",
    "generate_verification_report",
    "get_last_verification",
    "get_verification_history",
    "get_verification_stats",
    "save_verification_result",
]
