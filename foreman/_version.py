"""Centralized version constant for foreman."""

# Note: FOREMAN_GIT_COMMIT should be populated at build time so wheels/sdists
# carry the commit even when git metadata is unavailable at runtime.
FOREMAN_VERSION = "0.4.0"
FOREMAN_GIT_COMMIT = "unknown"

__all__ = ["FOREMAN_VERSION", "FOREMAN_GIT_COMMIT"]
