#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Exception types used inside foreman.

``FeatureVerifier.verify`` and ``CapabilityResolver.resolve`` catch these and
turn them into result objects; lower-level helpers let them propagate.
"""


class ForemanError(Exception):
    """Base class for foreman errors."""


class CacheError(ForemanError):
    """The capability cache is missing, unreadable, or malformed."""


class ResponseParseError(ForemanError):
    """An agent response could not be turned into a structured object."""


class StoreError(ForemanError):
    """A verification record could not be written or located."""
