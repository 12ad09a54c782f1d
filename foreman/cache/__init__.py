#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Caching primitives for foreman."""

from foreman.cache.base import CacheEntry, TTLCache

__all__ = ["CacheEntry", "TTLCache"]
