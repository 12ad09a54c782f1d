#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Terminal output helpers for foreman."""

from foreman.terminal.formatting import (
    colorize, create_header, create_section, create_item,
    create_bullet_item, Colors, Symbols
)

__all__ = [
    "colorize",
    "create_header",
    "create_section",
    "create_item",
    "create_bullet_item",
    "Colors",
    "Symbols",
]
