#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Terminal formatting utilities for capability and verification output."""

import sys


class Colors:
    """ANSI color codes."""
    RESET = '\033[0m'
    BOLD = '\033[1m'
    DIM = '\033[2m'

    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    CYAN = '\033[36m'

    BRIGHT_BLACK = '\033[90m'
    BRIGHT_RED = '\033[91m'
    BRIGHT_GREEN = '\033[92m'
    BRIGHT_YELLOW = '\033[93m'
    BRIGHT_CYAN = '\033[96m'
    BRIGHT_WHITE = '\033[97m'

    @staticmethod
    def is_tty():
        """Check if output is a TTY (supports colors)."""
        return sys.stdout.isatty()


class Symbols:
    """Unicode symbols for formatted output."""
    BULLET = '●'
    ARROW = '→'
    CHECK = '✓'
    CROSS = '✗'
    WARNING = '⚠'
    INFO = 'ℹ'
    SKIP = '○'
    BOX_H = '─'


def colorize(text: str, color: str, bold: bool = False) -> str:
    """Colorize text if the terminal supports it.

    Args:
        text: Text to colorize
        color: Color code from Colors class
        bold: Whether to make text bold

    Returns:
        Formatted text
    """
    if not Colors.is_tty():
        return text

    prefix = Colors.BOLD if bold else ''
    return f"{prefix}{color}{text}{Colors.RESET}"


def create_header(title: str, width: int = 60) -> str:
    separator = Symbols.BOX_H * width
    return f"\n{colorize(title, Colors.BRIGHT_CYAN, bold=True)}\n{colorize(separator, Colors.BRIGHT_BLACK)}"


def create_section(title: str) -> str:
    return f"\n{colorize(title, Colors.BRIGHT_WHITE, bold=True)}"


def create_item(label: str, value: str, indent: int = 2) -> str:
    """Create an aligned ``label: value`` line."""
    spaces = ' ' * indent
    return f"{spaces}{label + ':':<14} {value}"


def create_bullet_item(text: str, bullet_type: str = 'bullet', indent: int = 2) -> str:
    """Create a bullet point item.

    Args:
        text: Item text
        bullet_type: Type of bullet (bullet, check, cross, warning, info, skip)
        indent: Indentation level

    Returns:
        Formatted bullet item
    """
    spaces = ' ' * indent
    bullets = {
        'bullet': (Symbols.BULLET, Colors.CYAN),
        'check': (Symbols.CHECK, Colors.BRIGHT_GREEN),
        'cross': (Symbols.CROSS, Colors.BRIGHT_RED),
        'warning': (Symbols.WARNING, Colors.BRIGHT_YELLOW),
        'info': (Symbols.INFO, Colors.BRIGHT_CYAN),
        'skip': (Symbols.SKIP, Colors.BRIGHT_BLACK),
    }

    symbol, color = bullets.get(bullet_type, bullets['bullet'])
    return f"{spaces}{colorize(symbol, color)} {text}"


def verdict_color(verdict: str) -> str:
    """Return the color used for a verdict string."""
    return {
        "pass": Colors.BRIGHT_GREEN,
        "fail": Colors.BRIGHT_RED,
        "needs_review": Colors.BRIGHT_YELLOW,
    }.get(verdict, Colors.BRIGHT_BLACK)
