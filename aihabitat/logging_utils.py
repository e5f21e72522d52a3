"""Logging utilities for AI Habitat simulations.

Provides color-coded output so per-tick engine activity, notable events, and
isolated failures are easy to tell apart in a terminal.
"""

import os
from enum import Enum

from .config import Config, _env_flag


class Color(Enum):
    """ANSI color codes for terminal output."""

    # Colors for operation types
    BLUE = "\033[94m"      # Engine steps (decisions, tension, decay)
    MAGENTA = "\033[95m"   # Conflicts and dramatic moments
    RED = "\033[91m"       # Isolated failures
    GREEN = "\033[92m"     # Success (cooperation, synergy)
    CYAN = "\033[96m"      # Info/metadata

    # Formatting
    BOLD = "\033[1m"
    RESET = "\033[0m"


def colored(text: str, color: Color, bold: bool = False) -> str:
    """Wrap text in ANSI color codes if colors are enabled.

    Args:
        text: Text to colorize
        color: Color to apply
        bold: Whether to make text bold

    Returns:
        Colorized text if AIHABITAT_NO_COLOR is not set, otherwise plain text
    """
    if os.getenv("AIHABITAT_NO_COLOR"):
        return text

    prefix = color.value
    if bold:
        prefix = Color.BOLD.value + prefix

    return f"{prefix}{text}{Color.RESET.value}"


def verbose_enabled() -> bool:
    """Whether per-tick engine chatter should be printed.

    True when ``Config.VERBOSE`` was set at startup or ``AIHABITAT_VERBOSE`` is
    set now (the demos flip it at runtime).
    """
    return Config.VERBOSE or _env_flag("AIHABITAT_VERBOSE")


def log_deterministic(message: str) -> None:
    """Log an engine step (blue). Only printed when AIHABITAT_VERBOSE is set."""
    if verbose_enabled():
        print(colored(message, Color.BLUE))


def log_drama(message: str) -> None:
    """Log a conflict or dramatic moment (magenta)."""
    if verbose_enabled():
        print(colored(message, Color.MAGENTA))


def log_error(message: str) -> None:
    """Log an isolated failure (red). Always printed."""
    print(colored(message, Color.RED))


def log_success(message: str) -> None:
    """Log a success (green)."""
    if verbose_enabled():
        print(colored(message, Color.GREEN))


def log_info(message: str) -> None:
    """Log metadata/info (cyan)."""
    print(colored(message, Color.CYAN))


# Markers for operation types (color-blind accessible)
LOG_TAG_DETERMINISTIC = "[•]"  # Engine step
LOG_TAG_DRAMA = "[!!]"         # Conflict / dramatic moment
LOG_TAG_ERROR = "[!]"          # Isolated failure
LOG_TAG_SUCCESS = "[✓]"        # Success
LOG_TAG_INFO = "[i]"           # Information
