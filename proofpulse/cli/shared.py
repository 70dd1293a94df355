# ==============================================================================
# Shared Utilities for CLI Commands
# ==============================================================================
"""
Shared helpers used across CLI command modules.

This module provides:
- ANSI color codes and status icons
- Logging setup from settings
"""

import logging

from proofpulse.utils.config import Settings


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    CYAN = "\033[36m"
    WHITE = "\033[37m"

    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"


class Icons:
    """Status icons using Unicode symbols."""

    CHECK = "✓"
    CROSS = "✗"
    WARN = "!"
    BULLET = "•"


# Module-level aliases for convenience
C, I = Colors, Icons


def configure_logging(settings: Settings) -> None:
    """Configure root logging from settings (DEBUG when debug mode is on)."""
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    if settings.debug:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def yes_no(value: bool) -> str:
    """Colored yes/no marker."""
    if value:
        return f"{C.BRIGHT_RED}{I.CHECK} yes{C.RESET}"
    return f"{C.BRIGHT_GREEN}{I.CROSS} no{C.RESET}"
