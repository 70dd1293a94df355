# ==============================================================================
# CLI Commands Module
# ==============================================================================
"""
CLI commands for proofpulse.

Commands are organized into separate modules:
- shared.py: Colors, icons and logging setup
- config.py, bot.py, stats.py, db.py: One command group each
"""

from proofpulse.cli.shared import C, Colors, I, Icons, configure_logging

__all__ = [
    "C",
    "Colors",
    "I",
    "Icons",
    "configure_logging",
]
