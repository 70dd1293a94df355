"""Real-time engagement tracking for social-proof notifications."""

__version__ = "0.1.0"
