# ==============================================================================
# ProofPulse Utilities
# ==============================================================================
"""
Shared utilities for the engagement tracker.

This module exports configuration, schema setup and background task helpers.
"""

from proofpulse.utils.config import (
    GeoSettings,
    PostgresSettings,
    Settings,
    StorageSettings,
    TrackingSettings,
    ValkeySettings,
    get_settings,
)
from proofpulse.utils.db import (
    ensure_schema,
    render_schema_sql,
)
from proofpulse.utils.periodic import PeriodicTask

__all__ = [
    # Config
    "GeoSettings",
    "PostgresSettings",
    "Settings",
    "StorageSettings",
    "TrackingSettings",
    "ValkeySettings",
    "get_settings",
    # Database
    "ensure_schema",
    "render_schema_sql",
    # Background tasks
    "PeriodicTask",
]
