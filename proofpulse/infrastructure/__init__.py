# ==============================================================================
# Infrastructure Adapters
# ==============================================================================
"""
Adapters for in-process state and external services (ports-and-adapters architecture).

This module contains concrete implementations the tracking services use:
- cache/ - In-memory TTL cache
- repositories/ - Store adapters (Valkey, PostgreSQL)
- geo.py - IP geolocation client
- session_tracker.py - Active session registry
"""

from proofpulse.infrastructure.cache import TTLCache
from proofpulse.infrastructure.geo import IPLocationClient
from proofpulse.infrastructure.repositories import (
    PostgreSQLMetricRepository,
    PostgreSQLNotificationRepository,
    PostgreSQLWebsiteRepository,
    PostgreSQLWebsiteStatsRepository,
    ValkeyMetricRepository,
    ValkeyNotificationRepository,
    ValkeyWebsiteRepository,
    ValkeyWebsiteStatsRepository,
    check_postgresql_connection,
    check_valkey_connection,
    get_valkey_client,
)
from proofpulse.infrastructure.session_tracker import SessionTracker

__all__ = [
    # Cache
    "TTLCache",
    # Geo
    "IPLocationClient",
    # Repositories
    "PostgreSQLMetricRepository",
    "PostgreSQLNotificationRepository",
    "PostgreSQLWebsiteRepository",
    "PostgreSQLWebsiteStatsRepository",
    "ValkeyMetricRepository",
    "ValkeyNotificationRepository",
    "ValkeyWebsiteRepository",
    "ValkeyWebsiteStatsRepository",
    "check_postgresql_connection",
    "check_valkey_connection",
    "get_valkey_client",
    # Sessions
    "SessionTracker",
]
