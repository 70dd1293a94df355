# ==============================================================================
# Store Repository Adapters
# ==============================================================================
"""
Store adapters implementing the repository interfaces from base/repositories.py.

Currently supported:
- Valkey/Redis (valkey.py)
- PostgreSQL (postgresql.py)
"""

from proofpulse.infrastructure.repositories.postgresql import (
    PostgreSQLMetricRepository,
    PostgreSQLNotificationRepository,
    PostgreSQLWebsiteRepository,
    PostgreSQLWebsiteStatsRepository,
    check_postgresql_connection,
)
from proofpulse.infrastructure.repositories.valkey import (
    ValkeyMetricRepository,
    ValkeyNotificationRepository,
    ValkeyWebsiteRepository,
    ValkeyWebsiteStatsRepository,
    check_valkey_connection,
    get_valkey_client,
)

__all__ = [
    # PostgreSQL
    "PostgreSQLMetricRepository",
    "PostgreSQLNotificationRepository",
    "PostgreSQLWebsiteRepository",
    "PostgreSQLWebsiteStatsRepository",
    "check_postgresql_connection",
    # Valkey
    "ValkeyMetricRepository",
    "ValkeyNotificationRepository",
    "ValkeyWebsiteRepository",
    "ValkeyWebsiteStatsRepository",
    "check_valkey_connection",
    "get_valkey_client",
]
