# ==============================================================================
# Base Abstract Classes
# ==============================================================================
"""
Abstract base classes defining loose contracts for the ports-and-adapters architecture.

Concrete adapters live in infrastructure/; the tracking services depend
only on these interfaces.
"""

from proofpulse.base.cache import Cache
from proofpulse.base.geo import GeoLocator
from proofpulse.base.repositories import (
    MetricRepository,
    NotificationRepository,
    WebsiteRepository,
    WebsiteStatsRepository,
)

__all__ = [
    "Cache",
    "GeoLocator",
    "MetricRepository",
    "NotificationRepository",
    "WebsiteRepository",
    "WebsiteStatsRepository",
]
