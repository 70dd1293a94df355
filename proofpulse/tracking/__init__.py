# ==============================================================================
# Tracking Services
# ==============================================================================
"""
Services built on the core models and the infrastructure adapters.

- metric_recorder.py - Impression/click recording with dedup and counters
- aggregator.py - Website engagement snapshots
- ingestion.py - Activity pings and tracking calls
- service.py - Composition of all of the above from settings
"""

from proofpulse.tracking.aggregator import EngagementAggregator, StatsScheduler
from proofpulse.tracking.ingestion import EngagementIngestor, NotificationTrackingHandler
from proofpulse.tracking.metric_recorder import MetricRecorder
from proofpulse.tracking.service import EngagementService, build_repositories

__all__ = [
    "EngagementAggregator",
    "EngagementIngestor",
    "EngagementService",
    "MetricRecorder",
    "NotificationTrackingHandler",
    "StatsScheduler",
    "build_repositories",
]
