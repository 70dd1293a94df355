# ==============================================================================
# Engagement Service
# ==============================================================================
"""
Wires the tracking components together from settings.

The storage backend (Valkey or PostgreSQL) is picked by
``settings.storage.backend``. Background work (cache sweeps, session index
cleanup, periodic stats) starts with the service and stops on ``close()``.

Usage:
    with EngagementService.from_settings() as service:
        service.ingestor.ingest("site-1", {"sessionId": "s1", "url": "/"}, "203.0.113.7")
        service.aggregator.get_stats("site-1", refresh=True)
"""

import logging

import redis

from proofpulse.base.repositories import (
    MetricRepository,
    NotificationRepository,
    WebsiteRepository,
    WebsiteStatsRepository,
)
from proofpulse.core.errors import TransientStoreError
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
    get_valkey_client,
)
from proofpulse.infrastructure.session_tracker import SessionTracker
from proofpulse.tracking.aggregator import EngagementAggregator, StatsScheduler
from proofpulse.tracking.ingestion import EngagementIngestor, NotificationTrackingHandler
from proofpulse.tracking.metric_recorder import MetricRecorder
from proofpulse.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)


def build_repositories(
    settings: Settings, client: redis.Redis | None = None
) -> tuple[WebsiteRepository, NotificationRepository, MetricRepository, WebsiteStatsRepository]:
    """
    Create the repositories for the configured storage backend.

    Args:
        settings: Application settings
        client: Redis client shared by the Valkey repositories. If None and
            the backend is Valkey, one is created from settings.

    Returns:
        (websites, notifications, metrics, stats)

    Raises:
        TransientStoreError: A PostgreSQL connection could not be opened;
            connections already opened are closed first
    """
    backend = settings.storage.backend
    if backend == "valkey":
        client = client or get_valkey_client(settings)
        return (
            ValkeyWebsiteRepository(client),
            ValkeyNotificationRepository(client),
            ValkeyMetricRepository(client),
            ValkeyWebsiteStatsRepository(client),
        )
    if backend == "postgresql":
        repos = (
            PostgreSQLWebsiteRepository(settings),
            PostgreSQLNotificationRepository(settings),
            PostgreSQLMetricRepository(settings),
            PostgreSQLWebsiteStatsRepository(settings),
        )
        connected = []
        try:
            for repo in repos:
                repo.connect()
                connected.append(repo)
        except TransientStoreError:
            for repo in connected:
                repo.close()
            raise
        return repos
    raise ValueError(f"Unknown storage backend: {backend}")


class EngagementService:
    """Owns the tracker, recorder, aggregator and ingestion handlers."""

    def __init__(
        self,
        settings: Settings,
        website_repo: WebsiteRepository,
        notification_repo: NotificationRepository,
        metric_repo: MetricRepository,
        stats_repo: WebsiteStatsRepository,
        start_scheduler: bool = True,
    ):
        tracking = settings.tracking
        self._repos = (website_repo, notification_repo, metric_repo, stats_repo)

        self.tracker = SessionTracker(
            session_timeout_seconds=tracking.session_timeout_seconds,
            cleanup_interval_seconds=tracking.sweep_interval_seconds,
        )

        self._dedup_cache: TTLCache[tuple[str, str], bool] | None = None
        if tracking.impression_dedup_ttl_seconds > 0:
            self._dedup_cache = TTLCache(
                ttl_seconds=tracking.impression_dedup_ttl_seconds,
                sweep_interval_seconds=tracking.sweep_interval_seconds,
                name="impression-dedup",
            )

        self.geo_locator = IPLocationClient(settings.geo) if settings.geo.enabled else None

        self.recorder = MetricRecorder(
            metric_repo,
            notification_repo,
            website_repo=website_repo,
            dedup_cache=self._dedup_cache,
            fast_request_threshold_ms=tracking.fast_request_threshold_ms,
        )
        self.aggregator = EngagementAggregator(self.tracker, stats_repo)
        self.ingestor = EngagementIngestor(self.tracker, self.geo_locator)
        self.tracking_handler = NotificationTrackingHandler(
            self.recorder, website_repo, notification_repo
        )

        self.scheduler: StatsScheduler | None = None
        if start_scheduler:
            self.scheduler = StatsScheduler(self.aggregator, tracking.stats_interval_seconds)
            self.scheduler.start()

        logger.info(
            "Engagement service started (backend=%s, session_timeout=%ss)",
            settings.storage.backend,
            tracking.session_timeout_seconds,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        client: redis.Redis | None = None,
        start_scheduler: bool = True,
    ) -> "EngagementService":
        """Build a service and its repositories from settings."""
        settings = settings or get_settings()
        repos = build_repositories(settings, client)
        return cls(settings, *repos, start_scheduler=start_scheduler)

    def close(self) -> None:
        """Stop background work and release store connections."""
        if self.scheduler is not None:
            self.scheduler.stop()
            self.scheduler = None
        self.tracker.close()
        if self._dedup_cache is not None:
            self._dedup_cache.close()
        if self.geo_locator is not None:
            self.geo_locator.close()
        for repo in self._repos:
            close = getattr(repo, "close", None)
            if close is not None:
                close()
        logger.info("Engagement service stopped")

    def __enter__(self) -> "EngagementService":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
