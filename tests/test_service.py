# ==============================================================================
# Tests for Engagement Service
# ==============================================================================
"""
End-to-end tests for EngagementService wired to fakeredis.

Tests cover:
- Building the Valkey-backed service from settings
- Opened PostgreSQL connections are closed when a later connect fails
- A ping, an impression and a click flowing through to stats and counters
- Optional components follow settings
- close() stops background work
"""

from unittest.mock import patch

import pytest

from proofpulse.core.errors import TransientStoreError
from proofpulse.core.models import Notification, Website
from proofpulse.infrastructure.repositories import (
    PostgreSQLMetricRepository,
    PostgreSQLNotificationRepository,
    PostgreSQLWebsiteRepository,
    PostgreSQLWebsiteStatsRepository,
)
from proofpulse.tracking.service import EngagementService, build_repositories
from proofpulse.utils.config import GeoSettings, Settings, StorageSettings, TrackingSettings


def make_settings(**tracking) -> Settings:
    return Settings(
        storage=StorageSettings(backend="valkey"),
        tracking=TrackingSettings(**tracking),
        geo=GeoSettings(enabled=False),
    )


@pytest.fixture()
def service(fake_redis):
    service = EngagementService.from_settings(
        make_settings(), client=fake_redis, start_scheduler=False
    )
    yield service
    service.close()


class TestBuildRepositories:
    """Tests for build_repositories()."""

    def test_valkey_shares_client(self, fake_redis):
        """All Valkey repositories use the given client."""
        repos = build_repositories(make_settings(), client=fake_redis)
        assert len(repos) == 4
        assert all(repo.client is fake_redis for repo in repos)

    def test_postgresql_connect_failure_closes_opened(self):
        """A failed connect closes the connections opened before it and re-raises."""
        settings = Settings(storage=StorageSettings(backend="postgresql"))
        with (
            patch.object(PostgreSQLWebsiteRepository, "connect") as website_connect,
            patch.object(PostgreSQLNotificationRepository, "connect") as notification_connect,
            patch.object(
                PostgreSQLMetricRepository, "connect", side_effect=TransientStoreError("down")
            ),
            patch.object(PostgreSQLWebsiteStatsRepository, "connect") as stats_connect,
            patch.object(PostgreSQLWebsiteRepository, "close") as website_close,
            patch.object(PostgreSQLNotificationRepository, "close") as notification_close,
            patch.object(PostgreSQLMetricRepository, "close") as metric_close,
        ):
            with pytest.raises(TransientStoreError):
                build_repositories(settings)

        website_connect.assert_called_once()
        notification_connect.assert_called_once()
        stats_connect.assert_not_called()
        website_close.assert_called_once()
        notification_close.assert_called_once()
        metric_close.assert_not_called()


class TestEngagementService:
    """Tests for the composed service."""

    def test_end_to_end(self, service, fake_redis):
        """Pings feed stats; tracking calls feed notification counters."""
        websites, notifications, _, _ = build_repositories(make_settings(), client=fake_redis)
        websites.save(Website(id="site-1", api_key="key-1"))
        notifications.save(Notification(id="notif-1", site_id="site-1"))

        service.ingestor.ingest(
            "site-1",
            {"sessionId": "s1", "url": "/", "metrics": {"scrollPercentage": 30}},
            "192.168.0.10",
        )
        for action in ("impression", "impression", "click"):
            service.tracking_handler.handle(
                {"apiKey": "key-1", "notificationId": "notif-1", "action": action, "sessionId": "s1"},
                user_agent="Mozilla/5.0 (Macintosh)",
            )

        stats = service.aggregator.get_stats("site-1", refresh=True)
        assert stats.active_users == 1
        assert stats.avg_scroll_percentage == 30

        counted = notifications.get("notif-1")
        assert (counted.impressions, counted.clicks) == (1, 1)

    def test_dedup_cache_follows_settings(self, fake_redis):
        """A zero dedup TTL disables the in-process cache."""
        with EngagementService.from_settings(
            make_settings(impression_dedup_ttl_seconds=0), client=fake_redis, start_scheduler=False
        ) as service:
            assert service._dedup_cache is None
            assert service.geo_locator is None

    def test_scheduler_stopped_on_close(self, fake_redis):
        """close() stops the stats scheduler."""
        service = EngagementService.from_settings(make_settings(), client=fake_redis)
        scheduler = service.scheduler
        assert scheduler.running
        service.close()
        assert not scheduler.running
