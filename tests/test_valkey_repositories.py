# ==============================================================================
# Tests for Valkey Repositories
# ==============================================================================
"""
Unit tests for the Valkey repository adapters using fakeredis.

Tests cover:
- Website lookups by id and API key
- Notification counters via HINCRBY
- Metric persistence and atomic impression claims
- Stats snapshot upsert
- Redis failures translated to TransientStoreError
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from proofpulse.core.errors import TransientStoreError
from proofpulse.core.models import CounterField, Metric, MetricType, Website, WebsiteStats
from proofpulse.infrastructure.repositories import ValkeyNotificationRepository


def make_metric(type_: MetricType = MetricType.IMPRESSION, session_id: str | None = "s1") -> Metric:
    return Metric(
        site_id="site-1",
        notification_id="notif-1",
        type=type_,
        session_id=session_id,
        is_bot=False,
        is_unique=True,
        timestamp=datetime(2026, 4, 2, 10, 0, tzinfo=timezone.utc),
    )


# ==============================================================================
# Websites
# ==============================================================================


class TestWebsiteRepository:
    """Tests for ValkeyWebsiteRepository."""

    def test_get(self, website_repo, website):
        """A saved website is found by id."""
        assert website_repo.get("site-1") == website

    def test_get_by_api_key(self, website_repo, website):
        """A saved website is found by API key."""
        assert website_repo.get_by_api_key("key-1") == website

    def test_missing(self, website_repo):
        """Unknown ids and keys return None."""
        assert website_repo.get("nope") is None
        assert website_repo.get_by_api_key("nope") is None

    def test_without_name(self, website_repo):
        """The optional name may be omitted."""
        website_repo.save(Website(id="site-9", api_key="key-9"))
        assert website_repo.get("site-9").name is None


# ==============================================================================
# Notifications
# ==============================================================================


class TestNotificationRepository:
    """Tests for ValkeyNotificationRepository."""

    def test_get(self, notification_repo, notification):
        """A saved notification is found with zero counters."""
        found = notification_repo.get("notif-1")
        assert found.site_id == "site-1"
        assert (found.impressions, found.clicks) == (0, 0)

    def test_increment_returns_new_value(self, notification_repo, notification):
        """Each increment returns the updated counter."""
        assert notification_repo.increment_counter("notif-1", CounterField.CLICKS) == 1
        assert notification_repo.increment_counter("notif-1", CounterField.CLICKS, 4) == 5
        assert notification_repo.get("notif-1").clicks == 5

    def test_counters_independent(self, notification_repo, notification):
        """Impressions and clicks are separate fields."""
        notification_repo.increment_counter("notif-1", CounterField.IMPRESSIONS)
        found = notification_repo.get("notif-1")
        assert (found.impressions, found.clicks) == (1, 0)

    def test_missing(self, notification_repo):
        """Unknown ids return None."""
        assert notification_repo.get("nope") is None


# ==============================================================================
# Metrics
# ==============================================================================


class TestMetricRepository:
    """Tests for ValkeyMetricRepository."""

    def test_save_and_list(self, metric_repo):
        """Saved metrics are listed in insertion order."""
        first = make_metric(session_id="s1")
        second = make_metric(MetricType.CLICK, session_id="s2")
        metric_repo.save(first)
        metric_repo.save(second)
        assert metric_repo.list_for_notification("notif-1") == [first, second]

    def test_claim_impression_once_per_pair(self, metric_repo):
        """Only the first claim for a (notification, session) pair succeeds."""
        assert metric_repo.claim_impression("notif-1", "s1") is True
        assert metric_repo.claim_impression("notif-1", "s1") is False
        assert metric_repo.claim_impression("notif-1", "s2") is True
        assert metric_repo.claim_impression("notif-2", "s1") is True

    def test_has_impression(self, metric_repo):
        """Claimed impressions are found by (notification, session)."""
        metric_repo.claim_impression("notif-1", "s1")
        assert metric_repo.has_impression("notif-1", "s1") is True
        assert metric_repo.has_impression("notif-1", "s2") is False
        assert metric_repo.has_impression("notif-2", "s1") is False

    def test_save_does_not_claim(self, metric_repo):
        """Saving a metric leaves the claim to claim_impression."""
        metric_repo.save(make_metric(session_id="s1"))
        metric_repo.save(make_metric(MetricType.CLICK, session_id="s1"))
        assert metric_repo.has_impression("notif-1", "s1") is False


# ==============================================================================
# Stats
# ==============================================================================


class TestStatsRepository:
    """Tests for ValkeyWebsiteStatsRepository."""

    def test_upsert_and_get(self, stats_repo):
        """A snapshot round-trips through the store."""
        stats = WebsiteStats(
            website_id="site-1",
            active_users=3,
            avg_scroll_percentage=50,
            users_by_country={"DE": 2, "US": 1},
            updated_at=datetime(2026, 4, 2, 10, 0, tzinfo=timezone.utc),
        )
        stats_repo.upsert(stats)
        assert stats_repo.get("site-1") == stats

    def test_upsert_overwrites(self, stats_repo):
        """A second upsert replaces the first."""
        stats_repo.upsert(WebsiteStats(website_id="site-1", active_users=3))
        stats_repo.upsert(WebsiteStats(website_id="site-1", active_users=1))
        assert stats_repo.get("site-1").active_users == 1

    def test_missing(self, stats_repo):
        """Unknown websites return None."""
        assert stats_repo.get("nope") is None


# ==============================================================================
# Failures
# ==============================================================================


class TestStoreErrors:
    """Tests for Redis failure translation."""

    def test_increment_failure(self):
        """A Redis connection error becomes TransientStoreError."""
        client = MagicMock()
        client.hincrby.side_effect = RedisConnectionError("connection refused")
        repo = ValkeyNotificationRepository(client)
        with pytest.raises(TransientStoreError, match="counter increment"):
            repo.increment_counter("notif-1", CounterField.CLICKS)

    def test_lookup_failure(self):
        """Read failures are translated too."""
        client = MagicMock()
        client.hgetall.side_effect = RedisConnectionError("connection refused")
        repo = ValkeyNotificationRepository(client)
        with pytest.raises(TransientStoreError):
            repo.get("notif-1")
