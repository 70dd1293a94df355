# ==============================================================================
# Shared Test Fixtures
# ==============================================================================
"""
Pytest fixtures shared across all test modules.

Provides:
- A manually advanced clock for expiry tests
- fakeredis-backed Valkey repositories on a per-test server
- A seeded website and notification
"""

import fakeredis
import pytest

from proofpulse.core.models import Notification, Website
from proofpulse.infrastructure.repositories import (
    ValkeyMetricRepository,
    ValkeyNotificationRepository,
    ValkeyWebsiteRepository,
    ValkeyWebsiteStatsRepository,
)


class FakeClock:
    """Callable time source that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock():
    """A FakeClock starting at a fixed epoch time."""
    return FakeClock()


@pytest.fixture()
def fake_server():
    """One fakeredis server; clients built on it share data like separate processes would."""
    return fakeredis.FakeServer()


@pytest.fixture()
def fake_redis(fake_server):
    """A clean fakeredis instance for each test.

    Uses decode_responses=True to match the real Valkey client.
    """
    client = fakeredis.FakeRedis(server=fake_server, decode_responses=True)
    yield client
    client.flushall()
    client.close()


@pytest.fixture()
def website_repo(fake_redis):
    return ValkeyWebsiteRepository(fake_redis)


@pytest.fixture()
def notification_repo(fake_redis):
    return ValkeyNotificationRepository(fake_redis)


@pytest.fixture()
def metric_repo(fake_redis):
    return ValkeyMetricRepository(fake_redis)


@pytest.fixture()
def stats_repo(fake_redis):
    return ValkeyWebsiteStatsRepository(fake_redis)


@pytest.fixture()
def website(website_repo):
    """Website 'site-1' with API key 'key-1'."""
    website = Website(id="site-1", api_key="key-1", name="Example Shop")
    website_repo.save(website)
    return website


@pytest.fixture()
def notification(notification_repo, website):
    """Notification 'notif-1' owned by 'site-1', counters at zero."""
    notification = Notification(id="notif-1", site_id=website.id)
    notification_repo.save(notification)
    return notification
