# ==============================================================================
# Valkey Repository Implementations
# ==============================================================================
"""
Valkey/Redis implementations of the repository interfaces.

Key layout:
- website:{id}                      Hash with website fields
- website:api_key:{api_key}         String -> website id
- notification:{id}                 Hash with site_id and counters
- metrics:notification:{id}         List of metric JSON documents
- metrics:impressions:{id}          Set of session ids that claimed an impression
- stats:website:{id}                JSON snapshot of WebsiteStats

Counters use HINCRBY, which the server applies atomically, so concurrent
recorders in any number of processes never lose an update.
"""

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager

import redis
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError
from redis.retry import Retry

from proofpulse.base.repositories import (
    MetricRepository,
    NotificationRepository,
    WebsiteRepository,
    WebsiteStatsRepository,
)
from proofpulse.core.errors import TransientStoreError
from proofpulse.core.models import (
    CounterField,
    Metric,
    Notification,
    Website,
    WebsiteStats,
)
from proofpulse.utils.config import Settings, get_settings
from proofpulse.utils.retry import VALKEY_RETRIES

logger = logging.getLogger(__name__)


WEBSITE_PREFIX = "website:"
API_KEY_PREFIX = "website:api_key:"
NOTIFICATION_PREFIX = "notification:"
METRICS_PREFIX = "metrics:notification:"
IMPRESSION_SESSIONS_PREFIX = "metrics:impressions:"
STATS_PREFIX = "stats:website:"


def get_valkey_client(settings: Settings | None = None) -> redis.Redis:
    """
    Get a Valkey/Redis client connection.

    Configured with:
    - 10 second socket timeouts for fast failure detection
    - Automatic retries with exponential backoff for transient failures
    - Health check interval to keep connections alive

    Returns:
        redis.Redis client instance
    """
    settings = settings or get_settings()

    retry = Retry(ExponentialBackoff(cap=8, base=1), retries=VALKEY_RETRIES)

    return redis.from_url(
        settings.valkey.url,
        decode_responses=True,
        socket_timeout=10,
        socket_connect_timeout=10,
        retry=retry,
        retry_on_error=[RedisTimeoutError, RedisConnectionError],
        health_check_interval=30,
    )


def check_valkey_connection(settings: Settings | None = None) -> bool:
    """
    Check if Valkey is reachable.

    Returns:
        True if Valkey responds to ping, False otherwise
    """
    try:
        settings = settings or get_settings()
        client = redis.from_url(
            settings.valkey.url,
            decode_responses=True,
            socket_timeout=5,
            socket_connect_timeout=5,
        )
        client.ping()
        client.close()
        return True
    except RedisError:
        return False


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """Translate Redis failures into TransientStoreError."""
    try:
        yield
    except RedisError as e:
        logger.warning("Valkey %s failed: %s", operation, e)
        raise TransientStoreError(f"Valkey {operation} failed: {e}") from e


class _ValkeyRepository:
    """Shared client handling for the Valkey repositories."""

    def __init__(self, client: redis.Redis | None = None):
        """
        Args:
            client: Redis client instance. If None, creates a new connection.
        """
        self._client = client or get_valkey_client()

    @property
    def client(self) -> redis.Redis:
        """Get the underlying Redis client."""
        return self._client


class ValkeyWebsiteRepository(_ValkeyRepository, WebsiteRepository):
    """Websites stored as hashes, with an API key -> id index."""

    def get(self, website_id: str) -> Website | None:
        with _store_errors("website lookup"):
            data = self._client.hgetall(f"{WEBSITE_PREFIX}{website_id}")
        if not data:
            return None
        return Website.model_validate(data)

    def get_by_api_key(self, api_key: str) -> Website | None:
        with _store_errors("website lookup"):
            website_id = self._client.get(f"{API_KEY_PREFIX}{api_key}")
        if website_id is None:
            return None
        return self.get(website_id)

    def save(self, website: Website) -> None:
        mapping = website.model_dump(exclude_none=True)
        with _store_errors("website save"):
            pipe = self._client.pipeline()
            pipe.hset(f"{WEBSITE_PREFIX}{website.id}", mapping=mapping)
            pipe.set(f"{API_KEY_PREFIX}{website.api_key}", website.id)
            pipe.execute()


class ValkeyNotificationRepository(_ValkeyRepository, NotificationRepository):
    """Notifications stored as hashes; counters are hash fields."""

    def get(self, notification_id: str) -> Notification | None:
        with _store_errors("notification lookup"):
            data = self._client.hgetall(f"{NOTIFICATION_PREFIX}{notification_id}")
        if not data:
            return None
        return Notification.model_validate(data)

    def save(self, notification: Notification) -> None:
        with _store_errors("notification save"):
            self._client.hset(
                f"{NOTIFICATION_PREFIX}{notification.id}",
                mapping=notification.model_dump(),
            )

    def increment_counter(self, notification_id: str, field: CounterField, delta: int = 1) -> int:
        field = CounterField(field)
        with _store_errors("counter increment"):
            return self._client.hincrby(f"{NOTIFICATION_PREFIX}{notification_id}", field.value, delta)


class ValkeyMetricRepository(_ValkeyRepository, MetricRepository):
    """Metrics stored as JSON lists per notification."""

    def save(self, metric: Metric) -> None:
        document = json.dumps(metric.to_document())
        with _store_errors("metric save"):
            self._client.rpush(f"{METRICS_PREFIX}{metric.notification_id}", document)

    def claim_impression(self, notification_id: str, session_id: str) -> bool:
        # SADD returns the number of members added: 1 for the first claim only
        with _store_errors("impression claim"):
            added = self._client.sadd(f"{IMPRESSION_SESSIONS_PREFIX}{notification_id}", session_id)
        return added == 1

    def has_impression(self, notification_id: str, session_id: str) -> bool:
        with _store_errors("impression lookup"):
            return bool(
                self._client.sismember(f"{IMPRESSION_SESSIONS_PREFIX}{notification_id}", session_id)
            )

    def list_for_notification(self, notification_id: str) -> list[Metric]:
        with _store_errors("metric listing"):
            documents = self._client.lrange(f"{METRICS_PREFIX}{notification_id}", 0, -1)
        return [Metric.model_validate_json(doc) for doc in documents]


class ValkeyWebsiteStatsRepository(_ValkeyRepository, WebsiteStatsRepository):
    """One JSON snapshot per website, overwritten on every upsert."""

    def upsert(self, stats: WebsiteStats) -> None:
        with _store_errors("stats upsert"):
            self._client.set(f"{STATS_PREFIX}{stats.website_id}", json.dumps(stats.to_document()))

    def get(self, website_id: str) -> WebsiteStats | None:
        with _store_errors("stats lookup"):
            document = self._client.get(f"{STATS_PREFIX}{website_id}")
        if document is None:
            return None
        return WebsiteStats.model_validate_json(document)
