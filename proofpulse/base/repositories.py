# ==============================================================================
# Repository Abstract Base Classes
# ==============================================================================
"""
Repository ABCs for the external store.

These define the "what" (record a metric, bump a counter) not the "how"
(HINCRBY vs UPDATE ... SET x = x + 1). Concrete implementations in
infrastructure/ handle the specifics and translate driver failures into
TransientStoreError.

Includes:
- WebsiteRepository: Website lookup by id or API key
- NotificationRepository: Notification lookup and atomic counters
- MetricRepository: Metric persistence and atomic impression claims
- WebsiteStatsRepository: Engagement snapshot upserts
"""

from abc import ABC, abstractmethod

from proofpulse.core.models import CounterField, Metric, Notification, Website, WebsiteStats


class WebsiteRepository(ABC):
    """Repository for websites."""

    @abstractmethod
    def get(self, website_id: str) -> Website | None:
        """Get a website by id, or None if unknown."""
        ...

    @abstractmethod
    def get_by_api_key(self, api_key: str) -> Website | None:
        """Get a website by its API key, or None if unknown."""
        ...

    @abstractmethod
    def save(self, website: Website) -> None:
        """Insert or replace a website."""
        ...


class NotificationRepository(ABC):
    """Repository for notifications and their display counters."""

    @abstractmethod
    def get(self, notification_id: str) -> Notification | None:
        """Get a notification by id, or None if unknown."""
        ...

    @abstractmethod
    def save(self, notification: Notification) -> None:
        """Insert or replace a notification."""
        ...

    @abstractmethod
    def increment_counter(self, notification_id: str, field: CounterField, delta: int = 1) -> int:
        """
        Atomically add ``delta`` to a notification counter.

        Must be a single update command against the store, never a
        read followed by a write.

        Args:
            notification_id: Notification to update
            field: Counter to increment
            delta: Amount to add (default: 1)

        Returns:
            New counter value
        """
        ...


class MetricRepository(ABC):
    """Repository for recorded metrics."""

    @abstractmethod
    def save(self, metric: Metric) -> None:
        """Persist a metric record."""
        ...

    @abstractmethod
    def claim_impression(self, notification_id: str, session_id: str) -> bool:
        """
        Atomically mark an impression as seen for this notification and session.

        Must be a single store operation so that concurrent recorders, in any
        number of processes, see exactly one successful claim per pair.

        Returns:
            True if this call made the claim, False if it was already taken
        """
        ...

    @abstractmethod
    def has_impression(self, notification_id: str, session_id: str) -> bool:
        """True if an impression was already claimed for this notification and session."""
        ...

    @abstractmethod
    def list_for_notification(self, notification_id: str) -> list[Metric]:
        """All metrics recorded for a notification, oldest first."""
        ...


class WebsiteStatsRepository(ABC):
    """Repository for website engagement snapshots."""

    @abstractmethod
    def upsert(self, stats: WebsiteStats) -> None:
        """Insert or overwrite the snapshot for ``stats.website_id``."""
        ...

    @abstractmethod
    def get(self, website_id: str) -> WebsiteStats | None:
        """Get the latest snapshot, or None if none was computed."""
        ...
