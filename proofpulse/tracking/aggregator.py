# ==============================================================================
# Engagement Aggregator
# ==============================================================================
"""
Rolls active sessions into per-website engagement snapshots.

Each pass recomputes the snapshot from scratch from the session tracker and
overwrites the stored one; there is no incremental merge. Passes run on
demand (``compute_stats``) or on a schedule (``StatsScheduler``).
"""

import logging
from collections.abc import Callable
from datetime import datetime

from proofpulse.base.repositories import WebsiteStatsRepository
from proofpulse.core.engagement import summarize_sessions
from proofpulse.core.errors import TransientStoreError
from proofpulse.core.models import WebsiteStats, utc_now
from proofpulse.infrastructure.session_tracker import SessionTracker
from proofpulse.utils.periodic import PeriodicTask

logger = logging.getLogger(__name__)


class EngagementAggregator:
    """Computes and stores WebsiteStats snapshots."""

    def __init__(
        self,
        tracker: SessionTracker,
        stats_repo: WebsiteStatsRepository,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._tracker = tracker
        self._stats_repo = stats_repo
        self._clock = clock

    def compute_stats(self, website_id: str) -> WebsiteStats:
        """
        Recompute and upsert the snapshot for a website.

        Raises:
            TransientStoreError: The snapshot could not be stored
        """
        sessions = self._tracker.get_active_sessions(website_id)
        stats = summarize_sessions(website_id, sessions, now=self._clock())
        self._stats_repo.upsert(stats)
        return stats

    def compute_all(self) -> list[WebsiteStats]:
        """
        Recompute snapshots for every website with tracked sessions.

        A store failure for one website is logged and the pass moves on.
        """
        results = []
        for website_id in self._tracker.website_ids():
            try:
                results.append(self.compute_stats(website_id))
            except TransientStoreError as e:
                logger.warning("Skipping stats for website %s: %s", website_id, e)

        logger.info("Stats pass updated %d websites", len(results))
        return results

    def get_stats(self, website_id: str, refresh: bool = False) -> WebsiteStats:
        """Stored snapshot, computed first when missing or when ``refresh`` is set."""
        if not refresh:
            stats = self._stats_repo.get(website_id)
            if stats is not None:
                return stats
        return self.compute_stats(website_id)


class StatsScheduler:
    """Runs ``EngagementAggregator.compute_all`` on a fixed interval."""

    def __init__(self, aggregator: EngagementAggregator, interval_seconds: float):
        self._task = PeriodicTask(aggregator.compute_all, interval_seconds, "stats-aggregation")

    @property
    def running(self) -> bool:
        return self._task.running

    def start(self) -> None:
        self._task.start()

    def stop(self) -> None:
        self._task.stop()
