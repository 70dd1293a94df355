# ==============================================================================
# Active Session Tracker (In-Memory)
# ==============================================================================
"""
Registry of visitor sessions that are active on each website right now.

Sessions live in a TTLCache whose TTL equals the session timeout, so a
session disappears on its own once pings stop. A secondary per-website
index (website_id -> set of session ids) answers "who is on this site";
a background cleanup drops index ids whose session has expired and drops
a website's index once it is empty.

None of these operations raise for missing or expired sessions; absence is
reported as False, 0 or an empty list.
"""

import logging
import threading
import time
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from proofpulse.core.models import EngagementMetrics, Session
from proofpulse.infrastructure.cache import TTLCache
from proofpulse.utils.periodic import PeriodicTask

logger = logging.getLogger(__name__)

# Inactivity after which a session stops counting as active
SESSION_TIMEOUT_SECONDS = 5 * 60

# Interval of the website index cleanup
CLEANUP_INTERVAL_SECONDS = 60.0


class SessionTracker:
    """
    Tracks active sessions per website.

    Constructing a tracker starts its background sweeps (one for the session
    cache, one for the website index); ``close()`` stops both.

    Args:
        session_timeout_seconds: Inactivity timeout of a session.
        cleanup_interval_seconds: Interval of both background sweeps, or None
            to disable them.
        clock: Wall-clock time source in epoch seconds. Defaults to ``time.time``.
    """

    def __init__(
        self,
        session_timeout_seconds: float = SESSION_TIMEOUT_SECONDS,
        cleanup_interval_seconds: float | None = CLEANUP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.timeout = timedelta(seconds=session_timeout_seconds)
        self._clock = clock
        self._sessions: TTLCache[str, Session] = TTLCache(
            ttl_seconds=session_timeout_seconds,
            sweep_interval_seconds=cleanup_interval_seconds,
            clock=clock,
            name="session-cache",
        )
        self._website_sessions: dict[str, set[str]] = {}
        self._lock = threading.Lock()

        self._cleanup_task: PeriodicTask | None = None
        if cleanup_interval_seconds is not None:
            self._cleanup_task = PeriodicTask(
                self.cleanup_expired_sessions, cleanup_interval_seconds, "session-index-cleanup"
            )
            self._cleanup_task.start()

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self._clock(), tz=timezone.utc)

    def _live_session(self, session_id: str, now: datetime) -> Session | None:
        session = self._sessions.get(session_id)
        if session is None or not session.is_active(now, self.timeout):
            return None
        return session

    # ==========================================================================
    # Public API
    # ==========================================================================

    def track_session(self, session: Session) -> str:
        """
        Insert or overwrite a session and index it under its website.

        The session's ``last_active_at`` is set to now.

        Args:
            session: Session to track; ``session.id`` is supplied by the caller

        Returns:
            The session id, unchanged
        """
        tracked = session.model_copy(update={"last_active_at": self._now()})
        with self._lock:
            previous = self._sessions.get(tracked.id)
            if previous is not None and previous.website_id != tracked.website_id:
                self._website_sessions.get(previous.website_id, set()).discard(tracked.id)
            self._sessions.set(tracked.id, tracked)
            self._website_sessions.setdefault(tracked.website_id, set()).add(tracked.id)

        logger.debug("Tracking session %s on website %s", tracked.id, tracked.website_id)
        return tracked.id

    def update_session(
        self,
        session_id: str,
        url: str | None = None,
        metrics: EngagementMetrics | None = None,
        website_id: str | None = None,
    ) -> bool:
        """
        Refresh a session's last activity time.

        Does not resurrect expired sessions, and does not move a session to
        another website: when this returns False the caller is expected to
        call ``track_session``.

        Args:
            session_id: Session to refresh
            url: New page URL, if the visitor navigated
            metrics: Latest engagement metrics, if reported
            website_id: Website the activity came from; a live session on a
                different website is not refreshed

        Returns:
            True if the session was live on that website and was refreshed,
            False otherwise
        """
        with self._lock:
            now = self._now()
            session = self._live_session(session_id, now)
            if session is None:
                return False
            if website_id is not None and session.website_id != website_id:
                return False

            update: dict = {"last_active_at": now}
            if url:
                update["url"] = url
            if metrics is not None:
                update["metrics"] = metrics
            self._sessions.set(session_id, session.model_copy(update=update))
            # The index cleanup may have raced ahead of this refresh
            self._website_sessions.setdefault(session.website_id, set()).add(session_id)

        return True

    def get_active_sessions(self, website_id: str) -> list[Session]:
        """
        Get the active sessions of a website.

        Args:
            website_id: Website to look up

        Returns:
            Sessions whose last activity is within the timeout
        """
        with self._lock:
            session_ids = list(self._website_sessions.get(website_id, ()))

        now = self._now()
        sessions = []
        for session_id in session_ids:
            session = self._live_session(session_id, now)
            if session is not None:
                sessions.append(session)
        return sessions

    def get_active_users(self, website_id: str) -> int:
        """
        Count active users on a website.

        Returns:
            0 if the website has no index entry at all, otherwise
            max(1, number of active sessions)
        """
        with self._lock:
            session_ids = self._website_sessions.get(website_id)
            if session_ids is None:
                return 0
            now = self._now()
            active = sum(1 for sid in session_ids if self._live_session(sid, now) is not None)
        return max(1, active)

    def website_ids(self) -> list[str]:
        """Websites that currently have an index entry."""
        with self._lock:
            return list(self._website_sessions)

    # ==========================================================================
    # Background Cleanup
    # ==========================================================================

    def cleanup_expired_sessions(self) -> int:
        """
        Drop index ids whose session is gone, and empty website indexes.

        Returns:
            Count of session ids removed from the index
        """
        removed = 0
        with self._lock:
            now = self._now()
            for website_id in list(self._website_sessions):
                session_ids = self._website_sessions[website_id]
                expired = {sid for sid in session_ids if self._live_session(sid, now) is None}
                session_ids -= expired
                removed += len(expired)
                if not session_ids:
                    del self._website_sessions[website_id]

        if removed:
            logger.debug("Removed %d expired sessions from website index", removed)
        return removed

    def close(self) -> None:
        """Stop the background sweeps."""
        if self._cleanup_task is not None:
            self._cleanup_task.stop()
            self._cleanup_task = None
        self._sessions.close()

    def __enter__(self) -> "SessionTracker":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
