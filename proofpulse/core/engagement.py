# ==============================================================================
# Engagement Summary - Pure Domain Logic
# ==============================================================================
"""
Roll a website's active sessions into a WebsiteStats snapshot.

Works on already-filtered active sessions. No tracker, store or clock
dependencies, so the math can be tested directly.
"""

from collections import Counter
from datetime import datetime

from proofpulse.core.models import Session, WebsiteStats, utc_now


def _average(values: list[float]) -> float:
    if not values:
        return 0
    return round(sum(values) / len(values), 2)


def summarize_sessions(
    website_id: str,
    sessions: list[Session],
    now: datetime | None = None,
) -> WebsiteStats:
    """
    Build the engagement snapshot for a website.

    Args:
        website_id: Website the sessions belong to
        sessions: Active sessions for the website
        now: Snapshot time (defaults to current UTC time)

    Returns:
        WebsiteStats with:
        - active_users: max(1, len(sessions)) if any sessions, else 0
        - avg_scroll_percentage / avg_time_on_page: mean over sessions that
          reported metrics (0 if none did)
        - total_clicks: sum of click counts
        - users_by_country / users_by_city: frequency maps over locations
    """
    reported = [s.metrics for s in sessions if s.metrics is not None]

    countries: Counter[str] = Counter()
    cities: Counter[str] = Counter()
    for session in sessions:
        if session.location is None:
            continue
        if session.location.country:
            countries[session.location.country] += 1
        if session.location.city:
            cities[session.location.city] += 1

    return WebsiteStats(
        website_id=website_id,
        active_users=max(1, len(sessions)) if sessions else 0,
        avg_scroll_percentage=_average([m.scroll_percentage for m in reported]),
        avg_time_on_page=_average([m.time_on_page for m in reported]),
        total_clicks=sum(m.click_count for m in reported),
        users_by_country=dict(countries),
        users_by_city=dict(cities),
        updated_at=now or utc_now(),
    )
