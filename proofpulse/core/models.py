# ==============================================================================
# Engagement Domain Models
# ==============================================================================
"""
Pydantic models for visitor sessions, notification metrics and website stats.

These models are used for:
- Validating ingestion payloads and tracked events
- Serializing records to flat JSON (camelCase keys, ISO-8601 timestamps)
- Type safety between the tracker, recorder, aggregator and the stores

This module is part of the core domain layer and has no external dependencies
beyond Pydantic.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model accepting snake_case or camelCase and dumping camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict:
        """Serialize to a flat JSON-compatible dict."""
        return self.model_dump(mode="json", by_alias=True)


class MetricType(str, Enum):
    """Tracked notification event types."""

    IMPRESSION = "impression"
    CLICK = "click"


class CounterField(str, Enum):
    """Per-notification counters kept by the store."""

    IMPRESSIONS = "impressions"
    CLICKS = "clicks"

    @classmethod
    def for_metric(cls, metric_type: MetricType) -> "CounterField":
        """Counter incremented by a metric of the given type."""
        if metric_type == MetricType.CLICK:
            return cls.CLICKS
        return cls.IMPRESSIONS


# ==============================================================================
# Sessions
# ==============================================================================


class Location(CamelModel):
    """Geographic location resolved from a visitor IP address."""

    country: str | None = None
    city: str | None = None
    latitude: float | None = None
    longitude: float | None = None


class EngagementMetrics(CamelModel):
    """Page engagement reported by the widget on each activity ping."""

    scroll_percentage: float = Field(default=0, ge=0, le=100)
    time_on_page: float = Field(default=0, ge=0, description="Seconds on page")
    click_count: int = Field(default=0, ge=0)


class Session(CamelModel):
    """
    An active visitor session on a website.

    Attributes:
        id: Session identifier supplied by the caller (session or client id)
        website_id: Website the visitor is on
        url: Current page URL
        referrer: Referring URL, if any
        ip_address: Visitor IP address
        user_agent: Visitor user agent, if any
        location: Resolved geographic location, if any
        metrics: Latest engagement metrics, if reported
        last_active_at: Time of the most recent activity ping
    """

    id: str = Field(..., min_length=1)
    website_id: str = Field(..., min_length=1)
    url: str
    referrer: str | None = None
    ip_address: str
    user_agent: str | None = None
    location: Location | None = None
    metrics: EngagementMetrics | None = None
    last_active_at: datetime = Field(default_factory=utc_now)

    def is_active(self, now: datetime, timeout: timedelta) -> bool:
        """True while less than ``timeout`` has passed since the last ping."""
        return now - self.last_active_at < timeout


# ==============================================================================
# Notification Metrics
# ==============================================================================


class BotSignals(CamelModel):
    """Request signals used by the bot classifier."""

    user_agent: str | None = None
    ip: str | None = None
    referrer: str | None = None
    request_interval: float | None = Field(
        default=None, description="Milliseconds since the previous request"
    )


class MetricEvent(CamelModel):
    """An impression or click event to be recorded."""

    site_id: str = Field(..., min_length=1)
    notification_id: str = Field(..., min_length=1)
    type: MetricType
    url: str | None = None
    user_agent: str | None = None
    ip_address: str | None = None
    referrer: str | None = None
    session_id: str | None = None
    client_id: str | None = None
    request_interval: float | None = None

    @property
    def bot_signals(self) -> BotSignals:
        """Signals on this event relevant to bot classification."""
        return BotSignals(
            user_agent=self.user_agent,
            ip=self.ip_address,
            referrer=self.referrer,
            request_interval=self.request_interval,
        )


class Metric(CamelModel):
    """A recorded impression or click. Immutable once created."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    site_id: str
    notification_id: str
    type: MetricType
    url: str | None = None
    user_agent: str | None = None
    ip_address: str | None = None
    referrer: str | None = None
    session_id: str | None = None
    client_id: str | None = None
    is_bot: bool
    is_unique: bool
    timestamp: datetime = Field(default_factory=utc_now)

    @property
    def counts(self) -> bool:
        """Whether this metric increments the notification counter."""
        return not self.is_bot and (self.type == MetricType.CLICK or self.is_unique)


class Website(CamelModel):
    """A website registered for notifications."""

    id: str
    api_key: str
    name: str | None = None


class Notification(CamelModel):
    """A social-proof notification with its display counters."""

    id: str
    site_id: str
    impressions: int = 0
    clicks: int = 0


# ==============================================================================
# Aggregates
# ==============================================================================


class WebsiteStats(CamelModel):
    """Engagement snapshot for a website, recomputed on every aggregation pass."""

    website_id: str
    active_users: int = 0
    avg_scroll_percentage: float = 0
    avg_time_on_page: float = 0
    total_clicks: int = 0
    users_by_country: dict[str, int] = Field(default_factory=dict)
    users_by_city: dict[str, int] = Field(default_factory=dict)
    updated_at: datetime = Field(default_factory=utc_now)


# ==============================================================================
# Ingestion Payloads
# ==============================================================================


class EngagementPing(CamelModel):
    """Activity ping sent by the widget while a visitor is on a page."""

    session_id: str | None = None
    client_id: str | None = None
    url: str
    referrer: str | None = None
    metrics: EngagementMetrics | None = None

    @model_validator(mode="after")
    def _require_identity(self) -> "EngagementPing":
        if not (self.session_id or self.client_id):
            raise ValueError("sessionId or clientId is required")
        return self

    @property
    def identity(self) -> str:
        """Session id, falling back to the client id."""
        return self.session_id or self.client_id


class TrackingRequest(CamelModel):
    """Impression/click tracking call for a notification."""

    api_key: str | None = None
    notification_id: str | None = None
    action: MetricType
    url: str | None = None
    session_id: str | None = None
    client_id: str | None = None
    referrer: str | None = None
    request_interval: float | None = None

    @model_validator(mode="after")
    def _require_target(self) -> "TrackingRequest":
        if not (self.api_key or self.notification_id):
            raise ValueError("apiKey or notificationId is required")
        return self
