# ==============================================================================
# Core Domain Logic
# ==============================================================================
"""
Pure domain logic with no external dependencies.

This module contains:
- Domain models (Session, Metric, WebsiteStats, ...)
- Domain errors (InvalidInputError, NotFoundError, TransientStoreError)
- Bot classification heuristics
- Engagement summary math

All code here is framework-agnostic and easily unit-testable.
"""

from proofpulse.core.bot_detection import (
    has_bot_behavior,
    is_bot,
    is_bot_ip,
    is_bot_user_agent,
)
from proofpulse.core.engagement import summarize_sessions
from proofpulse.core.errors import (
    InvalidInputError,
    NotFoundError,
    ProofPulseError,
    TransientStoreError,
)
from proofpulse.core.models import (
    BotSignals,
    CounterField,
    EngagementMetrics,
    EngagementPing,
    Location,
    Metric,
    MetricEvent,
    MetricType,
    Notification,
    Session,
    TrackingRequest,
    Website,
    WebsiteStats,
)

__all__ = [
    # Models
    "BotSignals",
    "CounterField",
    "EngagementMetrics",
    "EngagementPing",
    "Location",
    "Metric",
    "MetricEvent",
    "MetricType",
    "Notification",
    "Session",
    "TrackingRequest",
    "Website",
    "WebsiteStats",
    # Errors
    "InvalidInputError",
    "NotFoundError",
    "ProofPulseError",
    "TransientStoreError",
    # Bot detection
    "has_bot_behavior",
    "is_bot",
    "is_bot_ip",
    "is_bot_user_agent",
    # Engagement
    "summarize_sessions",
]
