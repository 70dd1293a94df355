# ==============================================================================
# Metric Recorder
# ==============================================================================
"""
Records notification impressions and clicks.

For every event the recorder:

    1. Validates the event                      - InvalidInputError
    2. Resolves website and notification        - NotFoundError
    3. Classifies the request as bot or human
    4. Decides uniqueness (impressions are deduplicated per session)
    5. Persists the metric                      - TransientStoreError
    6. Issues one atomic counter increment when the metric counts

Store failures propagate to the caller unchanged; nothing is retried here.

Usage:
    recorder = MetricRecorder(metric_repo, notification_repo, website_repo)
    metric = recorder.record_metric({"siteId": "s1", "notificationId": "n1", "type": "click"})
"""

import logging
from collections.abc import Callable
from datetime import datetime

from pydantic import ValidationError

from proofpulse.base.repositories import MetricRepository, NotificationRepository, WebsiteRepository
from proofpulse.core.bot_detection import FAST_REQUEST_THRESHOLD_MS, is_bot
from proofpulse.core.errors import InvalidInputError, NotFoundError
from proofpulse.core.models import CounterField, Metric, MetricEvent, MetricType, utc_now
from proofpulse.infrastructure.cache import TTLCache

logger = logging.getLogger(__name__)


class MetricRecorder:
    """
    Records metric events and keeps notification counters in step.

    Impression uniqueness comes from one atomic claim in the store, so two
    impressions for the same (notification, session) pair are never both
    unique, whether they arrive in one process or in several. An optional
    TTLCache of pairs already claimed short-circuits the store round trip.

    Args:
        metric_repo: Store for metric records and impression claims.
        notification_repo: Store for notifications and their counters.
        website_repo: Store for websites. If None, the site is only checked
            against the notification's owner.
        dedup_cache: Cache of recently seen (notification_id, session_id) pairs.
        fast_request_threshold_ms: Bot classifier fast-repeat threshold.
        clock: Source of metric timestamps.
    """

    def __init__(
        self,
        metric_repo: MetricRepository,
        notification_repo: NotificationRepository,
        website_repo: WebsiteRepository | None = None,
        dedup_cache: TTLCache[tuple[str, str], bool] | None = None,
        fast_request_threshold_ms: float = FAST_REQUEST_THRESHOLD_MS,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._metric_repo = metric_repo
        self._notification_repo = notification_repo
        self._website_repo = website_repo
        self._dedup_cache = dedup_cache
        self._fast_request_threshold_ms = fast_request_threshold_ms
        self._clock = clock

    def record_metric(self, event: MetricEvent | dict) -> Metric:
        """
        Record an impression or click.

        Args:
            event: MetricEvent, or a dict with its fields (camelCase or snake_case)

        Returns:
            The recorded Metric

        Raises:
            InvalidInputError: Missing or malformed event fields
            NotFoundError: Unknown website or notification
            TransientStoreError: The store is unavailable
        """
        event = self._validate(event)
        self._resolve(event)

        detected_bot = is_bot(event.bot_signals, self._fast_request_threshold_ms)

        if event.type == MetricType.IMPRESSION and event.session_id:
            is_unique = self._claim_impression(event.notification_id, event.session_id)
        else:
            is_unique = True

        metric = self._build_metric(event, detected_bot, is_unique)
        self._metric_repo.save(metric)

        if metric.counts:
            self._notification_repo.increment_counter(
                metric.notification_id, CounterField.for_metric(metric.type)
            )

        logger.debug(
            "Recorded %s for notification %s (bot=%s unique=%s counted=%s)",
            metric.type.value,
            metric.notification_id,
            metric.is_bot,
            metric.is_unique,
            metric.counts,
        )
        return metric

    # ==========================================================================
    # Internal
    # ==========================================================================

    @staticmethod
    def _validate(event: MetricEvent | dict) -> MetricEvent:
        if isinstance(event, MetricEvent):
            return event
        try:
            return MetricEvent.model_validate(event)
        except ValidationError as e:
            raise InvalidInputError(f"Invalid metric event: {e}") from e

    def _resolve(self, event: MetricEvent) -> None:
        if self._website_repo is not None and self._website_repo.get(event.site_id) is None:
            raise NotFoundError(f"Website {event.site_id} not found")

        notification = self._notification_repo.get(event.notification_id)
        if notification is None or notification.site_id != event.site_id:
            raise NotFoundError(
                f"Notification {event.notification_id} not found for website {event.site_id}"
            )

    def _claim_impression(self, notification_id: str, session_id: str) -> bool:
        key = (notification_id, session_id)
        if self._dedup_cache is not None and self._dedup_cache.get(key):
            return False
        claimed = self._metric_repo.claim_impression(notification_id, session_id)
        if self._dedup_cache is not None:
            self._dedup_cache.set(key, True)
        return claimed

    def _build_metric(self, event: MetricEvent, detected_bot: bool, is_unique: bool) -> Metric:
        return Metric(
            site_id=event.site_id,
            notification_id=event.notification_id,
            type=event.type,
            url=event.url.strip() if event.url else None,
            user_agent=event.user_agent,
            ip_address=event.ip_address,
            referrer=event.referrer,
            session_id=event.session_id,
            client_id=event.client_id,
            is_bot=detected_bot,
            is_unique=is_unique,
            timestamp=self._clock(),
        )
