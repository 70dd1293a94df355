# ==============================================================================
# Engagement Ingestion
# ==============================================================================
"""
Entry points that turn widget traffic into tracker and recorder calls.

- EngagementIngestor: activity pings -> SessionTracker
- NotificationTrackingHandler: impression/click calls -> MetricRecorder

Both accept either a validated payload model or its raw dict form, and
raise InvalidInputError for malformed payloads.
"""

import logging

from pydantic import BaseModel, ValidationError

from proofpulse.base.geo import GeoLocator
from proofpulse.base.repositories import NotificationRepository, WebsiteRepository
from proofpulse.core.errors import InvalidInputError, NotFoundError
from proofpulse.core.models import EngagementPing, Metric, MetricEvent, Session, TrackingRequest
from proofpulse.infrastructure.session_tracker import SessionTracker
from proofpulse.tracking.metric_recorder import MetricRecorder

logger = logging.getLogger(__name__)


def _parse(model: type[BaseModel], payload):
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise InvalidInputError(f"Invalid {model.__name__}: {e}") from e


class EngagementIngestor:
    """
    Applies activity pings to the session tracker.

    A ping for a session live on the same website refreshes it; otherwise a
    new session is tracked, with its location resolved when a GeoLocator is
    configured.
    """

    def __init__(self, tracker: SessionTracker, geo_locator: GeoLocator | None = None):
        self._tracker = tracker
        self._geo_locator = geo_locator

    def ingest(
        self,
        website_id: str,
        ping: EngagementPing | dict,
        ip_address: str,
        user_agent: str | None = None,
    ) -> str:
        """
        Apply one activity ping.

        Args:
            website_id: Website the ping was sent from
            ping: Ping payload
            ip_address: Client IP address of the request
            user_agent: User-Agent header of the request

        Returns:
            The session id the ping was applied to

        Raises:
            InvalidInputError: Missing website id or malformed ping
        """
        if not website_id:
            raise InvalidInputError("websiteId is required")
        ping = _parse(EngagementPing, ping)
        session_id = ping.identity

        if self._tracker.update_session(
            session_id, url=ping.url, metrics=ping.metrics, website_id=website_id
        ):
            return session_id

        location = self._geo_locator.locate(ip_address) if self._geo_locator else None
        session = Session(
            id=session_id,
            website_id=website_id,
            url=ping.url,
            referrer=ping.referrer,
            ip_address=ip_address,
            user_agent=user_agent,
            location=location,
            metrics=ping.metrics,
        )
        logger.debug("New session %s on website %s", session_id, website_id)
        return self._tracker.track_session(session)


class NotificationTrackingHandler:
    """
    Resolves impression/click calls to a notification and records them.

    The caller identifies the website by API key, the notification by id,
    or both; when both are given the notification must belong to that
    website. A call with an API key but no notification id only verifies
    the key and records nothing.
    """

    def __init__(
        self,
        recorder: MetricRecorder,
        website_repo: WebsiteRepository,
        notification_repo: NotificationRepository,
    ):
        self._recorder = recorder
        self._website_repo = website_repo
        self._notification_repo = notification_repo

    def handle(
        self,
        request: TrackingRequest | dict,
        ip_address: str | None = None,
        user_agent: str | None = None,
        referrer: str | None = None,
    ) -> Metric | None:
        """
        Record the tracking call.

        Args:
            request: Tracking payload
            ip_address: Client IP address of the request
            user_agent: User-Agent header of the request
            referrer: Referer header; the payload's referrer is used when absent

        Returns:
            The recorded Metric, or None when no notification was named

        Raises:
            InvalidInputError: Malformed payload
            NotFoundError: Unknown API key or notification, or a notification
                of another website
            TransientStoreError: The store is unavailable
        """
        request = _parse(TrackingRequest, request)

        site_id = None
        if request.api_key:
            website = self._website_repo.get_by_api_key(request.api_key)
            if website is None:
                raise NotFoundError("Unknown API key")
            site_id = website.id

        if not request.notification_id:
            return None

        if site_id is None:
            notification = self._notification_repo.get(request.notification_id)
            if notification is None:
                raise NotFoundError(f"Notification {request.notification_id} not found")
            site_id = notification.site_id

        event = MetricEvent(
            site_id=site_id,
            notification_id=request.notification_id,
            type=request.action,
            url=request.url,
            user_agent=user_agent,
            ip_address=ip_address,
            referrer=referrer or request.referrer,
            session_id=request.session_id,
            client_id=request.client_id,
            request_interval=request.request_interval,
        )
        return self._recorder.record_metric(event)
