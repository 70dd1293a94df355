# ==============================================================================
# IP Location Client
# ==============================================================================
"""
HTTP client resolving visitor IP addresses to locations (iplocate.io API).

- Loopback and private addresses resolve to a fixed local location
- Results are cached in a TTLCache (24 hours by default)
- A daily request quota caps API usage; once spent, lookups return None
- Connection errors and timeouts get a light retry (3 attempts)

Any other failure is logged and reported as "no location"; a missing
location never blocks session tracking.
"""

import ipaddress
import logging
import threading
from datetime import date, datetime, timezone

import requests
from pydantic import ValidationError

from proofpulse.base import GeoLocator
from proofpulse.core.models import Location
from proofpulse.infrastructure.cache import TTLCache
from proofpulse.utils.config import GeoSettings, get_settings
from proofpulse.utils.retry import retry_light

logger = logging.getLogger(__name__)

LOCAL_LOCATION = Location(country="Local", city="Localhost", latitude=0.0, longitude=0.0)

HTTP_RETRY_EXCEPTIONS = (
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
)


def is_local_address(ip_address: str) -> bool:
    """True for loopback, private and link-local addresses."""
    try:
        address = ipaddress.ip_address(ip_address)
    except ValueError:
        return False
    return address.is_loopback or address.is_private or address.is_link_local


class IPLocationClient(GeoLocator):
    """
    GeoLocator backed by an iplocate.io-compatible HTTP API.

    Args:
        settings: Geo settings. If None, uses get_settings().geo.
        session: requests.Session to use. If None, creates one.
        retry_wait_min: Minimum backoff between retries in seconds.
    """

    def __init__(
        self,
        settings: GeoSettings | None = None,
        session: requests.Session | None = None,
        retry_wait_min: float = 1,
    ):
        self._settings = settings or get_settings().geo
        self._session = session or requests.Session()
        self._cache: TTLCache[str, Location] = TTLCache(
            ttl_seconds=self._settings.cache_ttl_hours * 3600,
            name="geo-cache",
        )
        self._lock = threading.Lock()
        self._quota_day: date = self._today()
        self._request_count = 0
        self._fetch = retry_light(HTTP_RETRY_EXCEPTIONS, logger, wait_min=retry_wait_min)(
            self._request
        )

    @staticmethod
    def _today() -> date:
        return datetime.now(timezone.utc).date()

    @property
    def request_count(self) -> int:
        """API requests made today."""
        return self._request_count

    def _consume_quota(self) -> bool:
        with self._lock:
            today = self._today()
            if today != self._quota_day:
                self._quota_day = today
                self._request_count = 0
            if self._request_count >= self._settings.daily_quota:
                return False
            self._request_count += 1
            return True

    def _request(self, ip_address: str) -> dict:
        params = {"apikey": self._settings.api_key} if self._settings.api_key else None
        response = self._session.get(
            f"{self._settings.api_url.rstrip('/')}/{ip_address}",
            params=params,
            timeout=self._settings.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    def locate(self, ip_address: str) -> Location | None:
        if not ip_address:
            return None
        if is_local_address(ip_address):
            return LOCAL_LOCATION

        cached = self._cache.get(ip_address)
        if cached is not None:
            return cached

        if not self._consume_quota():
            logger.warning("IP location daily quota exceeded")
            return None

        try:
            data = self._fetch(ip_address)
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.warning("IP location lookup failed for %s: %s", ip_address, e)
            return None

        try:
            location = Location(
                country=data.get("country"),
                city=data.get("city"),
                latitude=data.get("latitude"),
                longitude=data.get("longitude"),
            )
        except (ValidationError, AttributeError, TypeError) as e:
            logger.warning("Unexpected IP location response for %s: %s", ip_address, e)
            return None

        self._cache.set(ip_address, location)
        return location

    def close(self) -> None:
        """Stop the cache sweep and close the HTTP session."""
        self._cache.close()
        self._session.close()
