# ==============================================================================
# PostgreSQL Repository Implementations
# ==============================================================================
"""
PostgreSQL implementations of the repository interfaces.

Provides:
- PostgreSQLWebsiteRepository: Website lookups
- PostgreSQLNotificationRepository: Counters via UPDATE ... SET x = x + n
- PostgreSQLMetricRepository: Metric inserts and impression claims (ON CONFLICT DO NOTHING)
- PostgreSQLWebsiteStatsRepository: Snapshot upserts (ON CONFLICT DO UPDATE)

Each repository owns one connection. Statements on it are serialized with a
lock since tracking calls arrive from many request threads.
"""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

import psycopg2
from psycopg2.extras import Json, RealDictCursor

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

logger = logging.getLogger(__name__)

# Connection timeout
CONNECT_TIMEOUT = 10

TRANSIENT_ERRORS = (psycopg2.OperationalError, psycopg2.InterfaceError)


def _add_connect_timeout(conn_string: str) -> str:
    """Add connect_timeout to connection string if not present."""
    if "connect_timeout" not in conn_string:
        separator = "&" if "?" in conn_string else "?"
        return f"{conn_string}{separator}connect_timeout={CONNECT_TIMEOUT}"
    return conn_string


class _PostgreSQLRepository:
    """Connection handling shared by the PostgreSQL repositories."""

    def __init__(self, settings: Settings | None = None):
        """
        Args:
            settings: Application settings. If None, uses get_settings().
        """
        self._settings = settings or get_settings()
        self._conn: psycopg2.extensions.connection | None = None
        self._schema = self._settings.postgres.schema_name
        self._lock = threading.Lock()

    @property
    def schema(self) -> str:
        """Get the database schema name."""
        return self._schema

    def connect(self) -> None:
        """Establish connection to PostgreSQL."""
        conn_string = _add_connect_timeout(self._settings.postgres.connection_string)
        try:
            self._conn = psycopg2.connect(conn_string)
        except TRANSIENT_ERRORS as e:
            raise TransientStoreError(f"PostgreSQL connect failed: {e}") from e
        logger.info("%s connected (schema=%s)", type(self).__name__, self._schema)

    @contextmanager
    def _cursor(self, operation: str) -> Iterator[RealDictCursor]:
        """Run one statement in its own transaction, translating driver failures."""
        if self._conn is None:
            raise RuntimeError("PostgreSQL connection not established. Call connect() first.")

        with self._lock:
            try:
                with self._conn.cursor(cursor_factory=RealDictCursor) as cur:
                    yield cur
                self._conn.commit()
            except TRANSIENT_ERRORS as e:
                self._rollback()
                logger.warning("PostgreSQL %s failed: %s", operation, e)
                raise TransientStoreError(f"PostgreSQL {operation} failed: {e}") from e
            except psycopg2.Error:
                self._rollback()
                raise

    def _rollback(self) -> None:
        try:
            self._conn.rollback()
        except psycopg2.Error as e:
            logger.warning("Rollback failed: %s", e)

    def close(self) -> None:
        """Close connection and release resources."""
        if self._conn:
            try:
                self._conn.close()
                logger.info("%s connection closed", type(self).__name__)
            except psycopg2.Error as e:
                logger.warning("Error closing connection: %s", e)
            finally:
                self._conn = None


class PostgreSQLWebsiteRepository(_PostgreSQLRepository, WebsiteRepository):
    """PostgreSQL implementation of WebsiteRepository."""

    def get(self, website_id: str) -> Website | None:
        with self._cursor("website lookup") as cur:
            cur.execute(
                f"SELECT id, api_key, name FROM {self._schema}.websites WHERE id = %s",
                (website_id,),
            )
            row = cur.fetchone()
        return Website.model_validate(dict(row)) if row else None

    def get_by_api_key(self, api_key: str) -> Website | None:
        with self._cursor("website lookup") as cur:
            cur.execute(
                f"SELECT id, api_key, name FROM {self._schema}.websites WHERE api_key = %s",
                (api_key,),
            )
            row = cur.fetchone()
        return Website.model_validate(dict(row)) if row else None

    def save(self, website: Website) -> None:
        with self._cursor("website save") as cur:
            cur.execute(
                f"""
                INSERT INTO {self._schema}.websites (id, api_key, name)
                VALUES (%(id)s, %(api_key)s, %(name)s)
                ON CONFLICT (id) DO UPDATE SET
                    api_key = EXCLUDED.api_key,
                    name = EXCLUDED.name
                """,
                website.model_dump(),
            )


class PostgreSQLNotificationRepository(_PostgreSQLRepository, NotificationRepository):
    """
    PostgreSQL implementation of NotificationRepository.

    Counter updates are a single ``UPDATE ... SET col = col + n`` so the row
    lock taken by PostgreSQL serializes concurrent increments.
    """

    def get(self, notification_id: str) -> Notification | None:
        with self._cursor("notification lookup") as cur:
            cur.execute(
                f"""
                SELECT id, site_id, impressions, clicks
                FROM {self._schema}.notifications WHERE id = %s
                """,
                (notification_id,),
            )
            row = cur.fetchone()
        return Notification.model_validate(dict(row)) if row else None

    def save(self, notification: Notification) -> None:
        with self._cursor("notification save") as cur:
            cur.execute(
                f"""
                INSERT INTO {self._schema}.notifications (id, site_id, impressions, clicks)
                VALUES (%(id)s, %(site_id)s, %(impressions)s, %(clicks)s)
                ON CONFLICT (id) DO UPDATE SET site_id = EXCLUDED.site_id
                """,
                notification.model_dump(),
            )

    def increment_counter(self, notification_id: str, field: CounterField, delta: int = 1) -> int:
        # Column name comes from the enum, never from caller input
        column = CounterField(field).value
        with self._cursor("counter increment") as cur:
            cur.execute(
                f"""
                UPDATE {self._schema}.notifications
                SET {column} = {column} + %s
                WHERE id = %s
                RETURNING {column}
                """,
                (delta, notification_id),
            )
            row = cur.fetchone()
        return row[column] if row else 0


class PostgreSQLMetricRepository(_PostgreSQLRepository, MetricRepository):
    """PostgreSQL implementation of MetricRepository."""

    _COLUMNS = (
        "site_id, notification_id, type, url, user_agent, ip_address, referrer, "
        "session_id, client_id, is_bot, is_unique, timestamp"
    )

    def save(self, metric: Metric) -> None:
        record = metric.model_dump()
        record["type"] = metric.type.value
        with self._cursor("metric save") as cur:
            cur.execute(
                f"""
                INSERT INTO {self._schema}.metrics ({self._COLUMNS})
                VALUES (
                    %(site_id)s, %(notification_id)s, %(type)s, %(url)s, %(user_agent)s,
                    %(ip_address)s, %(referrer)s, %(session_id)s, %(client_id)s,
                    %(is_bot)s, %(is_unique)s, %(timestamp)s
                )
                """,
                record,
            )
        logger.debug("Inserted %s metric for notification %s", metric.type.value, metric.notification_id)

    def claim_impression(self, notification_id: str, session_id: str) -> bool:
        # The primary key on (notification_id, session_id) makes the insert the claim
        with self._cursor("impression claim") as cur:
            cur.execute(
                f"""
                INSERT INTO {self._schema}.impression_claims (notification_id, session_id)
                VALUES (%s, %s)
                ON CONFLICT DO NOTHING
                RETURNING notification_id
                """,
                (notification_id, session_id),
            )
            row = cur.fetchone()
        return row is not None

    def has_impression(self, notification_id: str, session_id: str) -> bool:
        with self._cursor("impression lookup") as cur:
            cur.execute(
                f"""
                SELECT EXISTS (
                    SELECT 1 FROM {self._schema}.impression_claims
                    WHERE notification_id = %s AND session_id = %s
                ) AS seen
                """,
                (notification_id, session_id),
            )
            row = cur.fetchone()
        return bool(row["seen"])

    def list_for_notification(self, notification_id: str) -> list[Metric]:
        with self._cursor("metric listing") as cur:
            cur.execute(
                f"""
                SELECT {self._COLUMNS} FROM {self._schema}.metrics
                WHERE notification_id = %s ORDER BY timestamp, id
                """,
                (notification_id,),
            )
            rows = cur.fetchall()
        return [Metric.model_validate(dict(row)) for row in rows]


class PostgreSQLWebsiteStatsRepository(_PostgreSQLRepository, WebsiteStatsRepository):
    """PostgreSQL implementation of WebsiteStatsRepository."""

    def upsert(self, stats: WebsiteStats) -> None:
        record = stats.model_dump()
        record["users_by_country"] = Json(stats.users_by_country)
        record["users_by_city"] = Json(stats.users_by_city)
        with self._cursor("stats upsert") as cur:
            cur.execute(
                f"""
                INSERT INTO {self._schema}.website_stats (
                    website_id, active_users, avg_scroll_percentage, avg_time_on_page,
                    total_clicks, users_by_country, users_by_city, updated_at
                ) VALUES (
                    %(website_id)s, %(active_users)s, %(avg_scroll_percentage)s,
                    %(avg_time_on_page)s, %(total_clicks)s, %(users_by_country)s,
                    %(users_by_city)s, %(updated_at)s
                )
                ON CONFLICT (website_id) DO UPDATE SET
                    active_users = EXCLUDED.active_users,
                    avg_scroll_percentage = EXCLUDED.avg_scroll_percentage,
                    avg_time_on_page = EXCLUDED.avg_time_on_page,
                    total_clicks = EXCLUDED.total_clicks,
                    users_by_country = EXCLUDED.users_by_country,
                    users_by_city = EXCLUDED.users_by_city,
                    updated_at = EXCLUDED.updated_at
                """,
                record,
            )

    def get(self, website_id: str) -> WebsiteStats | None:
        with self._cursor("stats lookup") as cur:
            cur.execute(
                f"""
                SELECT website_id, active_users, avg_scroll_percentage, avg_time_on_page,
                       total_clicks, users_by_country, users_by_city, updated_at
                FROM {self._schema}.website_stats WHERE website_id = %s
                """,
                (website_id,),
            )
            row = cur.fetchone()
        return WebsiteStats.model_validate(dict(row)) if row else None


def check_postgresql_connection(settings: Settings | None = None) -> bool:
    """
    Check if PostgreSQL is reachable.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        settings = settings or get_settings()
        conn_string = _add_connect_timeout(settings.postgres.connection_string)
        conn = psycopg2.connect(conn_string)
        conn.close()
        return True
    except psycopg2.Error:
        return False
