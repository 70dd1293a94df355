# ==============================================================================
# Tests for PostgreSQL Repositories
# ==============================================================================
"""
Unit tests for the PostgreSQL repository adapters with a mocked connection.

Tests cover:
- Counter increments are a single UPDATE ... SET col = col + n
- Impression claims are a single INSERT ... ON CONFLICT DO NOTHING
- Impression lookups use EXISTS
- Driver connection errors become TransientStoreError and roll back
- Repositories refuse to run before connect()
"""

from unittest.mock import MagicMock

import psycopg2
import pytest

from proofpulse.core.errors import TransientStoreError
from proofpulse.core.models import CounterField
from proofpulse.infrastructure.repositories import (
    PostgreSQLMetricRepository,
    PostgreSQLNotificationRepository,
)
from proofpulse.utils.config import PostgresSettings, Settings


def connect_mock(repo, row=None):
    """Attach a mocked connection whose cursor returns ``row``."""
    cursor = MagicMock()
    cursor.fetchone.return_value = row
    conn = MagicMock()
    conn.cursor.return_value.__enter__.return_value = cursor
    repo._conn = conn
    return conn, cursor


@pytest.fixture()
def settings():
    return Settings(postgres=PostgresSettings(schema_name="pp_test"))


class TestNotificationRepository:
    """Tests for PostgreSQLNotificationRepository."""

    def test_increment_is_single_update(self, settings):
        """The counter is updated in place and the new value returned."""
        repo = PostgreSQLNotificationRepository(settings)
        conn, cursor = connect_mock(repo, row={"clicks": 7})

        assert repo.increment_counter("notif-1", CounterField.CLICKS) == 7

        sql, params = cursor.execute.call_args.args
        assert "UPDATE pp_test.notifications" in sql
        assert "SET clicks = clicks + %s" in sql
        assert params == (1, "notif-1")
        conn.commit.assert_called_once()

    def test_increment_missing_notification(self, settings):
        """Incrementing an unknown notification returns 0."""
        repo = PostgreSQLNotificationRepository(settings)
        connect_mock(repo, row=None)
        assert repo.increment_counter("nope", CounterField.IMPRESSIONS) == 0

    def test_connection_error_translated(self, settings):
        """OperationalError becomes TransientStoreError after a rollback."""
        repo = PostgreSQLNotificationRepository(settings)
        conn, cursor = connect_mock(repo)
        cursor.execute.side_effect = psycopg2.OperationalError("server closed the connection")

        with pytest.raises(TransientStoreError, match="counter increment"):
            repo.increment_counter("notif-1", CounterField.CLICKS)
        conn.rollback.assert_called_once()
        conn.commit.assert_not_called()

    def test_requires_connect(self, settings):
        """Queries before connect() are a programming error."""
        repo = PostgreSQLNotificationRepository(settings)
        with pytest.raises(RuntimeError, match="connect"):
            repo.get("notif-1")


class TestMetricRepository:
    """Tests for PostgreSQLMetricRepository."""

    @pytest.mark.parametrize("seen", [True, False])
    def test_has_impression(self, settings, seen):
        """The EXISTS result is returned as a bool."""
        repo = PostgreSQLMetricRepository(settings)
        _, cursor = connect_mock(repo, row={"seen": seen})

        assert repo.has_impression("notif-1", "s1") is seen
        sql, params = cursor.execute.call_args.args
        assert "EXISTS" in sql
        assert params == ("notif-1", "s1")

    @pytest.mark.parametrize("row, claimed", [({"notification_id": "notif-1"}, True), (None, False)])
    def test_claim_impression(self, settings, row, claimed):
        """The claim is one insert that reports whether a row was added."""
        repo = PostgreSQLMetricRepository(settings)
        conn, cursor = connect_mock(repo, row=row)

        assert repo.claim_impression("notif-1", "s1") is claimed
        sql, params = cursor.execute.call_args.args
        assert "INSERT INTO pp_test.impression_claims" in sql
        assert "ON CONFLICT DO NOTHING" in sql
        assert params == ("notif-1", "s1")
        assert cursor.execute.call_count == 1
        conn.commit.assert_called_once()

    def test_close(self, settings):
        """close() releases the connection."""
        repo = PostgreSQLMetricRepository(settings)
        conn, _ = connect_mock(repo)
        repo.close()
        conn.close.assert_called_once()
        assert repo._conn is None
