# ==============================================================================
# Tests for Database Utilities
# ==============================================================================
"""
Tests for the PostgreSQL schema template.
"""

from proofpulse.utils.db import render_schema_sql


class TestRenderSchema:
    """Tests for render_schema_sql()."""

    def test_schema_name_applied(self):
        """Every table is created in the requested schema."""
        sql = render_schema_sql("tracking_test")
        assert "CREATE SCHEMA IF NOT EXISTS tracking_test;" in sql
        for table in ("websites", "notifications", "metrics", "website_stats"):
            assert f"tracking_test.{table}" in sql

    def test_dedup_index(self):
        """The impression lookup is backed by an index."""
        sql = render_schema_sql("proofpulse")
        assert "ON proofpulse.metrics (notification_id, session_id, type)" in sql

    def test_no_unrendered_placeholders(self):
        """No template syntax is left in the output."""
        assert "{{" not in render_schema_sql("proofpulse")

    def test_impression_claims_table(self):
        """Impression claims are keyed by (notification, session)."""
        sql = render_schema_sql("proofpulse")
        assert "proofpulse.impression_claims" in sql
        assert "PRIMARY KEY (notification_id, session_id)" in sql
