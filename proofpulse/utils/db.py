# ==============================================================================
# Database Utilities
# ==============================================================================
"""
Schema initialization for the PostgreSQL store.

The schema is rendered from a Jinja2 template so the schema name can be
configured. Includes retry logic with exponential backoff for network
resilience.
"""

import logging

import psycopg2
from jinja2 import Template

from proofpulse.utils.config import Settings, get_settings
from proofpulse.utils.retry import retry_standard

logger = logging.getLogger(__name__)


SCHEMA_TEMPLATE = """
CREATE SCHEMA IF NOT EXISTS {{ schema_name }};

CREATE TABLE IF NOT EXISTS {{ schema_name }}.websites (
    id          TEXT PRIMARY KEY,
    api_key     TEXT NOT NULL UNIQUE,
    name        TEXT
);

CREATE TABLE IF NOT EXISTS {{ schema_name }}.notifications (
    id          TEXT PRIMARY KEY,
    site_id     TEXT NOT NULL REFERENCES {{ schema_name }}.websites (id),
    impressions BIGINT NOT NULL DEFAULT 0,
    clicks      BIGINT NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS notifications_site_id_idx
    ON {{ schema_name }}.notifications (site_id);

CREATE TABLE IF NOT EXISTS {{ schema_name }}.metrics (
    id              BIGSERIAL PRIMARY KEY,
    site_id         TEXT NOT NULL,
    notification_id TEXT NOT NULL,
    type            TEXT NOT NULL CHECK (type IN ('impression', 'click')),
    url             TEXT,
    user_agent      TEXT,
    ip_address      TEXT,
    referrer        TEXT,
    session_id      TEXT,
    client_id       TEXT,
    is_bot          BOOLEAN NOT NULL DEFAULT FALSE,
    is_unique       BOOLEAN NOT NULL DEFAULT TRUE,
    timestamp       TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE INDEX IF NOT EXISTS metrics_dedup_idx
    ON {{ schema_name }}.metrics (notification_id, session_id, type);
CREATE INDEX IF NOT EXISTS metrics_site_time_idx
    ON {{ schema_name }}.metrics (site_id, timestamp);

CREATE TABLE IF NOT EXISTS {{ schema_name }}.impression_claims (
    notification_id TEXT NOT NULL,
    session_id      TEXT NOT NULL,
    claimed_at      TIMESTAMPTZ NOT NULL DEFAULT now(),
    PRIMARY KEY (notification_id, session_id)
);

CREATE TABLE IF NOT EXISTS {{ schema_name }}.website_stats (
    website_id            TEXT PRIMARY KEY,
    active_users          INTEGER NOT NULL DEFAULT 0,
    avg_scroll_percentage DOUBLE PRECISION NOT NULL DEFAULT 0,
    avg_time_on_page      DOUBLE PRECISION NOT NULL DEFAULT 0,
    total_clicks          INTEGER NOT NULL DEFAULT 0,
    users_by_country      JSONB NOT NULL DEFAULT '{}'::jsonb,
    users_by_city         JSONB NOT NULL DEFAULT '{}'::jsonb,
    updated_at            TIMESTAMPTZ NOT NULL DEFAULT now()
);
"""


def render_schema_sql(schema_name: str) -> str:
    """Render the schema SQL template with the given schema name."""
    return Template(SCHEMA_TEMPLATE).render(schema_name=schema_name)


@retry_standard((psycopg2.OperationalError, psycopg2.InterfaceError), logger)
def ensure_schema(settings: Settings | None = None) -> None:
    """
    Create the schema and tables if they don't exist.

    Retries on connection errors with exponential backoff (10 attempts, ~60 seconds).
    """
    settings = settings or get_settings()
    schema_name = settings.postgres.schema_name

    conn = psycopg2.connect(settings.postgres.connection_string, connect_timeout=10)
    try:
        with conn.cursor() as cur:
            cur.execute(render_schema_sql(schema_name))
        conn.commit()
        logger.info("Schema '%s' is ready", schema_name)
    finally:
        conn.close()
