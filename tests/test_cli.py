# ==============================================================================
# Tests for CLI Commands
# ==============================================================================
"""
Tests for the proofpulse CLI using typer's CliRunner.

Verifies that:
- Every command group exits 0 on --help and lists its subcommands
- config show, bot check and stats show produce the expected JSON
- db init reports schema failures with a non-zero exit code

These tests use the real app from proofpulse.app so the full command tree
is wired up the same way as the installed console script.
"""

import json
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import psycopg2
import pytest
from typer.testing import CliRunner

from proofpulse.app import app
from proofpulse.core.models import WebsiteStats

runner = CliRunner()


# ==============================================================================
# Help Output
# ==============================================================================


class TestHelp:
    """Tests for --help output of every command group."""

    def test_root(self):
        """Root --help lists every command group."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "Real-time engagement tracking CLI" in result.output
        for command in ("config", "bot", "stats", "db"):
            assert command in result.output, f"Missing command: {command}"

    @pytest.mark.parametrize(
        ("group", "subcommand"),
        [("config", "show"), ("bot", "check"), ("stats", "show"), ("db", "init")],
    )
    def test_groups(self, group, subcommand):
        """Each group --help lists its subcommand."""
        result = runner.invoke(app, [group, "--help"])
        assert result.exit_code == 0
        assert subcommand in result.output

    def test_bot_check_options(self):
        """bot check --help documents every signal option."""
        result = runner.invoke(app, ["bot", "check", "--help"])
        assert result.exit_code == 0
        for option in ("--user-agent", "--ip", "--referrer", "--interval", "--json"):
            assert option in result.output, f"Missing option: {option}"


# ==============================================================================
# config show
# ==============================================================================


class TestConfigShow:
    """Tests for `proofpulse config show`."""

    def test_json(self):
        """JSON output contains every settings section."""
        result = runner.invoke(app, ["config", "show", "--json"])
        assert result.exit_code == 0
        config = json.loads(result.stdout)
        for section in ("storage", "valkey", "postgresql", "tracking", "geo"):
            assert section in config
        assert "session_timeout_seconds" in config["tracking"]

    def test_human_readable(self):
        """Plain output lists the tracking section."""
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "Tracking" in result.output


# ==============================================================================
# bot check
# ==============================================================================


class TestBotCheck:
    """Tests for `proofpulse bot check`."""

    def test_crawler(self):
        """A crawler user agent is reported as a bot."""
        result = runner.invoke(app, ["bot", "check", "--user-agent", "Googlebot/2.1", "--json"])
        assert result.exit_code == 0
        verdict = json.loads(result.stdout)
        assert verdict["isBot"] is True
        assert verdict["checks"]["user_agent"] is True

    def test_human(self):
        """A browser with a referrer and slow repeat is human."""
        result = runner.invoke(
            app,
            [
                "bot", "check",
                "--user-agent", "Mozilla/5.0 (Macintosh)",
                "--referrer", "https://example.com/",
                "--interval", "1500",
                "--json",
            ],
        )
        assert result.exit_code == 0
        assert json.loads(result.stdout)["isBot"] is False

    def test_table_output(self):
        """Plain output renders the checks table."""
        result = runner.invoke(app, ["bot", "check", "--ip", "66.249.66.1"])
        assert result.exit_code == 0
        assert "Bot Signals" in result.output


# ==============================================================================
# stats show
# ==============================================================================


class TestStatsShow:
    """Tests for `proofpulse stats show`."""

    @pytest.fixture()
    def seeded_stats_repo(self, stats_repo):
        stats_repo.upsert(
            WebsiteStats(
                website_id="site-1",
                active_users=4,
                avg_scroll_percentage=62.5,
                total_clicks=9,
                users_by_country={"DE": 3, "US": 1},
                updated_at=datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc),
            )
        )
        return stats_repo

    @pytest.fixture()
    def repos(self, seeded_stats_repo):
        with patch(
            "proofpulse.cli.stats.build_repositories",
            return_value=(MagicMock(), MagicMock(), MagicMock(), seeded_stats_repo),
        ):
            yield

    def test_json(self, repos):
        """JSON output is the stored snapshot document."""
        result = runner.invoke(app, ["stats", "show", "site-1", "--json"])
        assert result.exit_code == 0
        document = json.loads(result.stdout)
        assert document["activeUsers"] == 4
        assert document["usersByCountry"] == {"DE": 3, "US": 1}

    def test_table(self, repos):
        """Plain output renders the snapshot and country breakdown."""
        result = runner.invoke(app, ["stats", "show", "site-1"])
        assert result.exit_code == 0
        assert "Active users" in result.output
        assert "DE" in result.output

    def test_missing(self, repos):
        """A website without a snapshot exits non-zero."""
        result = runner.invoke(app, ["stats", "show", "nobody", "--json"])
        assert result.exit_code == 1
        assert json.loads(result.stdout)["websiteId"] == "nobody"


# ==============================================================================
# db init
# ==============================================================================


class TestDbInit:
    """Tests for `proofpulse db init`."""

    def test_success(self):
        """A created schema is reported."""
        with patch("proofpulse.cli.db.ensure_schema") as ensure_schema:
            result = runner.invoke(app, ["db", "init"])
        assert result.exit_code == 0
        assert "Schema ready" in result.output
        ensure_schema.assert_called_once()

    def test_failure(self):
        """A database error exits non-zero."""
        with patch(
            "proofpulse.cli.db.ensure_schema",
            side_effect=psycopg2.OperationalError("connection refused"),
        ):
            result = runner.invoke(app, ["db", "init"])
        assert result.exit_code == 1
        assert "failed" in result.output
