# ==============================================================================
# Config Commands
# ==============================================================================
"""
Configuration commands for the proofpulse CLI.
"""

import json
from typing import Annotated

import typer

from proofpulse.cli.shared import C
from proofpulse.utils.config import get_settings


# ==============================================================================
# Commands
# ==============================================================================


def config_show(
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output configuration as JSON")
    ] = False,
) -> None:
    """Display current configuration (includes secrets in JSON mode)."""
    settings = get_settings()

    if json_output:
        config = {
            "storage": {
                "backend": settings.storage.backend,
            },
            "valkey": {
                "host": settings.valkey.host,
                "port": settings.valkey.port,
                "db": settings.valkey.db,
                "ssl_enabled": settings.valkey.ssl,
                "password": settings.valkey.password,
            },
            "postgresql": {
                "host": settings.postgres.host,
                "port": settings.postgres.port,
                "database": settings.postgres.database,
                "schema": settings.postgres.schema_name,
                "user": settings.postgres.user,
                "password": settings.postgres.password,
                "sslmode": settings.postgres.sslmode,
            },
            "tracking": settings.tracking.model_dump(),
            "geo": {
                "enabled": settings.geo.enabled,
                "api_url": settings.geo.api_url,
                "api_key": settings.geo.api_key,
                "timeout_seconds": settings.geo.timeout_seconds,
                "cache_ttl_hours": settings.geo.cache_ttl_hours,
                "daily_quota": settings.geo.daily_quota,
            },
            "log_level": settings.log_level,
            "debug": settings.debug,
        }
        print(json.dumps(config, indent=2))
        return

    tracking = settings.tracking

    print()
    print(f"{C.BOLD}Configuration{C.RESET}")
    print()

    print(f"{C.CYAN}Storage{C.RESET}")
    print(f"  Backend:    {C.WHITE}{settings.storage.backend}{C.RESET}")
    print()

    print(f"{C.CYAN}Valkey{C.RESET}")
    print(f"  Host:       {C.WHITE}{settings.valkey.host}{C.RESET}")
    print(f"  Port:       {C.WHITE}{settings.valkey.port}{C.RESET}")
    valkey_ssl = "enabled" if settings.valkey.ssl else "disabled"
    print(f"  SSL:        {C.WHITE}{valkey_ssl}{C.RESET}")
    print()

    print(f"{C.CYAN}PostgreSQL{C.RESET}")
    print(f"  Host:       {C.WHITE}{settings.postgres.host}{C.RESET}")
    print(f"  Port:       {C.WHITE}{settings.postgres.port}{C.RESET}")
    print(f"  Database:   {C.WHITE}{settings.postgres.database}{C.RESET}")
    print(f"  Schema:     {C.WHITE}{settings.postgres.schema_name}{C.RESET}")
    print(f"  User:       {C.WHITE}{settings.postgres.user}{C.RESET}")
    print()

    print(f"{C.CYAN}Tracking{C.RESET}")
    print(f"  Session:    {C.WHITE}{tracking.session_timeout_seconds}s timeout{C.RESET}")
    print(f"  Sweep:      {C.WHITE}every {tracking.sweep_interval_seconds}s{C.RESET}")
    print(f"  Stats:      {C.WHITE}every {tracking.stats_interval_seconds}s{C.RESET}")
    dedup = (
        f"{tracking.impression_dedup_ttl_seconds}s"
        if tracking.impression_dedup_ttl_seconds > 0
        else "disabled"
    )
    print(f"  Dedup TTL:  {C.WHITE}{dedup}{C.RESET}")
    print(f"  Fast req:   {C.WHITE}< {tracking.fast_request_threshold_ms}ms{C.RESET}")
    print()

    print(f"{C.CYAN}Geolocation{C.RESET}")
    geo_status = "enabled" if settings.geo.enabled else "disabled"
    print(f"  Status:     {C.WHITE}{geo_status}{C.RESET}")
    print(f"  API:        {C.WHITE}{settings.geo.api_url}{C.RESET}")
    print(f"  Quota:      {C.WHITE}{settings.geo.daily_quota}/day{C.RESET}")
    print()
