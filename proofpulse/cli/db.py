# ==============================================================================
# Database Commands
# ==============================================================================
"""
PostgreSQL schema management for the proofpulse CLI.
"""

import psycopg2
import typer

from proofpulse.cli.shared import C, I
from proofpulse.utils.config import get_settings
from proofpulse.utils.db import ensure_schema


def db_init() -> None:
    """Create the PostgreSQL schema and tables if they don't exist."""
    settings = get_settings()
    print(f"  Initializing schema '{settings.postgres.schema_name}'...")
    try:
        ensure_schema(settings)
    except psycopg2.Error as e:
        print(f"  {C.BRIGHT_RED}{I.CROSS} Schema initialization failed: {e}{C.RESET}")
        raise typer.Exit(1)
    print(f"  {C.BRIGHT_GREEN}{I.CHECK} Schema ready{C.RESET}")
