# ==============================================================================
# ProofPulse CLI
# ==============================================================================
"""
Command-line interface for the proofpulse engagement tracker.

Usage:
    proofpulse --help
    proofpulse config show
    proofpulse bot check --user-agent "Googlebot/2.1"
    proofpulse stats show site-1
    proofpulse db init
"""

# ==============================================================================
# App Configuration
# ==============================================================================
# Set consistent terminal width for help output formatting
import os

import typer

from proofpulse.cli.shared import configure_logging
from proofpulse.utils.config import get_settings

if "COLUMNS" not in os.environ:
    os.environ["COLUMNS"] = "115"

app = typer.Typer(
    name="proofpulse",
    help="Real-time engagement tracking CLI",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@app.callback()
def main_callback() -> None:
    """Real-time engagement tracking CLI."""
    configure_logging(get_settings())


config_app = typer.Typer(
    help="Configuration management",
    no_args_is_help=True,
)
app.add_typer(config_app, name="config")

from proofpulse.cli.config import config_show

config_app.command("show")(config_show)

bot_app = typer.Typer(
    help="Bot classification",
    no_args_is_help=True,
)
app.add_typer(bot_app, name="bot")

from proofpulse.cli.bot import bot_check

bot_app.command("check")(bot_check)

stats_app = typer.Typer(
    help="Website engagement stats",
    no_args_is_help=True,
)
app.add_typer(stats_app, name="stats")

from proofpulse.cli.stats import stats_show

stats_app.command("show")(stats_show)

db_app = typer.Typer(
    help="Database operations",
    no_args_is_help=True,
)
app.add_typer(db_app, name="db")

from proofpulse.cli.db import db_init

db_app.command("init")(db_init)


# ==============================================================================
# Entry Point
# ==============================================================================


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
