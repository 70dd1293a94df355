# ==============================================================================
# Stats Command
# ==============================================================================
"""
Shows the stored engagement snapshot of a website.
"""

import json
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from proofpulse.cli.shared import C, I
from proofpulse.core.errors import TransientStoreError
from proofpulse.tracking.service import build_repositories
from proofpulse.utils.config import get_settings


def _close_all(repos) -> None:
    for repo in repos:
        close = getattr(repo, "close", None)
        if close is not None:
            close()


def stats_show(
    website_id: Annotated[str, typer.Argument(help="Website id")],
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Show the latest engagement snapshot for a website.

    Examples:
        proofpulse stats show site-1
        proofpulse stats show site-1 --json
    """
    settings = get_settings()

    try:
        repos = build_repositories(settings)
    except TransientStoreError as e:
        print(f"\n  {C.BRIGHT_RED}{I.CROSS} Store unavailable: {e}{C.RESET}\n")
        raise typer.Exit(1)

    try:
        stats = repos[3].get(website_id)
    except TransientStoreError as e:
        print(f"\n  {C.BRIGHT_RED}{I.CROSS} Store unavailable: {e}{C.RESET}\n")
        raise typer.Exit(1)
    finally:
        _close_all(repos)

    if stats is None:
        if json_output:
            print(json.dumps({"error": "No stats available", "websiteId": website_id}))
        else:
            print(
                f"\n  {C.BRIGHT_YELLOW}{I.WARN} No stats available for "
                f"website '{website_id}'{C.RESET}"
            )
            print(f"  {C.DIM}Stats are written by the periodic aggregation pass.{C.RESET}")
            print()
        raise typer.Exit(1)

    if json_output:
        print(json.dumps(stats.to_document()))
        return

    console = Console()
    table = Table(title=f"Engagement: {website_id}", show_header=True, header_style="bold")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Active users", f"{stats.active_users:,}")
    table.add_row("Avg scroll", f"{stats.avg_scroll_percentage:.2f}%")
    table.add_row("Avg time on page", f"{stats.avg_time_on_page:.2f}s")
    table.add_row("Total clicks", f"{stats.total_clicks:,}")

    print()
    console.print(table)

    for title, counts in (("Country", stats.users_by_country), ("City", stats.users_by_city)):
        if not counts:
            continue
        breakdown = Table(show_header=True, header_style="bold")
        breakdown.add_column(title)
        breakdown.add_column("Users", justify="right")
        for name, count in sorted(counts.items(), key=lambda item: item[1], reverse=True):
            breakdown.add_row(name, f"{count:,}")
        console.print(breakdown)

    print(f"  {C.DIM}Updated at {stats.updated_at.strftime('%Y-%m-%d %H:%M:%S')}{C.RESET}")
    print()
