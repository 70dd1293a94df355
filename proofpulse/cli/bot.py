# ==============================================================================
# Bot Check Command
# ==============================================================================
"""
Runs the bot classifier against hand-supplied request signals.

Useful for checking why a given user agent or IP was (or was not) counted.
"""

import json
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from proofpulse.cli.shared import C, I, yes_no
from proofpulse.core.bot_detection import has_bot_behavior, is_bot, is_bot_ip, is_bot_user_agent
from proofpulse.core.models import BotSignals
from proofpulse.utils.config import get_settings


def bot_check(
    user_agent: Annotated[
        Optional[str], typer.Option("--user-agent", "-u", help="User-Agent header")
    ] = None,
    ip: Annotated[Optional[str], typer.Option("--ip", help="Client IP address")] = None,
    referrer: Annotated[
        Optional[str], typer.Option("--referrer", "-r", help="Referer header")
    ] = None,
    interval: Annotated[
        Optional[float],
        typer.Option("--interval", "-i", help="Milliseconds since the previous request"),
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Classify a request as bot or human.

    Examples:
        proofpulse bot check --user-agent "Googlebot/2.1"
        proofpulse bot check --ip 66.249.66.1 --referrer https://example.com --interval 50
    """
    threshold = get_settings().tracking.fast_request_threshold_ms
    signals = BotSignals(user_agent=user_agent, ip=ip, referrer=referrer, request_interval=interval)

    checks = {
        "user_agent": is_bot_user_agent(user_agent),
        "ip": is_bot_ip(ip),
        "behavior": has_bot_behavior(referrer, interval, threshold),
    }
    verdict = is_bot(signals, threshold)

    if json_output:
        print(json.dumps({"isBot": verdict, "signals": signals.to_document(), "checks": checks}))
        return

    console = Console()
    table = Table(title="Bot Signals", show_header=True, header_style="bold")
    table.add_column("Check")
    table.add_column("Input")
    table.add_column("Bot", justify="center")
    table.add_row("User agent", user_agent or "-", "yes" if checks["user_agent"] else "no")
    table.add_row("IP prefix", ip or "-", "yes" if checks["ip"] else "no")
    behavior_input = f"referrer={referrer or '-'} interval={interval if interval is not None else '-'}"
    table.add_row("Behavior", behavior_input, "yes" if checks["behavior"] else "no")

    print()
    console.print(table)
    print(f"  {C.BOLD}Bot:{C.RESET} {yes_no(verdict)}")
    if not verdict:
        print(f"  {C.DIM}{I.BULLET} Would be counted{C.RESET}")
    print()
