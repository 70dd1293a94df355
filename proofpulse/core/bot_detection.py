# ==============================================================================
# Bot Detection - Pure Domain Logic
# ==============================================================================
"""
Heuristic bot-traffic classification.

Three independent checks are ORed together:
- User agent matches a known crawler / preview / monitoring signature
- IP address starts with a known crawler range prefix
- Request behavior looks scripted (no referrer on a repeat request, or
  requests arriving faster than a human could trigger them)

Everything here is a pure function of its inputs: no I/O, no shared state.
"""

import re

from proofpulse.core.models import BotSignals

# Requests closer together than this (milliseconds) are treated as scripted
FAST_REQUEST_THRESHOLD_MS = 200

BOT_USER_AGENT_PATTERNS = [
    # Generic markers
    r"bot",
    r"crawler",
    r"spider",
    r"headless",
    # Search engines
    r"slurp",
    r"yahoo",
    r"yandex",
    r"baidu",
    r"bingbot",
    r"googlebot",
    r"baiduspider",
    # Social previews
    r"facebookexternalhit",
    r"facebook",
    r"twitterbot",
    r"linkedinbot",
    r"embedly",
    r"quora link preview",
    r"showyoubot",
    r"outbrain",
    r"pinterest",
    r"vkshare",
    # SEO, validators and uptime monitors
    r"rogerbot",
    r"semrush",
    r"ahrefsbot",
    r"w3c_validator",
    r"favicon",
    r"pingdom",
    r"uptimerobot",
    r"statuscake",
    r"lighthouse",
    r"chrome-lighthouse",
]

KNOWN_BOT_IP_PREFIXES = (
    "66.249.64.",  # Google
    "66.249.66.",
    "66.249.90.",
    "157.55.39.",  # Bing
    "40.77.167.",
    "17.58.98.",  # Apple
    "17.58.99.",
    "199.16.156.",  # Twitter
    "199.59.148.",
    "199.59.149.",
    "199.59.150.",
    "208.115.111.",  # Alexa
    "208.115.112.",
    "204.62.14.",  # Baidu
    "180.76.15.",
)

_BOT_USER_AGENT_RE = re.compile("|".join(BOT_USER_AGENT_PATTERNS), re.IGNORECASE)


def is_bot_user_agent(user_agent: str | None) -> bool:
    """True if the user agent matches a known bot signature."""
    if not user_agent:
        return False
    return _BOT_USER_AGENT_RE.search(user_agent) is not None


def is_bot_ip(ip: str | None) -> bool:
    """True if the IP address falls in a known crawler range."""
    if not ip:
        return False
    return ip.startswith(KNOWN_BOT_IP_PREFIXES)


def has_bot_behavior(
    referrer: str | None,
    request_interval: float | None,
    fast_request_threshold_ms: float = FAST_REQUEST_THRESHOLD_MS,
) -> bool:
    """
    Check request timing and referrer for scripted behavior.

    A defined ``request_interval`` means this is not the visitor's first
    request; a repeat request without a referrer, or one that arrives within
    ``fast_request_threshold_ms`` of the previous one, is flagged.
    """
    if request_interval is None:
        return False
    return not referrer or request_interval < fast_request_threshold_ms


def is_bot(
    signals: BotSignals,
    fast_request_threshold_ms: float = FAST_REQUEST_THRESHOLD_MS,
) -> bool:
    """
    Classify a request as bot (True) or human (False).

    Args:
        signals: User agent, IP, referrer and request interval of the request
        fast_request_threshold_ms: Interval below which requests are scripted

    Returns:
        True if any heuristic flags the request
    """
    return (
        is_bot_user_agent(signals.user_agent)
        or is_bot_ip(signals.ip)
        or has_bot_behavior(signals.referrer, signals.request_interval, fast_request_threshold_ms)
    )
