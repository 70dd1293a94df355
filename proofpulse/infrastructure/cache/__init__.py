# ==============================================================================
# Cache Infrastructure
# ==============================================================================
"""
Cache implementations for the ports-and-adapters architecture.

Available implementations:
- TTLCache: thread-safe in-memory cache with lazy and periodic expiry
"""

from proofpulse.infrastructure.cache.memory import TTLCache

__all__ = [
    "TTLCache",
]
