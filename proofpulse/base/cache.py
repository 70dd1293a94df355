# ==============================================================================
# Cache Abstract Base Class
# ==============================================================================
"""
Abstract interface for key-value caching with expiry.

This is NOT a repository (which represents domain object collections).
Cache is transient storage: sessions, dedup markers, geo lookups.

Implementations: in-memory TTL cache.
"""

from abc import ABC, abstractmethod
from typing import Generic, Hashable, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class Cache(ABC, Generic[K, V]):
    """
    Generic cache interface for key-value storage with expiry.

    Missing and expired keys are not errors; ``get`` returns None for both.
    """

    @abstractmethod
    def get(self, key: K) -> V | None:
        """
        Get a cached value.

        Args:
            key: Cache key

        Returns:
            Cached value, or None if not found or expired
        """
        ...

    @abstractmethod
    def set(self, key: K, value: V) -> None:
        """
        Set a cached value, restarting its expiry clock.

        Args:
            key: Cache key
            value: Value to cache
        """
        ...

    @abstractmethod
    def delete(self, key: K) -> bool:
        """
        Delete a key.

        Args:
            key: Cache key to delete

        Returns:
            True if key was deleted, False if not found
        """
        ...

    @abstractmethod
    def clear(self) -> None:
        """Remove every entry."""
        ...
