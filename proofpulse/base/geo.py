# ==============================================================================
# Geo Locator Abstract Base Class
# ==============================================================================
"""
Abstract interface for resolving a visitor IP address to a location.

The lookup is an external collaborator of the session tracker; it is
consulted only when a session is created.
"""

from abc import ABC, abstractmethod

from proofpulse.core.models import Location


class GeoLocator(ABC):
    """Resolves IP addresses to locations."""

    @abstractmethod
    def locate(self, ip_address: str) -> Location | None:
        """
        Resolve an IP address.

        Args:
            ip_address: Visitor IP address

        Returns:
            Location, or None if it could not be resolved
        """
        ...
