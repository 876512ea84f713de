from __future__ import annotations

from typing import Protocol


class DnsResolverPort(Protocol):
    """Hostname resolution interface."""

    def resolves(self, hostname: str) -> bool:
        """Return True when the hostname has at least one address record."""
        ...
