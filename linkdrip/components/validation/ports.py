"""
Validation component - Port interfaces.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from linkdrip.domain.entities import DiscoveredOpportunity


class OpportunityRepoPort(Protocol):
    """Repository interface for opportunities under validation."""

    def save(self, opp: DiscoveredOpportunity) -> DiscoveredOpportunity:
        ...

    def list_by_ids(self, ids: list[UUID]) -> list[DiscoveredOpportunity]:
        ...

    def list_by_status(self, statuses: list[str], limit: int = 50) -> list[DiscoveredOpportunity]:
        ...


class ClockPort(Protocol):
    def now_utc(self) -> datetime:
        ...
