"""
Crawler component - Port interfaces.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from linkdrip.domain.entities import CrawlerJob, DiscoveredOpportunity


class OpportunityRepoPort(Protocol):
    """Repository interface for discovered opportunities."""

    def save(self, opp: DiscoveredOpportunity) -> DiscoveredOpportunity:
        """Save or update an opportunity."""
        ...

    def get_by_id(self, opportunity_id: UUID) -> DiscoveredOpportunity | None:
        """Get opportunity by ID."""
        ...

    def get_by_url(self, url: str) -> DiscoveredOpportunity | None:
        """Get opportunity by its unique URL."""
        ...

    def list_by_ids(self, ids: list[UUID]) -> list[DiscoveredOpportunity]:
        """Get several opportunities by ID."""
        ...

    def list_by_status(self, statuses: list[str], limit: int = 50) -> list[DiscoveredOpportunity]:
        """Oldest first."""
        ...

    def list_stale(self, checked_before: datetime, limit: int = 25) -> list[DiscoveredOpportunity]:
        """Opportunities not checked since the cutoff, oldest first."""
        ...


class CrawlerJobRepoPort(Protocol):
    """Repository interface for crawl jobs."""

    def save(self, job: CrawlerJob) -> CrawlerJob:
        """Save or update a job."""
        ...

    def get_by_id(self, job_id: UUID) -> CrawlerJob | None:
        """Get job by ID."""
        ...

    def list_recent(self, limit: int = 20) -> list[CrawlerJob]:
        """Newest first."""
        ...


class ClockPort(Protocol):
    """Time source with an injectable sleep for crawl politeness delays."""

    def now_utc(self) -> datetime:
        ...

    def sleep(self, seconds: float) -> None:
        ...
