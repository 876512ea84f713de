"""
Maintenance component - Port interfaces.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from linkdrip.domain.entities import CrawlerJob


class CrawlerJobRepoPort(Protocol):
    def save(self, job: CrawlerJob) -> CrawlerJob:
        ...

    def list_stalled(self, started_before: datetime, limit: int = 10) -> list[CrawlerJob]:
        """In-progress jobs started before the cutoff, oldest first."""
        ...


class ClockPort(Protocol):
    def now_utc(self) -> datetime:
        ...
