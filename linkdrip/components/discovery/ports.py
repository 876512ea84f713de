"""
Discovery component - Port interfaces.

The pipeline only needs a narrow slice of each service, so it depends on
these protocols rather than on the concrete components.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Protocol

from linkdrip.domain.entities import CrawlerJob


class AnalyzeCountsPort(Protocol):
    analyzed: int
    failed: int


class WebsiteAnalyzerPort(Protocol):
    def process_all_websites(self) -> AnalyzeCountsPort:
        ...


class EnrichCountsPort(Protocol):
    updated: int
    failed: int


class CrawlerPort(Protocol):
    def all_seed_urls(self) -> list[str]:
        ...

    def start_discovery_crawl(
        self, job_type: str, start_urls: list[str], background: bool = True
    ) -> CrawlerJob:
        ...

    def enrich_with_metrics(self) -> EnrichCountsPort:
        ...


class BatchCountsPort(Protocol):
    passing: int


class ValidatorPort(Protocol):
    def process_batch(self) -> BatchCountsPort:
        ...


class MatcherPort(Protocol):
    def process_new_opportunities(self) -> int:
        ...

    def assign_daily_opportunities(self, today: date | None = None) -> int:
        ...


class ClockPort(Protocol):
    def now_utc(self) -> datetime:
        ...
