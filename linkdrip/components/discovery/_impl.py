"""
DiscoveryScheduler - End-to-end discovery pipeline.

Steps:
1. Profile all active websites
2. Crawl the configured seed URLs
3. Enrich discovered opportunities with domain metrics
4. Validate the next batch of discovered opportunities
5. Record pending matches for new opportunities
6. Deliver today's drips

Key behaviors:
- Only one run at a time; an overlapping call is skipped, not queued
- A failing step is counted and logged; later steps still run
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime

from .models import PipelineResult, PipelineStats
from .ports import ClockPort, CrawlerPort, MatcherPort, ValidatorPort, WebsiteAnalyzerPort

logger = logging.getLogger(__name__)


class DiscoveryScheduler:
    """Coordinates analysis, crawling, validation and matching."""

    def __init__(
        self,
        analyzer: WebsiteAnalyzerPort,
        crawler: CrawlerPort,
        validator: ValidatorPort,
        matcher: MatcherPort,
        clock: ClockPort,
    ) -> None:
        self._analyzer = analyzer
        self._crawler = crawler
        self._validator = validator
        self._matcher = matcher
        self._clock = clock
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    def run_pipeline(self, now: datetime | None = None) -> PipelineResult:
        if not self._lock.acquire(blocking=False):
            logger.info("Discovery pipeline already running, skipping")
            return PipelineResult(success=False, stats=PipelineStats(skipped=True))

        try:
            return self._run(now or self._clock.now_utc())
        finally:
            self._lock.release()

    def _run(self, now: datetime) -> PipelineResult:
        logger.info("Starting discovery pipeline")
        stats = PipelineStats(start_time=now)

        try:
            result = self._analyzer.process_all_websites()
            stats.websites_analyzed = result.analyzed
            stats.errors += result.failed
        except Exception:
            logger.exception("Website analysis step failed")
            stats.errors += 1

        try:
            urls = self._crawler.all_seed_urls()
            if urls:
                job = self._crawler.start_discovery_crawl("all", urls, background=False)
                stats.opportunities_discovered = int(job.results.get("discovered", 0))
                if job.status == "failed":
                    stats.errors += 1
            else:
                logger.info("No seed URLs configured, skipping crawl")
        except Exception:
            logger.exception("Discovery crawl step failed")
            stats.errors += 1

        try:
            stats.enriched = self._crawler.enrich_with_metrics().updated
        except Exception:
            logger.exception("Metrics enrichment step failed")
            stats.errors += 1

        try:
            stats.validated = self._validator.process_batch().passing
        except Exception:
            logger.exception("Validation step failed")
            stats.errors += 1

        try:
            stats.matches_created = self._matcher.process_new_opportunities()
        except Exception:
            logger.exception("Match creation step failed")
            stats.errors += 1

        try:
            stats.drips_assigned = self._matcher.assign_daily_opportunities(now.date())
        except Exception:
            logger.exception("Drip assignment step failed")
            stats.errors += 1

        stats.end_time = self._clock.now_utc()
        stats.duration_ms = max(
            0, int((stats.end_time - now).total_seconds() * 1000)
        )
        logger.info(
            "Discovery pipeline finished: %d analyzed, %d discovered, %d validated, "
            "%d matches, %d drips, %d errors",
            stats.websites_analyzed,
            stats.opportunities_discovered,
            stats.validated,
            stats.matches_created,
            stats.drips_assigned,
            stats.errors,
        )
        return PipelineResult(success=True, stats=stats)
