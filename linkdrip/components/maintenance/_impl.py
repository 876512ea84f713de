"""
MaintenanceService - Stalled crawler job cleanup.

A crawl that dies with its process leaves its job in_progress forever.
Jobs running longer than the configured maximum are marked failed so
job listings stay truthful.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from .models import DEFAULT_CONFIG, STALLED_JOB_ERROR, CleanupResult, MaintenanceConfig
from .ports import ClockPort, CrawlerJobRepoPort

logger = logging.getLogger(__name__)


class MaintenanceService:
    def __init__(
        self,
        job_repo: CrawlerJobRepoPort,
        clock: ClockPort,
        config: MaintenanceConfig = DEFAULT_CONFIG,
    ) -> None:
        self._jobs = job_repo
        self._clock = clock
        self._config = config

    def clean_stalled_jobs(self, now: datetime | None = None) -> CleanupResult:
        """Fail every job that has been in progress past the maximum duration."""
        now = now or self._clock.now_utc()
        cutoff = now - timedelta(hours=self._config.max_job_duration_hours)
        stalled = self._jobs.list_stalled(cutoff, limit=self._config.max_jobs_per_run)

        logger.info("Found %d stalled crawler jobs", len(stalled))
        if not stalled:
            return CleanupResult(found=0, cleaned=0, failed=0)

        cleaned = 0
        failed = 0
        size = max(1, self._config.batch_size)
        for start in range(0, len(stalled), size):
            batch = stalled[start : start + size]
            logger.info(
                "Processing stalled job batch %d of %d",
                start // size + 1,
                (len(stalled) + size - 1) // size,
            )
            for job in batch:
                try:
                    started = job.started_at or now
                    job.status = "failed"
                    job.completed_at = now
                    job.error = STALLED_JOB_ERROR
                    self._jobs.save(job)
                    logger.info(
                        "Cleaned job %s (%s), was running for %d seconds",
                        job.id,
                        job.job_type,
                        int((now - started).total_seconds()),
                    )
                    cleaned += 1
                except Exception:
                    logger.exception("Failed to clean job %s", job.id)
                    failed += 1

        logger.info("Cleanup complete: %d cleaned, %d failed", cleaned, failed)
        return CleanupResult(found=len(stalled), cleaned=cleaned, failed=failed)
