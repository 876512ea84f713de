"""
Unit tests for Maintenance component.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from linkdrip.adapters.clock import FixedClock
from linkdrip.domain.entities import CrawlerJob

from .._impl import MaintenanceService
from ..models import STALLED_JOB_ERROR, MaintenanceConfig

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)


class InMemoryJobRepo:
    def __init__(self, jobs: list[CrawlerJob]) -> None:
        self.items = {j.id: j for j in jobs}
        self.broken: set = set()

    def save(self, job: CrawlerJob) -> CrawlerJob:
        if job.id in self.broken:
            raise RuntimeError("write failed")
        self.items[job.id] = job
        return job

    def list_stalled(self, started_before: datetime, limit: int = 10) -> list[CrawlerJob]:
        found = [
            j.model_copy()
            for j in self.items.values()
            if j.status == "in_progress" and j.started_at and j.started_at < started_before
        ]
        found.sort(key=lambda j: j.started_at)
        return found[:limit]


def job(status: str = "in_progress", hours_ago: float = 2) -> CrawlerJob:
    return CrawlerJob(job_type="all", status=status, started_at=NOW - timedelta(hours=hours_ago))


class TestCleanStalledJobs:
    def test_fails_jobs_past_max_duration(self) -> None:
        stalled = job(hours_ago=3)
        recent = job(hours_ago=0.5)
        done = job(status="completed", hours_ago=5)
        repo = InMemoryJobRepo([stalled, recent, done])

        result = MaintenanceService(repo, FixedClock(NOW)).clean_stalled_jobs()

        assert (result.found, result.cleaned, result.failed) == (1, 1, 0)
        cleaned = repo.items[stalled.id]
        assert cleaned.status == "failed"
        assert cleaned.completed_at == NOW
        assert cleaned.error == STALLED_JOB_ERROR
        assert repo.items[recent.id].status == "in_progress"
        assert repo.items[done.id].status == "completed"

    def test_batches_and_failures(self) -> None:
        jobs = [job(hours_ago=2 + i) for i in range(5)]
        repo = InMemoryJobRepo(jobs)
        repo.broken.add(jobs[2].id)
        service = MaintenanceService(repo, FixedClock(NOW), MaintenanceConfig(batch_size=2))

        result = service.clean_stalled_jobs()

        assert (result.found, result.cleaned, result.failed) == (5, 4, 1)
        assert repo.items[jobs[2].id].status == "in_progress"

    def test_nothing_to_do(self) -> None:
        result = MaintenanceService(InMemoryJobRepo([]), FixedClock(NOW)).clean_stalled_jobs()
        assert (result.found, result.cleaned, result.failed) == (0, 0, 0)

    def test_explicit_now(self) -> None:
        stalled = job(hours_ago=0.5)
        repo = InMemoryJobRepo([stalled])
        result = MaintenanceService(repo, FixedClock(NOW)).clean_stalled_jobs(NOW + timedelta(hours=1))
        assert result.cleaned == 1
