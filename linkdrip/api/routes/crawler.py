"""Routes for crawl jobs."""

from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from linkdrip.api.deps import error_detail, get_crawler_service, get_current_user
from linkdrip.components.crawler import (
    CrawlerService,
    GetJobInput,
    StartCrawlInput,
    run_get_job,
    run_start_crawl,
)
from linkdrip.domain.entities import CrawlerJob, JobStatus, User

router = APIRouter()


class CrawlRequest(BaseModel):
    job_type: str = "all"
    start_urls: list[str]


class JobResponse(BaseModel):
    id: str
    job_type: str
    target_url: str | None
    status: JobStatus
    started_at: datetime | None
    completed_at: datetime | None
    results: dict[str, Any]
    error: str | None


def _job_response(job: CrawlerJob) -> JobResponse:
    return JobResponse(
        id=str(job.id),
        job_type=job.job_type,
        target_url=job.target_url,
        status=job.status,
        started_at=job.started_at,
        completed_at=job.completed_at,
        results=job.results,
        error=job.error,
    )


@router.post("/jobs", response_model=JobResponse, status_code=202)
def start_crawl(
    data: CrawlRequest,
    current_user: User = Depends(get_current_user),
    service: CrawlerService = Depends(get_crawler_service),
) -> JobResponse:
    """Start a discovery crawl in the background."""
    result = run_start_crawl(
        StartCrawlInput(job_type=data.job_type, start_urls=tuple(data.start_urls)), service
    )
    if not result.success or result.job is None:
        raise HTTPException(status_code=400, detail=error_detail(result.errors))
    return _job_response(result.job)


@router.get("/jobs", response_model=list[JobResponse])
def list_jobs(
    limit: int = Query(default=20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: CrawlerService = Depends(get_crawler_service),
) -> list[JobResponse]:
    return [_job_response(j) for j in service.list_jobs(limit)]


@router.get("/jobs/{job_id}", response_model=JobResponse)
def get_job(
    job_id: UUID,
    current_user: User = Depends(get_current_user),
    service: CrawlerService = Depends(get_crawler_service),
) -> JobResponse:
    result = run_get_job(GetJobInput(job_id=job_id), service)
    if not result.success or result.job is None:
        raise HTTPException(status_code=404, detail=error_detail(result.errors))
    return _job_response(result.job)
