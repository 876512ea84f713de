"""
Crawler component - Discovery crawl jobs.

Shell Layer - handles input validation and error conversion.
"""

from __future__ import annotations

from ._impl import CrawlerService, format_url
from .models import (
    CrawlJobOutput,
    CrawlerValidationError,
    EnrichResult,
    GetJobInput,
    RefreshResult,
    StartCrawlInput,
)

JOB_TYPES = (
    "all",
    "resource_page",
    "directory",
    "blog",
    "guest_post",
    "competitor_backlink",
    "social_mention",
    "forum",
    "comment_section",
)


def validate_start_input(input_data: StartCrawlInput) -> list[CrawlerValidationError]:
    errors: list[CrawlerValidationError] = []

    if input_data.job_type not in JOB_TYPES:
        errors.append(
            CrawlerValidationError(
                code="job_type_invalid",
                message=f"Unknown job type '{input_data.job_type}'",
                field="job_type",
            )
        )

    if not input_data.start_urls:
        errors.append(
            CrawlerValidationError(
                code="start_urls_required",
                message="At least one start URL is required",
                field="start_urls",
            )
        )

    for url in input_data.start_urls:
        if not url or not url.strip() or " " in url.strip():
            errors.append(
                CrawlerValidationError(
                    code="start_url_invalid",
                    message=f"Invalid start URL '{url}'",
                    field="start_urls",
                )
            )

    return errors


def run_start_crawl(input_data: StartCrawlInput, service: CrawlerService) -> CrawlJobOutput:
    """Validate and launch a discovery crawl."""
    errors = validate_start_input(input_data)
    if errors:
        return CrawlJobOutput(job=None, errors=tuple(errors), success=False)

    urls = [format_url(u) for u in input_data.start_urls]
    job = service.start_discovery_crawl(input_data.job_type, urls, background=input_data.background)
    return CrawlJobOutput(job=job, errors=(), success=True)


def run_get_job(input_data: GetJobInput, service: CrawlerService) -> CrawlJobOutput:
    """Get a crawl job by ID."""
    job = service.get_job(input_data.job_id)
    if job is None:
        return CrawlJobOutput(
            job=None,
            errors=(
                CrawlerValidationError(
                    code="job_not_found",
                    message=f"Crawler job with ID {input_data.job_id} not found",
                ),
            ),
            success=False,
        )
    return CrawlJobOutput(job=job, errors=(), success=True)


def run_enrich(service: CrawlerService) -> EnrichResult:
    """Attach metrics to discovered opportunities."""
    return service.enrich_with_metrics()


def run_refresh(service: CrawlerService) -> RefreshResult:
    """Re-check stale opportunities."""
    return service.refresh_opportunities()
