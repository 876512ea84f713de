"""
Crawler component - Opportunity discovery from seed pages.
"""

from ._impl import (
    CrawlerService,
    analyze_page,
    classify_page,
    extract_domain,
    format_url,
    matches_job_type,
)
from .component import JOB_TYPES, run_enrich, run_get_job, run_refresh, run_start_crawl
from .models import (
    DEFAULT_CONFIG,
    DEFAULT_TARGET_PATTERNS,
    CrawlerConfig,
    CrawlerValidationError,
    CrawlJobOutput,
    CrawlResult,
    EnrichResult,
    GetJobInput,
    PageAnalysis,
    RefreshResult,
    StartCrawlInput,
)
from .ports import ClockPort, CrawlerJobRepoPort, OpportunityRepoPort

__all__ = [
    # Entry points
    "run_start_crawl",
    "run_get_job",
    "run_enrich",
    "run_refresh",
    "JOB_TYPES",
    # Input models
    "StartCrawlInput",
    "GetJobInput",
    # Output models
    "CrawlJobOutput",
    "CrawlResult",
    "EnrichResult",
    "PageAnalysis",
    "RefreshResult",
    "CrawlerValidationError",
    # Config
    "CrawlerConfig",
    "DEFAULT_CONFIG",
    "DEFAULT_TARGET_PATTERNS",
    # Ports
    "ClockPort",
    "CrawlerJobRepoPort",
    "OpportunityRepoPort",
    # Service
    "CrawlerService",
    "analyze_page",
    "classify_page",
    "extract_domain",
    "format_url",
    "matches_job_type",
]
