"""
Crawler component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from linkdrip.domain.entities import ContactInfo, CrawlerJob, SourceType
from linkdrip.rules.models import CrawlerRules

# --- Configuration ---

DEFAULT_TARGET_PATTERNS: dict[str, tuple[str, ...]] = {
    "resource_page": (
        "resources", "links", "useful-links", "helpful-resources", "recommended", "tools",
    ),
    "guest_post": (
        "write-for-us", "guest-post", "contribute", "contributors",
        "submit-article", "submission-guidelines",
    ),
    "directory": ("directory", "listings", "businesses", "sites", "catalog"),
    "forum": ("forum", "community", "discussions", "board"),
    "blog": ("blog", "article", "news", "posts", "stories"),
    "competitor_backlink": ("backlinks", "links", "referrals", "referring-domains"),
    "social_mention": ("mentions", "social", "share", "shares"),
    "comment_section": ("comments", "responses", "discussion", "feedback"),
}


@dataclass(frozen=True)
class CrawlerConfig:
    """Crawler configuration from rules."""

    request_timeout_seconds: float = 30
    crawl_delay_seconds: float = 5
    max_depth: int = 2
    links_to_follow: int = 5
    content_excerpt_length: int = 1000
    target_patterns: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_TARGET_PATTERNS)
    )
    continuous_types: tuple[str, ...] = ("resource_page", "directory", "guest_post", "forum")
    seed_urls: dict[str, tuple[str, ...]] = field(default_factory=dict)
    refresh_after_days: int = 7
    refresh_limit: int = 25
    enrich_limit: int = 50
    enrich_batch_size: int = 10

    @classmethod
    def from_rules(cls, rules: CrawlerRules) -> CrawlerConfig:
        return cls(
            request_timeout_seconds=rules.request_timeout_seconds,
            crawl_delay_seconds=rules.crawl_delay_seconds,
            max_depth=rules.max_depth,
            links_to_follow=rules.links_to_follow,
            content_excerpt_length=rules.content_excerpt_length,
            target_patterns={k: tuple(v) for k, v in rules.target_patterns.items()},
            continuous_types=tuple(rules.continuous_types),
            seed_urls={k: tuple(v) for k, v in rules.seed_urls.items()},
            refresh_after_days=rules.refresh_after_days,
            refresh_limit=rules.refresh_limit,
            enrich_limit=rules.enrich_limit,
            enrich_batch_size=rules.enrich_batch_size,
        )


DEFAULT_CONFIG = CrawlerConfig()


# --- Validation Errors ---


@dataclass(frozen=True)
class CrawlerValidationError:
    """Crawler validation error."""

    code: str
    message: str
    field: str | None = None


# --- Page Analysis ---


@dataclass
class PageAnalysis:
    """Everything learned from one fetched page."""

    url: str
    domain: str
    source_type: SourceType
    title: str | None
    description: str | None
    contact_info: ContactInfo
    has_contact_form: bool
    categories: list[str]
    content_excerpt: str
    links_to_follow: list[str]
    link_count: int = 0
    text_length: int = 0
    depth: int = 0

    @property
    def has_emails(self) -> bool:
        return bool(self.contact_info.all_emails())


@dataclass
class CrawlResult:
    """Outcome of crawling one URL. Failures carry an error instead of raising."""

    url: str
    success: bool
    analysis: PageAnalysis | None = None
    error: str | None = None
    status_code: int | None = None


# --- Input Models ---


@dataclass(frozen=True)
class StartCrawlInput:
    """Input for starting a discovery crawl."""

    job_type: str
    start_urls: tuple[str, ...]
    background: bool = True


@dataclass(frozen=True)
class GetJobInput:
    """Input for getting a crawl job."""

    job_id: UUID


# --- Output Models ---


@dataclass(frozen=True)
class CrawlJobOutput:
    """Output from a crawl job operation."""

    job: CrawlerJob | None
    errors: tuple[CrawlerValidationError, ...]
    success: bool


@dataclass(frozen=True)
class EnrichResult:
    """Output from metrics enrichment."""

    processed: int
    updated: int
    failed: int


@dataclass(frozen=True)
class RefreshResult:
    """Output from refreshing stale opportunities."""

    checked: int
    refreshed: int
    expired: int
    details: tuple[dict[str, Any], ...] = ()
