"""
CrawlerService - Backlink opportunity discovery crawler.

Fetches seed pages, classifies them into opportunity source types,
extracts contact details and stores pages worth reaching out to.

Key behaviors:
- Opportunities are unique by URL; re-crawls refresh content, never status
- Only pages with an email or a contact form are stored
- Start URLs are followed one level deep, same host only
- Jobs always finish as completed or failed
"""

from __future__ import annotations

import logging
import random
import threading
from datetime import timedelta
from typing import Any
from urllib.parse import urldefrag, urljoin, urlparse
from uuid import UUID

from bs4 import BeautifulSoup

from linkdrip.components.contacts import extract_contact_info, merge_contact_info
from linkdrip.core.ports.fetcher import FetchError, PageFetcherPort
from linkdrip.core.ports.metrics import DomainMetricsPort, clean_domain
from linkdrip.domain.entities import CrawlerJob, DiscoveredOpportunity, JobStatus, SourceType

from .models import (
    DEFAULT_CONFIG,
    CrawlerConfig,
    CrawlResult,
    EnrichResult,
    PageAnalysis,
    RefreshResult,
)
from .ports import ClockPort, CrawlerJobRepoPort, OpportunityRepoPort

logger = logging.getLogger(__name__)

GUEST_POST_PHRASES = ("guest post", "write for us", "submit article", "submission guidelines")
RESOURCE_PHRASES = ("resources", "useful links")
RESOURCE_LINK_THRESHOLD = 20
CATEGORY_SELECTOR = ".category, .categories, .tag, .tags"
MAX_CATEGORIES = 20

# --- Pure Functions ---


def format_url(url: str) -> str:
    """Prepend https:// when the URL has no scheme."""
    url = url.strip()
    if not url.startswith(("http://", "https://")):
        url = f"https://{url}"
    return url


def extract_domain(url: str) -> str:
    """Hostname of a URL, or "" when it cannot be parsed."""
    try:
        return (urlparse(format_url(url)).hostname or "").lower()
    except ValueError:
        return ""


def classify_page(
    url: str,
    body_text: str,
    absolute_link_count: int,
    patterns: dict[str, tuple[str, ...]],
) -> SourceType:
    """
    Decide the opportunity source type of a page.

    The first type whose pattern occurs in the URL path wins, defaulting
    to blog. Guest-post wording in the body always wins. A page still
    classed as blog becomes a resource page when it talks about resources
    or carries many outbound links.
    """
    path = urlparse(url).path.lower()
    source_type = "blog"
    for type_name, type_patterns in patterns.items():
        if any(pattern in path for pattern in type_patterns):
            source_type = type_name
            break

    body = body_text.lower()
    if any(phrase in body for phrase in GUEST_POST_PHRASES):
        source_type = "guest_post"
    elif source_type == "blog" and (
        any(phrase in body for phrase in RESOURCE_PHRASES)
        or absolute_link_count > RESOURCE_LINK_THRESHOLD
    ):
        source_type = "resource_page"

    return source_type  # type: ignore[return-value]


def _extract_categories(soup: BeautifulSoup) -> list[str]:
    categories: list[str] = []
    for node in soup.select(CATEGORY_SELECTOR):
        text = node.get_text(" ", strip=True)
        if text and len(text) <= 60 and text not in categories:
            categories.append(text)

    keywords = soup.find("meta", attrs={"name": "keywords"})
    if keywords and keywords.get("content"):
        for keyword in str(keywords["content"]).split(","):
            keyword = keyword.strip()
            if keyword and keyword not in categories:
                categories.append(keyword)

    return categories[:MAX_CATEGORIES]


def _links_to_follow(
    soup: BeautifulSoup,
    page_url: str,
    patterns: dict[str, tuple[str, ...]],
    limit: int,
) -> list[str]:
    host = urlparse(page_url).hostname
    all_patterns = {p for type_patterns in patterns.values() for p in type_patterns}
    current = urldefrag(page_url)[0].rstrip("/")

    links: list[str] = []
    for anchor in soup.find_all("a", href=True):
        if len(links) >= limit:
            break
        absolute = urldefrag(urljoin(page_url, anchor["href"].strip()))[0]
        parsed = urlparse(absolute)
        if parsed.scheme not in ("http", "https") or parsed.hostname != host:
            continue
        if absolute.rstrip("/") == current or absolute in links:
            continue
        path = parsed.path.lower()
        if any(pattern in path for pattern in all_patterns):
            links.append(absolute)
    return links


def analyze_page(
    url: str,
    html: str,
    depth: int = 0,
    max_depth: int = 2,
    config: CrawlerConfig = DEFAULT_CONFIG,
) -> PageAnalysis:
    """Parse a fetched page into a PageAnalysis."""
    soup = BeautifulSoup(html or "", "html.parser")

    title = soup.title.get_text(strip=True) if soup.title else None
    meta = soup.find("meta", attrs={"name": "description"})
    description = str(meta["content"]).strip() if meta and meta.get("content") else None

    contact_info = extract_contact_info(html, url)
    categories = _extract_categories(soup)

    anchors = soup.find_all("a", href=True)
    absolute_links = [a for a in anchors if a["href"].strip().startswith(("http://", "https://"))]

    links: list[str] = []
    if depth < max_depth:
        links = _links_to_follow(soup, url, config.target_patterns, config.links_to_follow)

    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    body_text = " ".join(soup.get_text(" ", strip=True).split())

    source_type = classify_page(url, body_text, len(absolute_links), config.target_patterns)

    return PageAnalysis(
        url=url,
        domain=extract_domain(url),
        source_type=source_type,
        title=title or None,
        description=description or None,
        contact_info=contact_info,
        has_contact_form=bool(contact_info.form),
        categories=categories,
        content_excerpt=body_text[: config.content_excerpt_length],
        links_to_follow=links,
        link_count=len(anchors),
        text_length=len(body_text),
        depth=depth,
    )


def matches_job_type(job_type: str, source_type: str) -> bool:
    return job_type == "all" or job_type == source_type


# --- Crawler Service ---


class CrawlerService:
    """
    Crawler service.

    Runs discovery crawls, stores opportunities and keeps their metrics fresh.
    """

    def __init__(
        self,
        fetcher: PageFetcherPort,
        opportunity_repo: OpportunityRepoPort,
        job_repo: CrawlerJobRepoPort,
        metrics: DomainMetricsPort,
        clock: ClockPort,
        config: CrawlerConfig = DEFAULT_CONFIG,
        rng: random.Random | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._opportunities = opportunity_repo
        self._jobs = job_repo
        self._metrics = metrics
        self._clock = clock
        self._config = config
        self._rng = rng or random.Random()

    @property
    def config(self) -> CrawlerConfig:
        return self._config

    # --- Single page ---

    def crawl_url(self, url: str, depth: int = 0, max_depth: int | None = None) -> CrawlResult:
        """Fetch and analyse one URL. Never raises."""
        url = format_url(url)
        max_depth = self._config.max_depth if max_depth is None else max_depth

        try:
            response = self._fetcher.get(url, timeout=self._config.request_timeout_seconds)
        except FetchError as e:
            logger.info("Crawl of %s failed: %s", url, e.error)
            return CrawlResult(url=url, success=False, error=e.error)

        if not 200 <= response.status_code < 300:
            return CrawlResult(
                url=url,
                success=False,
                error=f"HTTP error: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            analysis = analyze_page(url, response.text, depth, max_depth, self._config)
        except Exception as e:
            logger.exception("Failed to parse %s", url)
            return CrawlResult(url=url, success=False, error=f"Parse error: {e}")

        return CrawlResult(
            url=url, success=True, analysis=analysis, status_code=response.status_code
        )

    # --- Storage ---

    def store_discovered_opportunity(self, analysis: PageAnalysis) -> DiscoveredOpportunity:
        """
        Upsert an opportunity by URL.

        Existing records keep their status; only non-empty new values
        replace stored content.
        """
        now = self._clock.now_utc()
        raw_data: dict[str, Any] = {
            "link_count": analysis.link_count,
            "text_length": analysis.text_length,
            "depth": analysis.depth,
        }

        existing = self._opportunities.get_by_url(analysis.url)
        if existing:
            existing.last_checked = now
            if analysis.title:
                existing.page_title = analysis.title
            if analysis.description:
                existing.description = analysis.description
            if analysis.content_excerpt:
                existing.page_content = analysis.content_excerpt
            if analysis.categories:
                existing.categories = analysis.categories
            if analysis.contact_info.has_contact_method():
                existing.contact_info = merge_contact_info(
                    analysis.contact_info, existing.contact_info
                )
            existing.raw_data = {**existing.raw_data, **raw_data}
            return self._opportunities.save(existing)

        opp = DiscoveredOpportunity(
            url=analysis.url,
            domain=analysis.domain,
            source_type=analysis.source_type,
            page_title=analysis.title,
            description=analysis.description,
            page_content=analysis.content_excerpt,
            categories=analysis.categories,
            contact_info=analysis.contact_info,
            status="discovered",
            discovered_at=now,
            last_checked=now,
            raw_data=raw_data,
        )
        return self._opportunities.save(opp)

    # --- Jobs ---

    def initialize_job(self, job_type: str, target_url: str | None = None) -> CrawlerJob:
        job = CrawlerJob(job_type=job_type, target_url=target_url, created_at=self._clock.now_utc())
        return self._jobs.save(job)

    def update_job_status(
        self, job_id: UUID, status: JobStatus, error: str | None = None
    ) -> CrawlerJob | None:
        job = self._jobs.get_by_id(job_id)
        if not job:
            return None

        now = self._clock.now_utc()
        job.status = status
        if status == "in_progress":
            job.started_at = now
        elif status in ("completed", "failed"):
            job.completed_at = now
        if error is not None:
            job.error = error
        return self._jobs.save(job)

    def record_results(self, job_id: UUID, results: dict[str, Any]) -> CrawlerJob | None:
        job = self._jobs.get_by_id(job_id)
        if not job:
            return None
        job.results = results
        return self._jobs.save(job)

    def get_job(self, job_id: UUID) -> CrawlerJob | None:
        return self._jobs.get_by_id(job_id)

    def list_jobs(self, limit: int = 20) -> list[CrawlerJob]:
        return self._jobs.list_recent(limit)

    # --- Discovery crawl ---

    def run_discovery_crawl(self, job: CrawlerJob, start_urls: list[str]) -> CrawlerJob:
        """Job body: crawl start URLs plus their followed links, store matches."""
        self.update_job_status(job.id, "in_progress")
        results: dict[str, Any] = {
            "crawled": 0,
            "discovered": 0,
            "errors": 0,
            "details": [],
            "opportunity_ids": [],
        }
        visited: set[str] = set()
        stored_ids: list[UUID] = []

        try:
            for start_url in start_urls:
                start = format_url(start_url)
                if start in visited:
                    continue
                result = self._crawl_and_store(job.job_type, start, 0, visited, results, stored_ids)
                if not result.success or result.analysis is None:
                    continue
                for link in result.analysis.links_to_follow:
                    if link not in visited:
                        self._crawl_and_store(job.job_type, link, 1, visited, results, stored_ids)

            results["opportunity_ids"] = [str(i) for i in stored_ids]
            self.record_results(job.id, results)
            finished = self.update_job_status(job.id, "completed")
            logger.info(
                "Crawl job %s completed: %d crawled, %d discovered, %d errors",
                job.id,
                results["crawled"],
                results["discovered"],
                results["errors"],
            )
        except Exception as e:
            logger.exception("Crawl job %s failed", job.id)
            results["opportunity_ids"] = [str(i) for i in stored_ids]
            self.record_results(job.id, results)
            return self.update_job_status(job.id, "failed", error=str(e)) or job

        if stored_ids:
            self.enrich_with_metrics(stored_ids)
        return finished or job

    def _crawl_and_store(
        self,
        job_type: str,
        url: str,
        depth: int,
        visited: set[str],
        results: dict[str, Any],
        stored_ids: list[UUID],
    ) -> CrawlResult:
        if visited:
            self._clock.sleep(self._config.crawl_delay_seconds)
        visited.add(url)

        result = self.crawl_url(url, depth=depth)
        results["crawled"] += 1
        detail: dict[str, Any] = {"url": url, "depth": depth}

        if not result.success or result.analysis is None:
            results["errors"] += 1
            detail["error"] = result.error
            results["details"].append(detail)
            return result

        analysis = result.analysis
        detail["source_type"] = analysis.source_type
        stored = False
        if matches_job_type(job_type, analysis.source_type) and (
            analysis.has_emails or analysis.has_contact_form
        ):
            opp = self.store_discovered_opportunity(analysis)
            if opp.id not in stored_ids:
                stored_ids.append(opp.id)
                results["discovered"] += 1
            stored = True
        detail["stored"] = stored
        results["details"].append(detail)
        return result

    def start_discovery_crawl(
        self, job_type: str, start_urls: list[str], background: bool = True
    ) -> CrawlerJob:
        """Create a job and run it on a daemon thread, or inline when background is False."""
        job = self.initialize_job(job_type, start_urls[0] if start_urls else None)
        if not background:
            return self.run_discovery_crawl(job, start_urls)

        thread = threading.Thread(
            target=self.run_discovery_crawl,
            args=(job, list(start_urls)),
            name=f"crawl-{job.id}",
            daemon=True,
        )
        thread.start()
        return job

    def run_continuous_cycle(self) -> list[CrawlerJob]:
        """Crawl the seed URLs of one or two randomly chosen source types."""
        types = [t for t in self._config.continuous_types if self._config.seed_urls.get(t)]
        if not types:
            logger.info("No seed URLs configured for continuous discovery")
            return []

        count = self._rng.randint(1, min(2, len(types)))
        chosen = self._rng.sample(types, count)
        jobs = []
        for source_type in chosen:
            urls = list(self._config.seed_urls[source_type])
            logger.info("Continuous discovery: crawling %d %s seeds", len(urls), source_type)
            jobs.append(self.start_discovery_crawl(source_type, urls, background=False))
        return jobs

    def all_seed_urls(self) -> list[str]:
        urls: list[str] = []
        for source_type in self._config.continuous_types:
            for url in self._config.seed_urls.get(source_type, ()):
                if url not in urls:
                    urls.append(url)
        return urls

    # --- Metrics ---

    def enrich_with_metrics(self, opportunity_ids: list[UUID] | None = None) -> EnrichResult:
        """Attach domain metrics to opportunities in batches."""
        if opportunity_ids is None:
            opportunities = self._opportunities.list_by_status(
                ["discovered"], limit=self._config.enrich_limit
            )
        else:
            opportunities = self._opportunities.list_by_ids(list(opportunity_ids))

        updated = 0
        failed = 0
        size = max(1, self._config.enrich_batch_size)
        for start in range(0, len(opportunities), size):
            batch = opportunities[start : start + size]
            try:
                metrics = self._metrics.get_batch_domain_metrics([o.domain for o in batch])
                now = self._clock.now_utc()
                for opp in batch:
                    m = metrics.get(clean_domain(opp.domain))
                    if m is None:
                        continue
                    opp.domain_authority = m.domain_authority
                    opp.page_authority = m.page_authority
                    if m.spam_score is not None:
                        opp.spam_score = m.spam_score
                    opp.last_checked = now
                    self._opportunities.save(opp)
                    updated += 1
            except Exception:
                logger.exception("Metrics enrichment failed for batch starting at %d", start)
                failed += len(batch)

        return EnrichResult(processed=len(opportunities), updated=updated, failed=failed)

    # --- Refresh ---

    def refresh_opportunities(self) -> RefreshResult:
        """Re-crawl stale opportunities; unreachable ones expire."""
        now = self._clock.now_utc()
        cutoff = now - timedelta(days=self._config.refresh_after_days)
        stale = self._opportunities.list_stale(cutoff, limit=self._config.refresh_limit)

        refreshed_ids: list[UUID] = []
        expired = 0
        details: list[dict[str, Any]] = []
        for opp in stale:
            result = self.crawl_url(opp.url, depth=0, max_depth=0)
            if not result.success or result.analysis is None:
                opp.status = "expired"
                opp.validation_data = {**opp.validation_data, "error": result.error}
                opp.last_checked = now
                self._opportunities.save(opp)
                expired += 1
                details.append({"url": opp.url, "expired": True, "error": result.error})
                continue

            saved = self.store_discovered_opportunity(result.analysis)
            refreshed_ids.append(saved.id)
            details.append({"url": opp.url, "expired": False})

        if refreshed_ids:
            self.enrich_with_metrics(refreshed_ids)

        return RefreshResult(
            checked=len(stale),
            refreshed=len(refreshed_ids),
            expired=expired,
            details=tuple(details),
        )
