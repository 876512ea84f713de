"""
ValidationPipeline - Multi-tier opportunity validation.

Spends cheap checks before expensive ones:
1. Tier 1: DNS, HTTP reachability, content quality, contact method
2. Tier 2: Content relevance score and SEO red flags
3. Tier 3: Authority metrics from the metrics provider

Key behaviors:
- A tier failure stops the pipeline and carries the metrics gathered so far
- Tier 3 falls back to conservative metrics when the provider fails
- Passing means meeting the standard thresholds; premium also meets the premium ones
- One failing opportunity never stops a batch
"""

from __future__ import annotations

import logging
import re
from typing import Any

from linkdrip.components.crawler import extract_domain
from linkdrip.core.ports.dns import DnsResolverPort
from linkdrip.core.ports.fetcher import FetchError, PageFetcherPort
from linkdrip.core.ports.metrics import DomainMetricsPort, MetricsError
from linkdrip.domain.entities import DiscoveredOpportunity

from .models import (
    DEFAULT_CONFIG,
    BatchValidationResult,
    TierResult,
    ValidationConfig,
    ValidationOutcome,
)
from .ports import ClockPort, OpportunityRepoPort

logger = logging.getLogger(__name__)

DIGIT_RUN_PATTERN = re.compile(r"\d{4,}")
MAX_DOMAIN_HYPHENS = 2
MAX_LOCAL_SPAM_SCORE = 10

# --- Pure Functions ---


def find_spam_words(content: str, patterns: tuple[str, ...]) -> list[str]:
    lowered = content.lower()
    return [p for p in patterns if p in lowered]


def detect_red_flags(domain: str, suspicious_tlds: tuple[str, ...]) -> list[str]:
    """SEO red flags visible from the domain name alone."""
    flags: list[str] = []
    domain = domain.lower()
    if any(domain.endswith(tld) for tld in suspicious_tlds):
        flags.append("suspicious_tld")
    if domain.count("-") > MAX_DOMAIN_HYPHENS:
        flags.append("hyphenated_domain")
    if DIGIT_RUN_PATTERN.search(domain):
        flags.append("numeric_domain")
    return flags


def content_relevance_score(opp: DiscoveredOpportunity) -> int:
    """Deterministic 0-100 score of how complete and useful the page content is."""
    score = 50
    if opp.page_title:
        score += 10
    if opp.description:
        score += 10
    if len(opp.categories) >= 1:
        score += 5
    if len(opp.categories) >= 3:
        score += 5
    if opp.page_content and len(opp.page_content) >= 500:
        score += 10
    if opp.contact_info.all_emails():
        score += 5
    if opp.contact_info.form:
        score += 5
    return min(100, score)


def local_spam_score(spam_words_found: int, red_flags: list[str]) -> float:
    return float(min(MAX_LOCAL_SPAM_SCORE, 2 * spam_words_found + 2 * len(red_flags)))


# --- Validation Pipeline ---


class ValidationPipeline:
    """
    Validation pipeline service.

    Tiers can be run individually; validate_opportunity chains them.
    """

    def __init__(
        self,
        dns: DnsResolverPort,
        fetcher: PageFetcherPort,
        metrics: DomainMetricsPort,
        opportunity_repo: OpportunityRepoPort,
        clock: ClockPort,
        config: ValidationConfig = DEFAULT_CONFIG,
    ) -> None:
        self._dns = dns
        self._fetcher = fetcher
        self._metrics = metrics
        self._opportunities = opportunity_repo
        self._clock = clock
        self._config = config

    # --- Tiers ---

    def run_tier1(self, opp: DiscoveredOpportunity, domain: str) -> TierResult:
        """Reachability, content quality and contact availability."""
        config = self._config
        metrics: dict[str, Any] = {}

        if not self._dns.resolves(domain):
            return TierResult(False, {"is_domain_active": False}, "Domain does not resolve")
        metrics["is_domain_active"] = True

        url = f"https://{domain}"
        try:
            response = self._fetcher.head(url, timeout=config.connect_timeout_seconds)
        except FetchError:
            # Some servers reject HEAD outright
            try:
                response = self._fetcher.get(url, timeout=config.connect_timeout_seconds)
            except FetchError as e:
                logger.info("Tier 1: %s unreachable: %s", domain, e.error)
                metrics["connection_failed"] = True
                return TierResult(False, metrics, "Failed to connect to website")

        metrics["status_code"] = response.status_code
        if response.status_code >= 400:
            return TierResult(
                False, metrics, f"Domain returned HTTP error: {response.status_code}"
            )

        if opp.page_content:
            metrics["content_length"] = len(opp.page_content)
            if metrics["content_length"] < config.min_content_length:
                return TierResult(False, metrics, "Content too short")

            spam_words = find_spam_words(opp.page_content, config.spam_patterns)
            metrics["spam_words_found"] = len(spam_words)
            if len(spam_words) > config.max_spam_matches:
                return TierResult(
                    False, metrics, f"Found spam content: {', '.join(spam_words)}"
                )

            link_count = opp.raw_data.get("link_count")
            text_length = opp.raw_data.get("text_length")
            if link_count is not None and text_length is not None:
                ratio = text_length / link_count if link_count > 0 else float(text_length)
                metrics["text_to_link_ratio"] = round(ratio, 2)
                if link_count > config.max_links and ratio < config.min_text_link_ratio:
                    return TierResult(False, metrics, "Excessive links compared to content")

        if not opp.contact_info.has_contact_method():
            return TierResult(False, metrics, "No contact method available")

        return TierResult(True, metrics)

    def run_tier2(self, opp: DiscoveredOpportunity, domain: str) -> TierResult:
        """Content relevance and domain red flags."""
        relevance = content_relevance_score(opp)
        red_flags = detect_red_flags(domain, self._config.suspicious_tlds)
        metrics: dict[str, Any] = {
            "relevance_score": relevance,
            "red_flags": red_flags,
            "red_flags_detected": bool(red_flags),
        }

        if relevance < self._config.min_tier2_relevance:
            return TierResult(False, metrics, "Low content relevance")
        if red_flags:
            return TierResult(False, metrics, "SEO red flags detected")
        return TierResult(True, metrics)

    def run_tier3(
        self, domain: str, spam_words_found: int = 0, red_flags: list[str] | None = None
    ) -> TierResult:
        """Authority metrics. Always passes; thresholds are applied afterwards."""
        try:
            m = self._metrics.get_domain_metrics(domain)
        except MetricsError as e:
            logger.warning("Tier 3: metrics unavailable for %s: %s", domain, e.error)
            return TierResult(
                True,
                {
                    "domain_authority": self._config.fallback_domain_authority,
                    "page_authority": self._config.fallback_page_authority,
                    "spam_score": self._config.fallback_spam_score,
                    "metrics_error": True,
                },
            )

        spam_score = m.spam_score
        if spam_score is None:
            spam_score = local_spam_score(spam_words_found, red_flags or [])

        return TierResult(
            True,
            {
                "domain_authority": m.domain_authority,
                "page_authority": m.page_authority,
                "spam_score": spam_score,
                "metrics_source": m.source,
            },
        )

    # --- Full pipeline ---

    def validate_opportunity(self, opp: DiscoveredOpportunity) -> ValidationOutcome:
        domain = opp.domain or extract_domain(opp.url)

        tier1 = self.run_tier1(opp, domain)
        if not tier1.is_passing:
            return ValidationOutcome(False, False, tier1.metrics, 1, tier1.fail_reason)

        tier2 = self.run_tier2(opp, domain)
        combined = {**tier1.metrics, **tier2.metrics}
        if not tier2.is_passing:
            return ValidationOutcome(False, False, combined, 2, tier2.fail_reason)

        tier3 = self.run_tier3(
            domain,
            spam_words_found=tier1.metrics.get("spam_words_found", 0),
            red_flags=tier2.metrics["red_flags"],
        )
        combined.update(tier3.metrics)

        is_passing = self._config.standard.met_by(combined)
        is_premium = is_passing and self._config.premium.met_by(combined)
        fail_reason = None if is_passing else "Below quality thresholds"
        return ValidationOutcome(is_passing, is_premium, combined, 3, fail_reason)

    def apply_outcome(self, opp: DiscoveredOpportunity, outcome: ValidationOutcome) -> None:
        metrics = outcome.metrics
        opp.status = "validated" if outcome.is_passing else "rejected"
        opp.is_premium = outcome.is_premium
        if "domain_authority" in metrics:
            opp.domain_authority = metrics["domain_authority"]
        if "page_authority" in metrics:
            opp.page_authority = metrics["page_authority"]
        if "spam_score" in metrics:
            opp.spam_score = metrics["spam_score"]
        opp.status_note = outcome.fail_reason
        opp.last_checked = self._clock.now_utc()
        opp.validation_data = {
            **metrics,
            "tier": outcome.tier,
            "fail_reason": outcome.fail_reason,
        }
        self._opportunities.save(opp)

    def process_batch(self, opportunity_ids: list | None = None) -> BatchValidationResult:
        """Validate the given opportunities, or the next batch of discovered ones."""
        if opportunity_ids:
            opportunities = self._opportunities.list_by_ids(list(opportunity_ids))
        else:
            opportunities = self._opportunities.list_by_status(
                ["discovered"], limit=self._config.batch_size
            )

        if not opportunities:
            logger.info("No opportunities to validate")
            return BatchValidationResult(processed=0, passing=0, premium=0, failed=0)

        logger.info("Validating %d opportunities", len(opportunities))
        passing = premium = failed = 0
        for opp in opportunities:
            try:
                outcome = self.validate_opportunity(opp)
                self.apply_outcome(opp, outcome)
            except Exception:
                logger.exception("Validation of opportunity %s failed", opp.id)
                failed += 1
                continue

            if outcome.is_passing:
                passing += 1
                if outcome.is_premium:
                    premium += 1
            else:
                failed += 1

        logger.info(
            "Validation batch complete: %d passed, %d premium, %d failed",
            passing,
            premium,
            failed,
        )
        return BatchValidationResult(
            processed=len(opportunities), passing=passing, premium=premium, failed=failed
        )
