"""
Unit tests for Validation component.

Tests:
- Tier 1 reachability and content checks
- Tier 2 relevance and red flags
- Tier 3 metrics and fallback
- Thresholds and batch processing
"""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID

import pytest

from linkdrip.adapters.clock import FixedClock
from linkdrip.adapters.metrics.static import StaticMetricsAdapter
from linkdrip.core.ports.fetcher import FetchError, FetchResponse
from linkdrip.domain.entities import ContactInfo, DiscoveredOpportunity

from .._impl import (
    ValidationPipeline,
    content_relevance_score,
    detect_red_flags,
    find_spam_words,
    local_spam_score,
)
from ..component import run_validate_batch
from ..models import DEFAULT_SPAM_PATTERNS, ValidateBatchInput, ValidationConfig

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)
LONG_CONTENT = "Composting tips for home gardeners and allotment growers. " * 10


class FakeDns:
    def __init__(self, dead: set[str] | None = None) -> None:
        self.dead = dead or set()

    def resolves(self, hostname: str) -> bool:
        return hostname not in self.dead


class FakeFetcher:
    def __init__(self) -> None:
        self.head_status: dict[str, int] = {}
        self.head_raises: set[str] = set()
        self.get_raises: set[str] = set()
        self.crash: set[str] = set()

    def head(self, url: str, timeout: float | None = None) -> FetchResponse:
        if url in self.crash:
            raise RuntimeError("boom")
        if url in self.head_raises:
            raise FetchError(url, "HEAD not allowed")
        return FetchResponse(url=url, status_code=self.head_status.get(url, 200))

    def get(self, url: str, timeout: float | None = None) -> FetchResponse:
        if url in self.get_raises:
            raise FetchError(url, "Connection refused")
        return FetchResponse(url=url, status_code=200, text="<html></html>")


class InMemoryOpportunityRepo:
    def __init__(self) -> None:
        self.items: dict[UUID, DiscoveredOpportunity] = {}

    def save(self, opp: DiscoveredOpportunity) -> DiscoveredOpportunity:
        self.items[opp.id] = opp.model_copy(deep=True)
        return opp

    def list_by_ids(self, ids: list[UUID]) -> list[DiscoveredOpportunity]:
        return [self.items[i].model_copy(deep=True) for i in ids if i in self.items]

    def list_by_status(self, statuses: list[str], limit: int = 50) -> list[DiscoveredOpportunity]:
        found = [i.model_copy(deep=True) for i in self.items.values() if i.status in statuses]
        return found[:limit]


def make_opp(domain: str = "greenthumb.org", **overrides) -> DiscoveredOpportunity:
    values = {
        "url": f"https://{domain}/resources",
        "domain": domain,
        "source_type": "resource_page",
        "page_title": "Gardening Resources",
        "description": "Tools and guides",
        "categories": ["gardening", "compost", "soil"],
        "page_content": LONG_CONTENT,
        "contact_info": ContactInfo(email=f"editor@{domain}"),
    }
    values.update(overrides)
    return DiscoveredOpportunity(**values)


@pytest.fixture
def dns() -> FakeDns:
    return FakeDns()


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def metrics() -> StaticMetricsAdapter:
    adapter = StaticMetricsAdapter()
    adapter.set("greenthumb.org", 45, 38, spam_score=1)
    adapter.set("midsite.org", 30, 25, spam_score=2)
    return adapter


@pytest.fixture
def repo() -> InMemoryOpportunityRepo:
    return InMemoryOpportunityRepo()


@pytest.fixture
def pipeline(dns, fetcher, metrics, repo) -> ValidationPipeline:
    return ValidationPipeline(dns, fetcher, metrics, repo, FixedClock(NOW))


class TestPureFunctions:
    def test_spam_words(self) -> None:
        words = find_spam_words("Best CASINO and payday loan offers", DEFAULT_SPAM_PATTERNS)
        assert words == ["casino", "loan", "payday"]

    def test_red_flags(self) -> None:
        tlds = (".xyz",)
        assert detect_red_flags("greenthumb.org", tlds) == []
        assert detect_red_flags("cheap.xyz", tlds) == ["suspicious_tld"]
        assert detect_red_flags("best-cheap-garden-tools.org", tlds) == ["hyphenated_domain"]
        assert detect_red_flags("garden-tools.org", tlds) == []
        assert detect_red_flags("site12345.com", tlds) == ["numeric_domain"]

    def test_relevance_score_full(self) -> None:
        opp = make_opp(contact_info=ContactInfo(email="a@greenthumb.org", form="https://greenthumb.org/contact"))
        assert content_relevance_score(opp) == 100

    def test_relevance_score_bare(self) -> None:
        opp = DiscoveredOpportunity(url="https://a.org", domain="a.org")
        assert content_relevance_score(opp) == 50

    def test_local_spam_score_capped(self) -> None:
        assert local_spam_score(1, []) == 2
        assert local_spam_score(4, ["a", "b", "c"]) == 10


class TestTier1:
    def test_dns_failure(self, pipeline: ValidationPipeline, dns: FakeDns) -> None:
        dns.dead.add("greenthumb.org")
        result = pipeline.run_tier1(make_opp(), "greenthumb.org")
        assert not result.is_passing
        assert result.fail_reason == "Domain does not resolve"
        assert result.metrics == {"is_domain_active": False}

    def test_head_falls_back_to_get(self, pipeline: ValidationPipeline, fetcher: FakeFetcher) -> None:
        fetcher.head_raises.add("https://greenthumb.org")
        result = pipeline.run_tier1(make_opp(), "greenthumb.org")
        assert result.is_passing
        assert result.metrics["status_code"] == 200

    def test_connection_failure(self, pipeline: ValidationPipeline, fetcher: FakeFetcher) -> None:
        fetcher.head_raises.add("https://greenthumb.org")
        fetcher.get_raises.add("https://greenthumb.org")
        result = pipeline.run_tier1(make_opp(), "greenthumb.org")
        assert result.fail_reason == "Failed to connect to website"
        assert result.metrics["connection_failed"] is True

    def test_http_error(self, pipeline: ValidationPipeline, fetcher: FakeFetcher) -> None:
        fetcher.head_status["https://greenthumb.org"] = 503
        result = pipeline.run_tier1(make_opp(), "greenthumb.org")
        assert result.fail_reason == "Domain returned HTTP error: 503"

    def test_short_content(self, pipeline: ValidationPipeline) -> None:
        result = pipeline.run_tier1(make_opp(page_content="Too short"), "greenthumb.org")
        assert result.fail_reason == "Content too short"
        assert result.metrics["content_length"] == 9

    def test_spam_content(self, pipeline: ValidationPipeline) -> None:
        content = LONG_CONTENT + " casino poker payday"
        result = pipeline.run_tier1(make_opp(page_content=content), "greenthumb.org")
        assert result.fail_reason == "Found spam content: casino, poker, payday"

    def test_two_spam_words_tolerated(self, pipeline: ValidationPipeline) -> None:
        content = LONG_CONTENT + " casino poker"
        result = pipeline.run_tier1(make_opp(page_content=content), "greenthumb.org")
        assert result.is_passing
        assert result.metrics["spam_words_found"] == 2

    def test_excessive_links(self, pipeline: ValidationPipeline) -> None:
        opp = make_opp(raw_data={"link_count": 60, "text_length": 600})
        result = pipeline.run_tier1(opp, "greenthumb.org")
        assert result.fail_reason == "Excessive links compared to content"
        assert result.metrics["text_to_link_ratio"] == 10

    def test_many_links_with_enough_text(self, pipeline: ValidationPipeline) -> None:
        opp = make_opp(raw_data={"link_count": 60, "text_length": 6000})
        assert pipeline.run_tier1(opp, "greenthumb.org").is_passing

    def test_no_contact_method(self, pipeline: ValidationPipeline) -> None:
        result = pipeline.run_tier1(make_opp(contact_info=ContactInfo()), "greenthumb.org")
        assert result.fail_reason == "No contact method available"

    def test_social_profile_counts_as_contact(self, pipeline: ValidationPipeline) -> None:
        info = ContactInfo(social=[{"platform": "twitter", "url": "https://twitter.com/gt"}])
        assert pipeline.run_tier1(make_opp(contact_info=info), "greenthumb.org").is_passing


class TestTier2:
    def test_red_flags_fail(self, pipeline: ValidationPipeline) -> None:
        result = pipeline.run_tier2(make_opp(), "best-cheap-garden-tools.org")
        assert not result.is_passing
        assert result.fail_reason == "SEO red flags detected"
        assert result.metrics["red_flags_detected"] is True

    def test_low_relevance(self, dns, fetcher, metrics, repo) -> None:
        pipeline = ValidationPipeline(
            dns, fetcher, metrics, repo, FixedClock(NOW), ValidationConfig(min_tier2_relevance=70)
        )
        opp = DiscoveredOpportunity(
            url="https://a.org", domain="a.org", contact_info=ContactInfo(email="x@a.org")
        )
        result = pipeline.run_tier2(opp, "a.org")
        assert result.metrics["relevance_score"] == 55
        assert result.fail_reason == "Low content relevance"


class TestTier3:
    def test_provider_metrics(self, pipeline: ValidationPipeline) -> None:
        result = pipeline.run_tier3("greenthumb.org")
        assert result.metrics["domain_authority"] == 45
        assert result.metrics["spam_score"] == 1

    def test_fallback_on_error(self, pipeline: ValidationPipeline) -> None:
        result = pipeline.run_tier3("unknown.org")
        assert result.is_passing
        assert result.metrics == {
            "domain_authority": 25,
            "page_authority": 20,
            "spam_score": 3,
            "metrics_error": True,
        }

    def test_local_spam_when_provider_silent(self, pipeline: ValidationPipeline, metrics) -> None:
        metrics.set("quiet.org", 50, 40)
        result = pipeline.run_tier3("quiet.org", spam_words_found=1, red_flags=[])
        assert result.metrics["spam_score"] == 2


class TestValidateOpportunity:
    def test_premium(self, pipeline: ValidationPipeline) -> None:
        outcome = pipeline.validate_opportunity(make_opp())
        assert outcome.is_passing
        assert outcome.is_premium
        assert outcome.tier == 3
        assert outcome.fail_reason is None

    def test_standard_only(self, pipeline: ValidationPipeline) -> None:
        outcome = pipeline.validate_opportunity(make_opp("midsite.org"))
        assert outcome.is_passing
        assert not outcome.is_premium

    def test_fallback_metrics_pass_standard(self, pipeline: ValidationPipeline) -> None:
        outcome = pipeline.validate_opportunity(make_opp("newsite.org"))
        assert outcome.is_passing
        assert not outcome.is_premium
        assert outcome.metrics["metrics_error"] is True

    def test_tier1_failure_stops(self, pipeline: ValidationPipeline, dns: FakeDns) -> None:
        dns.dead.add("greenthumb.org")
        outcome = pipeline.validate_opportunity(make_opp())
        assert outcome.tier == 1
        assert "relevance_score" not in outcome.metrics

    def test_tier2_failure_keeps_tier1_metrics(self, pipeline: ValidationPipeline) -> None:
        outcome = pipeline.validate_opportunity(make_opp("cheap-garden-tool-deals.org"))
        assert outcome.tier == 2
        assert outcome.metrics["is_domain_active"] is True
        assert outcome.metrics["red_flags"] == ["hyphenated_domain"]


class TestProcessBatch:
    def test_defaults_to_discovered(self, pipeline: ValidationPipeline, repo, dns) -> None:
        good = make_opp()
        mid = make_opp("midsite.org")
        dead = make_opp("dead.org")
        dns.dead.add("dead.org")
        done = make_opp("done.org", status="validated")
        for opp in (good, mid, dead, done):
            repo.save(opp)

        result = pipeline.process_batch()

        assert (result.processed, result.passing, result.premium, result.failed) == (3, 2, 1, 1)
        assert repo.items[good.id].status == "validated"
        assert repo.items[good.id].is_premium is True
        assert repo.items[good.id].domain_authority == 45
        assert repo.items[good.id].last_checked == NOW
        assert repo.items[dead.id].status == "rejected"
        assert repo.items[dead.id].status_note == "Domain does not resolve"
        assert repo.items[dead.id].validation_data["tier"] == 1
        assert repo.items[done.id].status == "validated"

    def test_error_in_one_does_not_stop_batch(self, pipeline: ValidationPipeline, repo, fetcher) -> None:
        broken = make_opp("broken.org")
        good = make_opp()
        repo.save(broken)
        repo.save(good)
        fetcher.crash.add("https://broken.org")

        result = pipeline.process_batch()

        assert result.processed == 2
        assert result.failed == 1
        assert result.passing == 1
        assert repo.items[broken.id].status == "discovered"

    def test_explicit_ids(self, pipeline: ValidationPipeline, repo) -> None:
        opp = make_opp(status="validated")
        repo.save(opp)
        result = pipeline.process_batch([opp.id])
        assert result.processed == 1

    def test_empty(self, pipeline: ValidationPipeline) -> None:
        result = pipeline.process_batch()
        assert result.processed == 0


class TestShell:
    def test_run_validate_batch(self, pipeline: ValidationPipeline, repo) -> None:
        repo.save(make_opp())
        output = run_validate_batch(ValidateBatchInput(), pipeline)
        assert output.success
        assert output.result is not None
        assert output.result.passing == 1

    def test_too_many_ids(self, pipeline: ValidationPipeline) -> None:
        ids = tuple(UUID(int=i) for i in range(201))
        output = run_validate_batch(ValidateBatchInput(opportunity_ids=ids), pipeline)
        assert not output.success
        assert output.errors[0].code == "too_many_ids"
