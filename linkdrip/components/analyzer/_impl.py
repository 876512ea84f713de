"""
WebsiteAnalyzer - Website profiling and relevance scoring.

Builds a WebsiteProfile (keywords, topics, niches, link preferences,
domain authority) for each user website. Profiles drive opportunity
matching through calculate_relevance.

Key behaviors:
- One profile per website; re-analysis updates it in place
- A metrics failure leaves domain_authority empty, never fails the profile
- Relevance is 0 whenever the opportunity mentions an avoided niche
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from uuid import UUID

from linkdrip.components.crawler import extract_domain
from linkdrip.core.ports.metrics import DomainMetricsPort, MetricsError
from linkdrip.domain.entities import DiscoveredOpportunity, Website, WebsiteProfile

from .models import AnalyzeAllResult
from .ports import ClockPort, WebsiteProfileRepoPort, WebsiteRepoPort

logger = logging.getLogger(__name__)

MAX_KEYWORDS = 10
MIN_KEYWORD_LENGTH = 4
DEFAULT_NICHE = "general"
DEFAULT_LINK_TYPES = ["dofollow"]

KEYWORD_POINTS = 40
TOPIC_POINTS = 30
NICHE_POINTS = 20
SOURCE_TYPE_POINTS = 10

STOP_WORDS = frozenset(
    {
        "about", "above", "after", "again", "also", "been", "before", "being", "below",
        "best", "both", "could", "does", "doing", "down", "during", "each", "even",
        "every", "from", "further", "have", "having", "here", "into", "just", "like",
        "make", "more", "most", "much", "only", "other", "over", "same", "should",
        "some", "such", "than", "that", "their", "them", "then", "there", "these",
        "they", "this", "those", "through", "under", "until", "very", "want", "were",
        "what", "when", "where", "which", "while", "will", "with", "would", "your",
        "yours", "ours",
    }
)

_PUNCTUATION = re.compile(r"[^\w\s]")

# --- Pure Functions ---


def extract_keywords_and_topics(website: Website) -> tuple[list[str], list[str]]:
    """
    Keywords from the description, topics from the niche.

    Words are lower-cased with punctuation removed; short words and
    stop-words are dropped and the first ten unique words kept in order.
    """
    topics = [website.niche] if website.niche else []
    if not website.description:
        return [], topics

    words = _PUNCTUATION.sub("", website.description.lower()).split()
    keywords: list[str] = []
    for word in words:
        if len(word) < MIN_KEYWORD_LENGTH or word in STOP_WORDS or word in keywords:
            continue
        keywords.append(word)
        if len(keywords) == MAX_KEYWORDS:
            break
    return keywords, topics


def _split_values(values: Iterable[str]) -> list[str]:
    result: list[str] = []
    for value in values:
        for part in value.split(","):
            part = part.strip()
            if part and part not in result:
                result.append(part)
    return result


def extract_preferences(website: Website) -> tuple[list[str], list[str], list[str]]:
    """Return (target_niches, avoid_niches, link_type_preferences)."""
    target_niches = [website.niche] if website.niche else [DEFAULT_NICHE]
    avoid_niches = _split_values(website.preferences.avoid_niches)
    link_types = _split_values(website.preferences.link_types) or list(DEFAULT_LINK_TYPES)
    return target_niches, avoid_niches, link_types


def opportunity_text(opp: DiscoveredOpportunity) -> str:
    parts = [
        opp.page_title or "",
        opp.description or "",
        " ".join(opp.categories),
        opp.page_content or "",
    ]
    return " ".join(parts).lower()


def matched_topics(profile: WebsiteProfile, opp: DiscoveredOpportunity) -> list[str]:
    text = opportunity_text(opp)
    return [t for t in profile.topics if t and t.lower() in text]


def calculate_relevance(
    profile: WebsiteProfile,
    opp: DiscoveredOpportunity,
    drip_priorities: Iterable[str] = (),
) -> int:
    """Score 0-100 of how well an opportunity fits a website profile."""
    text = opportunity_text(opp)

    if any(n and n.lower() in text for n in profile.avoid_niches):
        return 0

    score = 0.0
    if profile.keywords:
        hits = sum(1 for k in profile.keywords if k.lower() in text)
        score += min(KEYWORD_POINTS, KEYWORD_POINTS * hits / len(profile.keywords))

    if matched_topics(profile, opp):
        score += TOPIC_POINTS

    categories = {c.lower() for c in opp.categories}
    for niche in profile.target_niches:
        n = niche.lower()
        if n and n != DEFAULT_NICHE and (n in text or n in categories):
            score += NICHE_POINTS
            break

    preferred = set(drip_priorities) | set(profile.link_type_preferences)
    if opp.source_type in preferred:
        score += SOURCE_TYPE_POINTS

    return max(0, min(100, round(score)))


# --- Website Analyzer ---


class WebsiteAnalyzer:
    """Website analyzer service."""

    def __init__(
        self,
        website_repo: WebsiteRepoPort,
        profile_repo: WebsiteProfileRepoPort,
        metrics: DomainMetricsPort,
        clock: ClockPort,
    ) -> None:
        self._websites = website_repo
        self._profiles = profile_repo
        self._metrics = metrics
        self._clock = clock

    def get_profile(self, website_id: UUID) -> WebsiteProfile | None:
        return self._profiles.get_by_website(website_id)

    def domain_authority(self, website: Website) -> int | None:
        domain = extract_domain(website.url)
        if not domain:
            return None
        try:
            return self._metrics.get_domain_metrics(domain).domain_authority
        except MetricsError as e:
            logger.warning("No domain metrics for %s: %s", domain, e.error)
            return None

    def process_website(self, website: Website) -> WebsiteProfile:
        """Create or refresh the profile for one website."""
        logger.info("Analyzing website %s (%s)", website.name, website.id)
        now = self._clock.now_utc()

        keywords, topics = extract_keywords_and_topics(website)
        target_niches, avoid_niches, link_types = extract_preferences(website)
        domain_authority = self.domain_authority(website)

        profile = self._profiles.get_by_website(website.id)
        if profile is None:
            profile = WebsiteProfile(website_id=website.id, analyzed_at=now)

        profile.keywords = keywords
        profile.topics = topics
        profile.content_types = list(website.preferences.link_types)
        profile.domain_authority = domain_authority
        profile.target_niches = target_niches
        profile.avoid_niches = avoid_niches
        profile.link_type_preferences = link_types
        profile.last_updated = now
        return self._profiles.save(profile)

    def process_user_websites(self, user_id: UUID) -> list[WebsiteProfile]:
        profiles: list[WebsiteProfile] = []
        for website in self._websites.list_by_user(user_id):
            try:
                profiles.append(self.process_website(website))
            except Exception:
                logger.exception("Failed to analyze website %s", website.id)
        return profiles

    def process_all_websites(self) -> AnalyzeAllResult:
        """Profile every active website."""
        analyzed = failed = 0
        for website in self._websites.list_active():
            try:
                self.process_website(website)
                analyzed += 1
            except Exception:
                logger.exception("Failed to analyze website %s", website.id)
                failed += 1
        return AnalyzeAllResult(analyzed=analyzed, failed=failed)
