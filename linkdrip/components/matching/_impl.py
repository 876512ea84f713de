"""
OpportunityMatcher - Matches validated opportunities to websites.

Scores candidates against website profiles and delivers a bounded number
of them to users each day: regular "drips" up to the plan's daily limit
and premium "splashes" up to the remaining monthly allowance plus any
purchased credits.

Key behaviors:
- Delivery runs at most once per user per UTC day, claimed atomically
  through the drip repository and serialised per user in-process
- On-demand splashes spend nothing when no premium opportunity is left
- An opportunity is delivered to a user at most once
- Monthly allowance splashes are spent before purchased credits
- Purchased credits never go negative
"""

from __future__ import annotations

import logging
import threading
from datetime import UTC, date, datetime
from typing import Any
from uuid import UUID

from linkdrip.components.analyzer import calculate_relevance, matched_topics
from linkdrip.domain.entities import (
    DailyDrip,
    DiscoveredOpportunity,
    OpportunityMatch,
    SplashUsage,
    SplashSource,
    User,
    Website,
    WebsitePreferences,
    WebsiteProfile,
)
from linkdrip.domain.plans import PlanCatalog

from .models import (
    DEFAULT_CONFIG,
    DRIP_STATUSES,
    DripAssignment,
    DripWithOpportunity,
    MatchExplanation,
    MatchingConfig,
    MatchingValidationError,
    ScoredOpportunity,
    ScoreWeights,
    SplashResult,
    UsageStats,
)
from .ports import (
    ClockPort,
    DripRepoPort,
    MatchRepoPort,
    OpportunityRepoPort,
    SplashRepoPort,
    UserRepoPort,
    WebsiteProfileRepoPort,
    WebsiteRepoPort,
)

logger = logging.getLogger(__name__)

LOW_SPAM_BONUS_MAX = 3
MAX_DA_POINTS = 50
LOW_SPAM_POINTS = 20

# --- Pure Functions ---


def regular_quality(opp: DiscoveredOpportunity) -> float:
    quality = float(min(MAX_DA_POINTS, opp.domain_authority or 0))
    if opp.spam_score is not None and opp.spam_score <= LOW_SPAM_BONUS_MAX:
        quality += LOW_SPAM_POINTS
    return quality


def premium_quality(opp: DiscoveredOpportunity) -> float:
    return (
        (opp.domain_authority or 0) * 0.5
        + (100 - (opp.spam_score or 0) * 10) * 0.3
        + (opp.page_authority or 0) * 0.2
    )


def passes_preferences(opp: DiscoveredOpportunity, prefs: WebsitePreferences) -> bool:
    if prefs.min_domain_authority and (opp.domain_authority or 0) < prefs.min_domain_authority:
        return False
    if (
        prefs.max_spam_score is not None
        and opp.spam_score is not None
        and opp.spam_score > prefs.max_spam_score
    ):
        return False
    if opp.source_type in prefs.excluded_source_types:
        return False
    return True


def score_regular(
    profile: WebsiteProfile, website: Website, opp: DiscoveredOpportunity, weights: ScoreWeights
) -> ScoredOpportunity:
    relevance = calculate_relevance(profile, opp, website.preferences.drip_priorities)
    quality = regular_quality(opp)
    final = 0.0
    if passes_preferences(opp, website.preferences):
        final = relevance * weights.relevance_weight + quality * weights.quality_weight
    return ScoredOpportunity(opp, relevance, quality, final)


def score_premium(
    profile: WebsiteProfile, website: Website, opp: DiscoveredOpportunity, weights: ScoreWeights
) -> ScoredOpportunity:
    relevance = calculate_relevance(profile, opp, website.preferences.drip_priorities)
    quality = premium_quality(opp)
    final = relevance * weights.relevance_weight + quality * weights.quality_weight
    return ScoredOpportunity(opp, relevance, quality, final)


def rank(scored: list[ScoredOpportunity], min_score: float, limit: int) -> list[ScoredOpportunity]:
    kept = [s for s in scored if s.final > min_score]
    kept.sort(key=lambda s: s.final, reverse=True)
    return kept[: max(0, limit)]


def match_reasons(
    profile: WebsiteProfile, opp: DiscoveredOpportunity, relevance: int
) -> tuple[list[str], list[str]]:
    """Human-readable reasons plus the matched topics."""
    reasons: list[str] = []
    if relevance > 80:
        reasons.append("High content relevance to your website")
    elif relevance > 60:
        reasons.append("Good content relevance to your website")
    else:
        reasons.append("Some content relevance to your website")

    da = opp.domain_authority
    if da is not None and da >= 40:
        reasons.append(f"High domain authority ({da})")
    elif da is not None and da >= 20:
        reasons.append(f"Moderate domain authority ({da})")

    spam = opp.spam_score
    if spam is not None and spam < 2:
        reasons.append("Very low spam risk")
    elif spam is not None and spam < 5:
        reasons.append("Acceptable spam risk")

    topics = matched_topics(profile, opp)
    if topics:
        reasons.append(f"Matches {len(topics)} topics from your website")
    return reasons, topics


def month_start(now: datetime) -> datetime:
    return datetime(now.year, now.month, 1, tzinfo=UTC)


# --- Opportunity Matcher ---


class OpportunityMatcher:
    """Opportunity matching and daily delivery service."""

    def __init__(
        self,
        user_repo: UserRepoPort,
        website_repo: WebsiteRepoPort,
        profile_repo: WebsiteProfileRepoPort,
        opportunity_repo: OpportunityRepoPort,
        match_repo: MatchRepoPort,
        drip_repo: DripRepoPort,
        splash_repo: SplashRepoPort,
        plans: PlanCatalog,
        clock: ClockPort,
        config: MatchingConfig = DEFAULT_CONFIG,
    ) -> None:
        self._users = user_repo
        self._websites = website_repo
        self._profiles = profile_repo
        self._opportunities = opportunity_repo
        self._matches = match_repo
        self._drips = drip_repo
        self._splashes = splash_repo
        self._plans = plans
        self._clock = clock
        self._config = config
        self._user_locks: dict[UUID, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, user_id: UUID) -> threading.Lock:
        with self._locks_guard:
            return self._user_locks.setdefault(user_id, threading.Lock())

    # --- Finding matches ---

    def _website_and_profile(
        self, website_id: UUID
    ) -> tuple[Website | None, WebsiteProfile | None]:
        website = self._websites.get_by_id(website_id)
        if website is None:
            logger.info("Website %s not found", website_id)
            return None, None
        profile = self._profiles.get_by_website(website_id)
        if profile is None:
            logger.info("No profile for website %s", website_id)
        return website, profile

    def find_matches_for_website(
        self, website_id: UUID, limit: int = 10, exclude: set[UUID] | None = None
    ) -> list[ScoredOpportunity]:
        website, profile = self._website_and_profile(website_id)
        if website is None or profile is None:
            return []

        weights = self._config.regular
        skip = self._matches.assigned_opportunity_ids(website.user_id) | (exclude or set())
        candidates = self._opportunities.list_validated(limit=weights.candidate_limit)
        scored = [
            score_regular(profile, website, opp, weights)
            for opp in candidates
            if opp.id not in skip
        ]
        matches = rank(scored, weights.min_score, limit)
        logger.info("Found %d matches for website %s", len(matches), website_id)
        return matches

    def find_premium_matches_for_website(
        self, website_id: UUID, limit: int = 1, exclude: set[UUID] | None = None
    ) -> list[ScoredOpportunity]:
        website, profile = self._website_and_profile(website_id)
        if website is None or profile is None:
            return []

        weights = self._config.premium
        skip = self._matches.assigned_opportunity_ids(website.user_id) | (exclude or set())
        candidates = self._opportunities.list_validated(
            premium_only=True, limit=weights.candidate_limit
        )
        scored = [
            score_premium(profile, website, opp, weights)
            for opp in candidates
            if opp.id not in skip
        ]
        matches = rank(scored, weights.min_score, limit)
        logger.info("Found %d premium matches for website %s", len(matches), website_id)
        return matches

    def explain_match(self, opportunity_id: UUID, website_id: UUID) -> MatchExplanation:
        opp = self._opportunities.get_by_id(opportunity_id)
        website, profile = self._website_and_profile(website_id)
        if opp is None or website is None or profile is None:
            return MatchExplanation(reasons=["Not enough data to explain match"], score=0)

        relevance = calculate_relevance(profile, opp, website.preferences.drip_priorities)
        reasons, topics = match_reasons(profile, opp, relevance)
        metrics: dict[str, Any] = {
            "relevance_score": relevance,
            "domain_authority": opp.domain_authority,
            "spam_score": opp.spam_score,
            "topics": topics[:5],
        }
        return MatchExplanation(reasons=reasons, score=relevance, metrics=metrics)

    # --- Splash accounting ---

    def remaining_splashes(self, user: User) -> tuple[int, int]:
        """Return (allowance left this month, purchased credits)."""
        limits = self._plans.limits_for(user.plan)
        used = self._splashes.count_since(
            user.id, month_start(self._clock.now_utc()), source="monthly_allowance"
        )
        allowance_left = max(0, limits.splashes_per_month - used)
        return allowance_left, max(0, user.splash_credits)

    # --- Assignment ---

    def _assign(
        self,
        scored: ScoredOpportunity,
        user_id: UUID,
        website: Website,
        profile: WebsiteProfile | None,
        is_premium: bool,
        today: date,
    ) -> DailyDrip:
        now = self._clock.now_utc()
        opp = scored.opportunity
        opp.status = "premium" if is_premium else "assigned"
        opp.last_checked = now
        self._opportunities.save(opp)

        reasons: list[str] = []
        if profile is not None:
            reasons, _ = match_reasons(profile, opp, scored.relevance)

        existing = self._matches.get(website.id, opp.id)
        match = existing or OpportunityMatch(
            website_id=website.id, user_id=user_id, opportunity_id=opp.id, match_score=0
        )
        match.match_score = round(scored.final)
        match.match_reasons = reasons
        match.assigned_at = now
        match.status = "active"
        match.is_premium = is_premium
        self._matches.save(match)

        return self._drips.save(
            DailyDrip(
                user_id=user_id,
                opportunity_id=opp.id,
                website_id=website.id,
                drip_date=today,
                is_premium=is_premium,
            )
        )

    def _spend_splash(
        self, user: User, website_id: UUID, allowance_left: int
    ) -> tuple[int, SplashSource]:
        """Record one splash; returns the allowance left afterwards and what paid for it."""
        source: SplashSource
        if allowance_left > 0:
            source = "monthly_allowance"
            allowance_left -= 1
        else:
            source = "purchased"
            user.splash_credits = max(0, user.splash_credits - 1)
            user.updated_at = self._clock.now_utc()
            self._users.save(user)
        self._splashes.save(
            SplashUsage(
                user_id=user.id,
                website_id=website_id,
                used_at=self._clock.now_utc(),
                source=source,
            )
        )
        return allowance_left, source

    def _todays_counts(self, user_id: UUID, today: date) -> DripAssignment:
        drips = self._drips.list_for_user_on(user_id, today)
        premium = sum(1 for d in drips if d.is_premium)
        return DripAssignment(count=len(drips) - premium, premium=premium)

    def assign_daily_matches(self, user_id: UUID, today: date | None = None) -> DripAssignment:
        """Deliver today's drips and splashes to a user. Safe to call repeatedly."""
        today = today or self._clock.now_utc().date()

        with self._lock_for(user_id):
            if self._users.get_by_id(user_id) is None:
                return DripAssignment(count=0, premium=0)
            if not self._drips.claim_day(user_id, today):
                logger.info("Drips already assigned to user %s for %s", user_id, today)
                return self._todays_counts(user_id, today)

            try:
                result = self._deliver_daily(user_id, today)
            except Exception:
                self._drips.release_day(user_id, today)
                raise

            # Nothing delivered: leave the day open for a later run
            if result.count == 0 and result.premium == 0:
                self._drips.release_day(user_id, today)
            return result

    def _deliver_daily(self, user_id: UUID, today: date) -> DripAssignment:
        user = self._users.get_by_id(user_id)
        if user is None:
            return DripAssignment(count=0, premium=0)

        limits = self._plans.limits_for(user.plan)
        websites = self._websites.list_by_user(user_id, active_only=True)[: limits.websites]
        if not websites:
            logger.info("No websites found for user %s", user_id)
            return DripAssignment(count=0, premium=0)

        allowance_left, credits = self.remaining_splashes(user)
        splash_budget = allowance_left + credits

        regular_count = 0
        premium_count = 0
        delivered = {d.opportunity_id for d in self._drips.list_for_user_on(user_id, today)}
        for website in websites:
            profile = self._profiles.get_by_website(website.id)

            if regular_count < limits.drips_per_day:
                for scored in self.find_matches_for_website(
                    website.id, limits.drips_per_day - regular_count, exclude=delivered
                ):
                    self._assign(scored, user_id, website, profile, False, today)
                    delivered.add(scored.opportunity.id)
                    regular_count += 1

            if premium_count < splash_budget:
                for scored in self.find_premium_matches_for_website(
                    website.id, splash_budget - premium_count, exclude=delivered
                ):
                    self._assign(scored, user_id, website, profile, True, today)
                    allowance_left, _ = self._spend_splash(user, website.id, allowance_left)
                    delivered.add(scored.opportunity.id)
                    premium_count += 1

        logger.info(
            "Assigned %d regular and %d premium matches to user %s",
            regular_count,
            premium_count,
            user_id,
        )
        return DripAssignment(count=regular_count, premium=premium_count)

    def use_splash(
        self, user_id: UUID, website_id: UUID | None = None, today: date | None = None
    ) -> tuple[SplashResult | None, list[MatchingValidationError]]:
        """Spend one splash now and add the best premium match to today's drips."""
        today = today or self._clock.now_utc().date()

        with self._lock_for(user_id):
            user = self._users.get_by_id(user_id)
            if user is None:
                return None, [
                    MatchingValidationError(code="user_not_found", message="User not found")
                ]

            limits = self._plans.limits_for(user.plan)
            websites = self._websites.list_by_user(user_id, active_only=True)[: limits.websites]
            if website_id is not None:
                websites = [w for w in websites if w.id == website_id]
                if not websites:
                    return None, [
                        MatchingValidationError(
                            code="website_not_found",
                            message=f"Website with ID {website_id} not found",
                            field="website_id",
                        )
                    ]

            allowance_left, credits = self.remaining_splashes(user)
            if allowance_left + credits <= 0:
                return None, [
                    MatchingValidationError(
                        code="no_splashes_available",
                        message="No splashes left this month and no purchased credits",
                    )
                ]

            delivered = {d.opportunity_id for d in self._drips.list_for_user_on(user_id, today)}
            for website in websites:
                found = self.find_premium_matches_for_website(website.id, 1, exclude=delivered)
                if found:
                    break
            else:
                return None, [
                    MatchingValidationError(
                        code="no_premium_opportunity",
                        message="No premium opportunities available",
                    )
                ]

            scored = found[0]
            profile = self._profiles.get_by_website(website.id)
            drip = self._assign(scored, user_id, website, profile, True, today)
            allowance_left, source = self._spend_splash(user, website.id, allowance_left)
            logger.info("User %s used a %s splash on %s", user_id, source, scored.opportunity.url)
            return (
                SplashResult(
                    drip=drip,
                    opportunity=scored.opportunity,
                    source=source,
                    splashes_remaining=allowance_left + max(0, user.splash_credits),
                ),
                [],
            )

    def usage_stats(self, user_id: UUID) -> UsageStats | None:
        """Today's drip counts and this month's splash usage for a user."""
        user = self._users.get_by_id(user_id)
        if user is None:
            return None

        now = self._clock.now_utc()
        limits = self._plans.limits_for(user.plan)
        today = self._todays_counts(user_id, now.date())
        allowance_left, credits = self.remaining_splashes(user)
        return UsageStats(
            plan=limits.name,
            drips_today=today.count,
            premium_today=today.premium,
            drips_per_day=limits.drips_per_day,
            splashes_per_month=limits.splashes_per_month,
            splashes_used_this_month=self._splashes.count_since(user_id, month_start(now)),
            splash_credits=credits,
            splashes_remaining=allowance_left + credits,
            websites=len(self._websites.list_by_user(user_id, active_only=True)),
            max_websites=limits.websites,
        )

    def process_new_opportunities(self) -> int:
        """Record pending matches between active websites and their best candidates."""
        created = 0
        for website in self._websites.list_active():
            profile = self._profiles.get_by_website(website.id)
            if profile is None:
                continue
            known = self._matches.matched_opportunity_ids(website.id)
            for scored in self.find_matches_for_website(website.id, exclude=known):
                reasons, _ = match_reasons(profile, scored.opportunity, scored.relevance)
                self._matches.save(
                    OpportunityMatch(
                        website_id=website.id,
                        user_id=website.user_id,
                        opportunity_id=scored.opportunity.id,
                        match_score=round(scored.final),
                        match_reasons=reasons,
                        assigned_at=self._clock.now_utc(),
                        status="pending",
                    )
                )
                created += 1
        logger.info("Created %d new matches", created)
        return created

    def assign_daily_opportunities(self, today: date | None = None) -> int:
        """Run daily assignment for every active user; returns drips delivered."""
        today = today or self._clock.now_utc().date()
        total = 0
        for user in self._users.list_all():
            if user.status != "active":
                continue
            try:
                result = self.assign_daily_matches(user.id, today)
            except Exception:
                logger.exception("Daily assignment failed for user %s", user.id)
                continue
            total += result.count + result.premium
        return total

    # --- Drips ---

    def list_daily_drips(self, user_id: UUID, day: date | None = None) -> list[DripWithOpportunity]:
        day = day or self._clock.now_utc().date()
        return [
            DripWithOpportunity(drip, self._opportunities.get_by_id(drip.opportunity_id))
            for drip in self._drips.list_for_user_on(user_id, day)
        ]

    def update_drip_status(
        self, user_id: UUID, drip_id: UUID, status: str
    ) -> tuple[DailyDrip | None, list[MatchingValidationError]]:
        if status not in DRIP_STATUSES:
            return None, [
                MatchingValidationError(
                    code="status_invalid",
                    message=f"Status must be one of: {', '.join(DRIP_STATUSES)}",
                    field="status",
                )
            ]

        drip = self._drips.get_by_id(drip_id)
        if drip is None or drip.user_id != user_id:
            return None, [
                MatchingValidationError(
                    code="drip_not_found", message=f"Drip with ID {drip_id} not found"
                )
            ]

        drip.status = status  # type: ignore[assignment]
        self._drips.save(drip)

        if drip.website_id is not None and status in ("saved", "hidden"):
            match = self._matches.get(drip.website_id, drip.opportunity_id)
            if match is not None:
                if status == "saved":
                    match.user_saved = True
                else:
                    match.user_dismissed = True
                self._matches.save(match)

        return drip, []
