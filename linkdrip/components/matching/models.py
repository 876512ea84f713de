"""
Matching component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from linkdrip.domain.entities import DailyDrip, DiscoveredOpportunity, SplashSource
from linkdrip.rules.models import MatchingRules, MatchWeights

DRIP_STATUSES = ("active", "clicked", "saved", "hidden")


# --- Configuration ---


@dataclass(frozen=True)
class ScoreWeights:
    relevance_weight: float
    quality_weight: float
    min_score: float
    candidate_limit: int

    @classmethod
    def from_rules(cls, rules: MatchWeights) -> ScoreWeights:
        return cls(
            rules.relevance_weight, rules.quality_weight, rules.min_score, rules.candidate_limit
        )


@dataclass(frozen=True)
class MatchingConfig:
    """Matching configuration from rules."""

    regular: ScoreWeights = ScoreWeights(0.7, 0.3, 40, 100)
    premium: ScoreWeights = ScoreWeights(0.4, 0.6, 60, 50)

    @classmethod
    def from_rules(cls, rules: MatchingRules) -> MatchingConfig:
        return cls(
            regular=ScoreWeights.from_rules(rules.regular),
            premium=ScoreWeights.from_rules(rules.premium),
        )


DEFAULT_CONFIG = MatchingConfig()


# --- Validation Errors ---


@dataclass(frozen=True)
class MatchingValidationError:
    """Matching validation error."""

    code: str
    message: str
    field: str | None = None


# --- Scoring ---


@dataclass(frozen=True)
class ScoredOpportunity:
    """An opportunity with its relevance, quality and combined score."""

    opportunity: DiscoveredOpportunity
    relevance: int
    quality: float
    final: float


@dataclass(frozen=True)
class MatchExplanation:
    reasons: list[str]
    score: int
    metrics: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DripAssignment:
    """Drips delivered to one user for one day."""

    count: int
    premium: int


@dataclass(frozen=True)
class DripWithOpportunity:
    drip: DailyDrip
    opportunity: DiscoveredOpportunity | None


@dataclass(frozen=True)
class SplashResult:
    """A premium opportunity delivered on demand."""

    drip: DailyDrip
    opportunity: DiscoveredOpportunity
    source: SplashSource
    splashes_remaining: int


@dataclass(frozen=True)
class UsageStats:
    plan: str
    drips_today: int
    premium_today: int
    drips_per_day: int
    splashes_per_month: int
    splashes_used_this_month: int
    splash_credits: int
    splashes_remaining: int
    websites: int
    max_websites: int


# --- Input Models ---


@dataclass(frozen=True)
class ExplainMatchInput:
    opportunity_id: UUID
    website_id: UUID
    user_id: UUID


@dataclass(frozen=True)
class UpdateDripInput:
    drip_id: UUID
    user_id: UUID
    status: str


@dataclass(frozen=True)
class UseSplashInput:
    user_id: UUID
    website_id: UUID | None = None


# --- Output Models ---


@dataclass(frozen=True)
class ExplainMatchOutput:
    explanation: MatchExplanation | None
    errors: tuple[MatchingValidationError, ...]
    success: bool


@dataclass(frozen=True)
class DripOutput:
    drip: DailyDrip | None
    errors: tuple[MatchingValidationError, ...]
    success: bool


@dataclass(frozen=True)
class SplashOutput:
    splash: SplashResult | None
    errors: tuple[MatchingValidationError, ...]
    success: bool
