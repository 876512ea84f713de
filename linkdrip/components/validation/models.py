"""
Validation component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from linkdrip.rules.models import ValidationRules

DEFAULT_SPAM_PATTERNS: tuple[str, ...] = (
    "viagra",
    "cialis",
    "casino",
    "poker",
    "loan",
    "payday",
    "diet",
    "weight loss",
    "free download",
    "free offer",
)


# --- Configuration ---


@dataclass(frozen=True)
class Thresholds:
    """Quality bar an opportunity's combined metrics must clear."""

    min_domain_authority: int
    min_relevance: int
    max_spam_score: float

    def met_by(self, metrics: dict[str, Any]) -> bool:
        return (
            (metrics.get("domain_authority") or 0) >= self.min_domain_authority
            and (metrics.get("spam_score") or 0) <= self.max_spam_score
            and (metrics.get("relevance_score") or 0) >= self.min_relevance
        )


@dataclass(frozen=True)
class ValidationConfig:
    """Validation configuration from rules."""

    standard: Thresholds = Thresholds(20, 60, 5)
    premium: Thresholds = Thresholds(40, 80, 2)
    batch_size: int = 20
    min_content_length: int = 100
    max_spam_matches: int = 2
    max_links: int = 50
    min_text_link_ratio: float = 20
    min_tier2_relevance: int = 40
    connect_timeout_seconds: float = 5
    spam_patterns: tuple[str, ...] = DEFAULT_SPAM_PATTERNS
    suspicious_tlds: tuple[str, ...] = (".xyz", ".top", ".click", ".loan", ".work")
    fallback_domain_authority: int = 25
    fallback_page_authority: int = 20
    fallback_spam_score: float = 3

    @classmethod
    def from_rules(cls, rules: ValidationRules) -> ValidationConfig:
        return cls(
            standard=Thresholds(
                rules.standard.min_domain_authority,
                rules.standard.min_relevance,
                rules.standard.max_spam_score,
            ),
            premium=Thresholds(
                rules.premium.min_domain_authority,
                rules.premium.min_relevance,
                rules.premium.max_spam_score,
            ),
            batch_size=rules.batch_size,
            min_content_length=rules.min_content_length,
            max_spam_matches=rules.max_spam_matches,
            max_links=rules.max_links,
            min_text_link_ratio=rules.min_text_link_ratio,
            min_tier2_relevance=rules.min_tier2_relevance,
            connect_timeout_seconds=rules.connect_timeout_seconds,
            spam_patterns=tuple(p.lower() for p in rules.spam_patterns),
            suspicious_tlds=tuple(t.lower() for t in rules.suspicious_tlds),
            fallback_domain_authority=rules.fallback_metrics.domain_authority,
            fallback_page_authority=rules.fallback_metrics.page_authority,
            fallback_spam_score=rules.fallback_metrics.spam_score,
        )


DEFAULT_CONFIG = ValidationConfig()


# --- Validation Errors ---


@dataclass(frozen=True)
class ValidationInputError:
    """Validation request error."""

    code: str
    message: str
    field: str | None = None


# --- Tier Results ---


@dataclass
class TierResult:
    """Outcome of a single tier. Metrics are always present, even on failure."""

    is_passing: bool
    metrics: dict[str, Any] = field(default_factory=dict)
    fail_reason: str | None = None


@dataclass(frozen=True)
class ValidationOutcome:
    """Outcome of the full pipeline for one opportunity."""

    is_passing: bool
    is_premium: bool
    metrics: dict[str, Any]
    tier: int
    fail_reason: str | None = None


# --- Input Models ---


@dataclass(frozen=True)
class ValidateBatchInput:
    """Input for a validation batch. Empty ids means the next discovered batch."""

    opportunity_ids: tuple[UUID, ...] = ()


# --- Output Models ---


@dataclass(frozen=True)
class BatchValidationResult:
    """Counts from one validation batch."""

    processed: int
    passing: int
    premium: int
    failed: int


@dataclass(frozen=True)
class ValidateBatchOutput:
    """Output from a validation batch run."""

    result: BatchValidationResult | None
    errors: tuple[ValidationInputError, ...]
    success: bool
