"""
Matching component - Opportunity matching and daily drips.
"""

from ._impl import (
    OpportunityMatcher,
    match_reasons,
    passes_preferences,
    premium_quality,
    regular_quality,
    score_premium,
    score_regular,
)
from .component import run_explain_match, run_update_drip, run_use_splash
from .models import (
    DEFAULT_CONFIG,
    DRIP_STATUSES,
    DripAssignment,
    DripOutput,
    DripWithOpportunity,
    ExplainMatchInput,
    ExplainMatchOutput,
    MatchExplanation,
    MatchingConfig,
    MatchingValidationError,
    ScoredOpportunity,
    ScoreWeights,
    SplashOutput,
    SplashResult,
    UpdateDripInput,
    UsageStats,
    UseSplashInput,
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

__all__ = [
    # Entry points
    "run_explain_match",
    "run_update_drip",
    "run_use_splash",
    # Input models
    "ExplainMatchInput",
    "UpdateDripInput",
    "UseSplashInput",
    # Output models
    "ExplainMatchOutput",
    "DripOutput",
    "SplashOutput",
    "SplashResult",
    "UsageStats",
    "DripAssignment",
    "DripWithOpportunity",
    "MatchExplanation",
    "MatchingValidationError",
    "ScoredOpportunity",
    # Config
    "MatchingConfig",
    "ScoreWeights",
    "DEFAULT_CONFIG",
    "DRIP_STATUSES",
    # Ports
    "ClockPort",
    "DripRepoPort",
    "MatchRepoPort",
    "OpportunityRepoPort",
    "SplashRepoPort",
    "UserRepoPort",
    "WebsiteProfileRepoPort",
    "WebsiteRepoPort",
    # Service
    "OpportunityMatcher",
    "match_reasons",
    "passes_preferences",
    "premium_quality",
    "regular_quality",
    "score_premium",
    "score_regular",
]
