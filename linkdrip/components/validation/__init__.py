"""
Validation component - Three-tier opportunity validation.
"""

from ._impl import (
    ValidationPipeline,
    content_relevance_score,
    detect_red_flags,
    find_spam_words,
    local_spam_score,
)
from .component import run_validate_batch
from .models import (
    DEFAULT_CONFIG,
    BatchValidationResult,
    Thresholds,
    TierResult,
    ValidateBatchInput,
    ValidateBatchOutput,
    ValidationConfig,
    ValidationInputError,
    ValidationOutcome,
)
from .ports import ClockPort, OpportunityRepoPort

__all__ = [
    # Entry point
    "run_validate_batch",
    # Input models
    "ValidateBatchInput",
    # Output models
    "ValidateBatchOutput",
    "BatchValidationResult",
    "ValidationOutcome",
    "TierResult",
    "ValidationInputError",
    # Config
    "ValidationConfig",
    "Thresholds",
    "DEFAULT_CONFIG",
    # Ports
    "ClockPort",
    "OpportunityRepoPort",
    # Service
    "ValidationPipeline",
    "content_relevance_score",
    "detect_red_flags",
    "find_spam_words",
    "local_spam_score",
]
