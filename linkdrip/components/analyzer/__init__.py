"""
Analyzer component - Website profiling and relevance scoring.
"""

from ._impl import (
    WebsiteAnalyzer,
    calculate_relevance,
    extract_keywords_and_topics,
    extract_preferences,
    matched_topics,
    opportunity_text,
)
from .component import run_analyze_website
from .models import AnalyzeAllResult, AnalyzerValidationError, AnalyzeWebsiteInput, AnalyzeWebsiteOutput
from .ports import ClockPort, WebsiteProfileRepoPort, WebsiteRepoPort

__all__ = [
    # Entry point
    "run_analyze_website",
    # Input models
    "AnalyzeWebsiteInput",
    # Output models
    "AnalyzeWebsiteOutput",
    "AnalyzeAllResult",
    "AnalyzerValidationError",
    # Ports
    "ClockPort",
    "WebsiteProfileRepoPort",
    "WebsiteRepoPort",
    # Service
    "WebsiteAnalyzer",
    "calculate_relevance",
    "extract_keywords_and_topics",
    "extract_preferences",
    "matched_topics",
    "opportunity_text",
]
