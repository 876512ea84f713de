"""
Discovery component - Scheduled discovery pipeline.
"""

from ._impl import DiscoveryScheduler
from .models import PipelineResult, PipelineStats
from .ports import ClockPort, CrawlerPort, MatcherPort, ValidatorPort, WebsiteAnalyzerPort

__all__ = [
    # Service
    "DiscoveryScheduler",
    # Output models
    "PipelineResult",
    "PipelineStats",
    # Ports
    "ClockPort",
    "CrawlerPort",
    "MatcherPort",
    "ValidatorPort",
    "WebsiteAnalyzerPort",
]
