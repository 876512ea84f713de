"""
Maintenance component - Stalled job cleanup.
"""

from ._impl import MaintenanceService
from .models import DEFAULT_CONFIG, STALLED_JOB_ERROR, CleanupResult, MaintenanceConfig
from .ports import ClockPort, CrawlerJobRepoPort

__all__ = [
    "MaintenanceService",
    "CleanupResult",
    "MaintenanceConfig",
    "DEFAULT_CONFIG",
    "STALLED_JOB_ERROR",
    "ClockPort",
    "CrawlerJobRepoPort",
]
