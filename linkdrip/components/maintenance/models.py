"""
Maintenance component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass

from linkdrip.rules.models import MaintenanceRules

STALLED_JOB_ERROR = "Job automatically terminated due to exceeding maximum runtime"


@dataclass(frozen=True)
class MaintenanceConfig:
    """Maintenance configuration from rules."""

    max_job_duration_hours: float = 1
    batch_size: int = 10
    max_jobs_per_run: int = 500

    @classmethod
    def from_rules(cls, rules: MaintenanceRules) -> MaintenanceConfig:
        return cls(
            max_job_duration_hours=rules.max_job_duration_hours,
            batch_size=rules.batch_size,
        )


DEFAULT_CONFIG = MaintenanceConfig()


@dataclass(frozen=True)
class CleanupResult:
    """Counts from one stalled-job sweep."""

    found: int
    cleaned: int
    failed: int
