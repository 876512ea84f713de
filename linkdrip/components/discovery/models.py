"""
Discovery component - Data models.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any


@dataclass
class PipelineStats:
    """Counters collected over one pipeline run."""

    start_time: datetime | None = None
    end_time: datetime | None = None
    duration_ms: int = 0
    websites_analyzed: int = 0
    opportunities_discovered: int = 0
    enriched: int = 0
    validated: int = 0
    matches_created: int = 0
    drips_assigned: int = 0
    errors: int = 0
    skipped: bool = False

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        for key in ("start_time", "end_time"):
            if data[key] is not None:
                data[key] = data[key].isoformat()
        return data


@dataclass(frozen=True)
class PipelineResult:
    success: bool
    stats: PipelineStats
