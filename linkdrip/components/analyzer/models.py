"""
Analyzer component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from linkdrip.domain.entities import WebsiteProfile

# --- Validation Errors ---


@dataclass(frozen=True)
class AnalyzerValidationError:
    """Analyzer validation error."""

    code: str
    message: str
    field: str | None = None


# --- Input Models ---


@dataclass(frozen=True)
class AnalyzeWebsiteInput:
    """Input for profiling one website on behalf of its owner."""

    website_id: UUID
    user_id: UUID


# --- Output Models ---


@dataclass(frozen=True)
class AnalyzeWebsiteOutput:
    """Output from profiling a website."""

    profile: WebsiteProfile | None
    errors: tuple[AnalyzerValidationError, ...]
    success: bool


@dataclass(frozen=True)
class AnalyzeAllResult:
    """Counts from profiling every active website."""

    analyzed: int
    failed: int
