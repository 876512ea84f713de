"""
Analyzer component - Port interfaces.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from linkdrip.domain.entities import Website, WebsiteProfile


class WebsiteRepoPort(Protocol):
    """Repository interface for user websites."""

    def get_by_id(self, website_id: UUID) -> Website | None:
        ...

    def list_by_user(self, user_id: UUID, active_only: bool = False) -> list[Website]:
        ...

    def list_active(self) -> list[Website]:
        ...


class WebsiteProfileRepoPort(Protocol):
    """Repository interface for website profiles. One profile per website."""

    def save(self, profile: WebsiteProfile) -> WebsiteProfile:
        """Upsert by website_id."""
        ...

    def get_by_website(self, website_id: UUID) -> WebsiteProfile | None:
        ...


class ClockPort(Protocol):
    def now_utc(self) -> datetime:
        ...
