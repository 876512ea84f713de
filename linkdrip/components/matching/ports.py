"""
Matching component - Port interfaces.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Protocol
from uuid import UUID

from linkdrip.domain.entities import (
    DailyDrip,
    DiscoveredOpportunity,
    OpportunityMatch,
    SplashUsage,
    User,
    Website,
    WebsiteProfile,
)


class UserRepoPort(Protocol):
    def get_by_id(self, user_id: UUID) -> User | None:
        ...

    def list_all(self) -> list[User]:
        ...

    def save(self, user: User) -> User:
        ...


class WebsiteRepoPort(Protocol):
    def get_by_id(self, website_id: UUID) -> Website | None:
        ...

    def list_by_user(self, user_id: UUID, active_only: bool = False) -> list[Website]:
        ...

    def list_active(self) -> list[Website]:
        ...


class WebsiteProfileRepoPort(Protocol):
    def get_by_website(self, website_id: UUID) -> WebsiteProfile | None:
        ...


class OpportunityRepoPort(Protocol):
    def get_by_id(self, opportunity_id: UUID) -> DiscoveredOpportunity | None:
        ...

    def save(self, opp: DiscoveredOpportunity) -> DiscoveredOpportunity:
        ...

    def list_validated(
        self, premium_only: bool = False, limit: int = 100
    ) -> list[DiscoveredOpportunity]:
        """Validated opportunities, highest domain authority first."""
        ...


class MatchRepoPort(Protocol):
    def save(self, match: OpportunityMatch) -> OpportunityMatch:
        """Upsert keyed by (website_id, opportunity_id)."""
        ...

    def get(self, website_id: UUID, opportunity_id: UUID) -> OpportunityMatch | None:
        ...

    def assigned_opportunity_ids(self, user_id: UUID) -> set[UUID]:
        """Opportunities already delivered to the user."""
        ...

    def matched_opportunity_ids(self, website_id: UUID) -> set[UUID]:
        """Opportunities with any match record for the website."""
        ...


class DripRepoPort(Protocol):
    def save(self, drip: DailyDrip) -> DailyDrip:
        ...

    def get_by_id(self, drip_id: UUID) -> DailyDrip | None:
        ...

    def list_for_user_on(self, user_id: UUID, day: date) -> list[DailyDrip]:
        ...

    def claim_day(self, user_id: UUID, day: date) -> bool:
        """Atomically mark the day as assigned; False when already claimed."""
        ...

    def release_day(self, user_id: UUID, day: date) -> None:
        ...


class SplashRepoPort(Protocol):
    def save(self, usage: SplashUsage) -> SplashUsage:
        ...

    def count_since(self, user_id: UUID, since: datetime, source: str | None = None) -> int:
        ...


class ClockPort(Protocol):
    def now_utc(self) -> datetime:
        ...
