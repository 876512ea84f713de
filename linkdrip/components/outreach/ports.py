"""
Outreach component - Port interfaces.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from linkdrip.core.ports.email import EmailPort
from linkdrip.domain.entities import ContactActivity, DiscoveredOpportunity, OutreachEmail


class OutreachEmailRepoPort(Protocol):
    def save(self, email: OutreachEmail) -> OutreachEmail:
        ...

    def get_by_id(self, email_id: UUID) -> OutreachEmail | None:
        ...

    def get_by_message_id(self, message_id: str) -> OutreachEmail | None:
        ...

    def list_by_user(self, user_id: UUID) -> list[OutreachEmail]:
        """Newest first."""
        ...


class ContactActivityRepoPort(Protocol):
    def save(self, activity: ContactActivity) -> ContactActivity:
        ...

    def get_by_id(self, activity_id: UUID) -> ContactActivity | None:
        ...

    def get_by_email_id(self, email_id: UUID) -> ContactActivity | None:
        ...


class OpportunityRepoPort(Protocol):
    def get_by_id(self, opportunity_id: UUID) -> DiscoveredOpportunity | None:
        ...

    def save(self, opp: DiscoveredOpportunity) -> DiscoveredOpportunity:
        ...


class ClockPort(Protocol):
    def now_utc(self) -> datetime:
        ...


__all__ = [
    "ClockPort",
    "ContactActivityRepoPort",
    "EmailPort",
    "OpportunityRepoPort",
    "OutreachEmailRepoPort",
]
