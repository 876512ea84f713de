"""
Contacts component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass

from linkdrip.domain.entities import ContactInfo


@dataclass(frozen=True)
class ExtractContactsInput:
    """Input for extracting contact details from a page."""

    html: str
    base_url: str


@dataclass(frozen=True)
class ExtractContactsOutput:
    """Output from contact extraction."""

    contact_info: ContactInfo
    has_contact_method: bool
