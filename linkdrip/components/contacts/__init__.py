"""
Contacts component - Contact extraction from crawled pages.
"""

from .component import (
    compute_confidence,
    deobfuscate_emails,
    extract_contact_info,
    extract_json_ld,
    extract_social_profile,
    is_valid_email,
    merge_contact_info,
    normalize_contact_info,
    run,
)
from .models import ExtractContactsInput, ExtractContactsOutput

__all__ = [
    # Entry point
    "run",
    # Models
    "ExtractContactsInput",
    "ExtractContactsOutput",
    # Functional core
    "compute_confidence",
    "deobfuscate_emails",
    "extract_contact_info",
    "extract_json_ld",
    "extract_social_profile",
    "is_valid_email",
    "merge_contact_info",
    "normalize_contact_info",
]
