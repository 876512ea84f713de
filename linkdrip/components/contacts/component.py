"""
Contacts component - Contact detail extraction and normalization.

Pulls every reachable contact channel out of a crawled page: email
addresses (plain, mailto, data attributes, obfuscated, JSON-LD), social
profiles, a contact form URL and phone numbers.

Invariants:
- Emails are lower-cased and unique, in discovery order
- The first email found is the primary one; the rest go to `emails`
- Image filenames and placeholder domains are never reported as emails
- Social profiles are unique per (platform, username)
"""

from __future__ import annotations

import html as html_lib
import json
import re
from datetime import datetime
from typing import Any
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from linkdrip.domain.entities import ContactInfo, SocialProfile

from .models import ExtractContactsInput, ExtractContactsOutput

# --- Patterns ---

EMAIL_PATTERN = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")

_AT = r"(?:\s*[\[\(\{]\s*at\s*[\]\)\}]\s*|\s+at\s+)"
_DOT = r"(?:\s*[\[\(\{]\s*dot\s*[\]\)\}]\s*|\s+dot\s+)"
OBFUSCATED_EMAIL_PATTERN = re.compile(
    rf"\b([A-Za-z0-9._%+-]+){_AT}([A-Za-z0-9-]+(?:{_DOT}[A-Za-z0-9-]+)+)\b",
    re.IGNORECASE,
)
_DOT_RE = re.compile(_DOT, re.IGNORECASE)

# Obfuscated addresses are only trusted with a well-known TLD; prose like
# "look at this dot point" would otherwise turn into an address.
OBFUSCATED_TLDS = frozenset(
    {"com", "org", "net", "io", "co", "edu", "gov", "info", "biz", "uk", "us", "ca", "au", "de"}
)

IGNORED_EMAIL_SUFFIXES = (".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg", ".css", ".js")
PLACEHOLDER_EMAIL_DOMAINS = frozenset(
    {"example.com", "example.org", "domain.com", "email.com", "yourdomain.com", "sentry.io"}
)

PHONE_PATTERNS = [
    re.compile(r"\(\d{3}\)\s*\d{3}[-.\s]\d{4}"),  # (555) 123-4567
    re.compile(r"\b\d{3}[-.\s]\d{3}[-.\s]\d{4}\b"),  # 555-123-4567
    re.compile(r"\+\d{1,3}[\s.-]?\(?\d{1,4}\)?(?:[\s.-]?\d{2,4}){2,4}"),  # +44 20 7946 0958
]

SOCIAL_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    ("facebook", re.compile(r"^(?:https?://)?(?:[a-z0-9-]+\.)?facebook\.com/(?:pg/)?([A-Za-z0-9_.\-]+)", re.I)),
    ("twitter", re.compile(r"^(?:https?://)?(?:[a-z0-9-]+\.)?(?:twitter|x)\.com/([A-Za-z0-9_]+)", re.I)),
    ("linkedin", re.compile(r"^(?:https?://)?(?:[a-z0-9-]+\.)?linkedin\.com/(?:in|company)/([A-Za-z0-9_.\-]+)", re.I)),
    ("instagram", re.compile(r"^(?:https?://)?(?:[a-z0-9-]+\.)?instagram\.com/([A-Za-z0-9_.\-]+)", re.I)),
    ("youtube", re.compile(r"^(?:https?://)?(?:[a-z0-9-]+\.)?youtube\.com/(?:channel/|user/|c/|@)([A-Za-z0-9_.\-]+)", re.I)),
    ("pinterest", re.compile(r"^(?:https?://)?(?:[a-z0-9-]+\.)?pinterest\.com/([A-Za-z0-9_.\-]+)", re.I)),
    ("github", re.compile(r"^(?:https?://)?(?:[a-z0-9-]+\.)?github\.com/([A-Za-z0-9_.\-]+)", re.I)),
    ("medium", re.compile(r"^(?:https?://)?(?:[a-z0-9-]+\.)?medium\.com/@?([A-Za-z0-9_.\-]+)", re.I)),
    ("reddit", re.compile(r"^(?:https?://)?(?:[a-z0-9-]+\.)?reddit\.com/(?:r|u|user)/([A-Za-z0-9_\-]+)", re.I)),
    ("tiktok", re.compile(r"^(?:https?://)?(?:[a-z0-9-]+\.)?tiktok\.com/@([A-Za-z0-9_.\-]+)", re.I)),
]

# Path segments that are share widgets or site chrome, not profiles.
IGNORED_SOCIAL_HANDLES = frozenset(
    {
        "sharer", "sharer.php", "share", "share.php", "intent", "login", "signup",
        "home", "hashtag", "search", "watch", "embed", "dialog", "plugins", "tr",
        "privacy", "policies", "help", "about", "settings", "explore",
    }
)


# --- Pure Functions (Functional Core) ---


def is_valid_email(email: str) -> bool:
    """Check that an address looks real and is not an asset filename or placeholder."""
    email = email.strip().lower()
    if not EMAIL_PATTERN.fullmatch(email):
        return False
    if email.endswith(IGNORED_EMAIL_SUFFIXES):
        return False
    domain = email.rsplit("@", 1)[1]
    return domain not in PLACEHOLDER_EMAIL_DOMAINS


def deobfuscate_emails(text: str) -> list[str]:
    """Find addresses written as `name [at] domain [dot] com` or `name at domain dot com`."""
    found: list[str] = []
    for match in OBFUSCATED_EMAIL_PATTERN.finditer(text):
        local = match.group(1)
        domain = _DOT_RE.sub(".", match.group(2)).replace(" ", "")
        tld = domain.rsplit(".", 1)[-1].lower()
        if tld not in OBFUSCATED_TLDS:
            continue
        found.append(f"{local}@{domain}".lower())
    return found


def extract_json_ld(soup: BeautifulSoup) -> list[dict[str, Any]]:
    """Extract JSON-LD blocks, flattening top-level lists and @graph arrays."""
    blocks: list[dict[str, Any]] = []
    for script in soup.find_all("script", type="application/ld+json"):
        try:
            data = json.loads(script.string or "")
        except (json.JSONDecodeError, TypeError):
            continue
        items = data if isinstance(data, list) else [data]
        for item in items:
            if not isinstance(item, dict):
                continue
            blocks.append(item)
            graph = item.get("@graph")
            if isinstance(graph, list):
                blocks.extend(g for g in graph if isinstance(g, dict))
    return blocks


def _json_ld_emails(blocks: list[dict[str, Any]]) -> list[str]:
    emails: list[str] = []

    def visit(node: Any) -> None:
        if isinstance(node, dict):
            for key, value in node.items():
                if key == "email" and isinstance(value, str):
                    emails.append(value.replace("mailto:", "").strip())
                else:
                    visit(value)
        elif isinstance(node, list):
            for item in node:
                visit(item)

    visit(blocks)
    return emails


def extract_social_profile(href: str) -> SocialProfile | None:
    """Match a link against known social platforms."""
    for platform, pattern in SOCIAL_PATTERNS:
        match = pattern.match(href.strip())
        if not match:
            continue
        username = match.group(1).rstrip(".")
        if not username or username.lower() in IGNORED_SOCIAL_HANDLES:
            return None
        url = href.strip()
        if not url.startswith(("http://", "https://")):
            url = f"https://{url}"
        return SocialProfile(platform=platform, url=url, username=username)
    return None


def _digits(value: str) -> str:
    return re.sub(r"\D", "", value)


def compute_confidence(info: ContactInfo) -> float:
    """Score how reachable a site is from the channels found (0-1)."""
    score = 0.0
    if info.email or info.emails:
        score += 0.4
    if info.form:
        score += 0.2
    score += 0.1 * min(3, len(info.social))
    if info.phones:
        score += 0.1
    return round(min(1.0, score), 2)


def _same_site(url: str, base_url: str) -> bool:
    host = urlparse(url).hostname or ""
    base_host = urlparse(base_url).hostname or ""
    return host.removeprefix("www.") == base_host.removeprefix("www.")


def _find_contact_form(soup: BeautifulSoup, base_url: str) -> str | None:
    for form in soup.find_all("form"):
        if form.find("textarea") and form.find("input", attrs={"type": "email"}):
            return base_url

    for link in soup.find_all("a", href=True):
        href = link["href"].strip()
        text = link.get_text(" ", strip=True).lower()
        if href.startswith(("mailto:", "tel:", "javascript:", "#")):
            continue
        if "contact" in href.lower() or "contact" in text:
            absolute = urljoin(base_url, href)
            if _same_site(absolute, base_url):
                return absolute
    return None


def extract_contact_info(html: str, base_url: str, now: datetime | None = None) -> ContactInfo:
    """
    Extract all contact channels from an HTML page.

    Args:
        html: Raw page HTML
        base_url: URL the page was fetched from (for resolving relative links)
        now: Timestamp recorded as last_updated

    Returns:
        ContactInfo with confidence filled in
    """
    soup = BeautifulSoup(html or "", "html.parser")
    json_ld = extract_json_ld(soup)

    emails: list[str] = []
    sources: list[str] = []

    def add_emails(candidates: list[str], source: str) -> None:
        added = False
        for candidate in candidates:
            email = candidate.strip().lower()
            if is_valid_email(email) and email not in emails:
                emails.append(email)
                added = True
        if added and source not in sources:
            sources.append(source)

    # mailto links (entities are already decoded by the parser)
    mailtos = []
    for link in soup.find_all("a", href=True):
        href = link["href"].strip()
        if href.lower().startswith("mailto:"):
            mailtos.append(href[7:].split("?")[0])
    add_emails(mailtos, "mailto")

    # data-email / data-mail attributes
    attr_emails = []
    for attr in ("data-email", "data-mail", "data-contact-email"):
        for node in soup.find_all(attrs={attr: True}):
            attr_emails.append(html_lib.unescape(str(node[attr])))
    add_emails(attr_emails, "data-attribute")

    add_emails(_json_ld_emails(json_ld), "json-ld")

    social: list[SocialProfile] = []
    seen_social: set[tuple[str, str]] = set()
    phones: list[str] = []

    for link in soup.find_all("a", href=True):
        href = link["href"].strip()
        if href.lower().startswith("tel:"):
            number = href[4:].strip()
            if len(_digits(number)) >= 10 and number not in phones:
                phones.append(number)
            continue
        profile = extract_social_profile(href)
        if profile:
            key = (profile.platform, (profile.username or "").lower())
            if key not in seen_social:
                seen_social.add(key)
                social.append(profile)
    if social:
        sources.append("social-link")

    form = _find_contact_form(soup, base_url)
    if form:
        sources.append("contact-form")

    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    text = soup.get_text(" ", strip=True)

    add_emails(EMAIL_PATTERN.findall(text), "text")
    add_emails(deobfuscate_emails(text), "obfuscated")

    known_digits = {_digits(p) for p in phones}
    for pattern in PHONE_PATTERNS:
        for match in pattern.findall(text):
            digits = _digits(match)
            if len(digits) >= 10 and digits not in known_digits:
                known_digits.add(digits)
                phones.append(match.strip())
    if phones:
        sources.append("phone")

    info = ContactInfo(
        email=emails[0] if emails else None,
        emails=emails[1:],
        form=form,
        social=social,
        phones=phones,
        sources=sources,
        last_updated=now,
    )
    info.confidence = compute_confidence(info)
    return info


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


def _normalize_social(raw: Any) -> list[SocialProfile]:
    profiles: list[SocialProfile] = []
    seen: set[tuple[str, str]] = set()

    entries: list[Any]
    if isinstance(raw, dict):
        entries = [{"platform": k, "url": v} for k, v in raw.items()]
    else:
        entries = _as_list(raw)

    for entry in entries:
        profile: SocialProfile | None = None
        if isinstance(entry, str):
            profile = extract_social_profile(entry)
        elif isinstance(entry, dict) and isinstance(entry.get("url"), str):
            detected = extract_social_profile(entry["url"])
            platform = str(entry.get("platform") or (detected.platform if detected else "other"))
            username = entry.get("username") or (detected.username if detected else None)
            profile = SocialProfile(platform=platform.lower(), url=entry["url"], username=username)
        if profile is None:
            continue
        key = (profile.platform, (profile.username or profile.url).lower())
        if key not in seen:
            seen.add(key)
            profiles.append(profile)
    return profiles


def normalize_contact_info(raw: dict[str, Any] | None) -> ContactInfo:
    """
    Convert legacy or partial contact payloads into a ContactInfo.

    Accepts keys: email, emails, additionalEmails, form, contactForm,
    formUrl, contactFormUrl, social, socialProfiles, phones, phoneNumbers,
    phone, confidence, sources, last_updated / lastUpdated.
    """
    if not isinstance(raw, dict):
        return ContactInfo()

    emails: list[str] = []
    for key in ("email", "emails", "additionalEmails"):
        for value in _as_list(raw.get(key)):
            if isinstance(value, str):
                email = value.replace("mailto:", "").strip().lower()
                if is_valid_email(email) and email not in emails:
                    emails.append(email)

    form = None
    for key in ("form", "contactForm", "formUrl", "contactFormUrl"):
        value = raw.get(key)
        if isinstance(value, str) and value.strip():
            form = value.strip()
            break

    social = _normalize_social(raw.get("social") or raw.get("socialProfiles"))

    phones: list[str] = []
    for key in ("phones", "phoneNumbers", "phone"):
        for value in _as_list(raw.get(key)):
            if isinstance(value, str) and value.strip() and value.strip() not in phones:
                phones.append(value.strip())

    last_updated = None
    stamp = raw.get("last_updated") or raw.get("lastUpdated")
    if isinstance(stamp, datetime):
        last_updated = stamp
    elif isinstance(stamp, str):
        try:
            last_updated = datetime.fromisoformat(stamp.replace("Z", "+00:00"))
        except ValueError:
            last_updated = None

    info = ContactInfo(
        email=emails[0] if emails else None,
        emails=emails[1:],
        form=form,
        social=social,
        phones=phones,
        sources=[s for s in _as_list(raw.get("sources")) if isinstance(s, str)],
        last_updated=last_updated,
    )
    confidence = raw.get("confidence")
    if isinstance(confidence, (int, float)) and not isinstance(confidence, bool):
        info.confidence = max(0.0, min(1.0, float(confidence)))
    else:
        info.confidence = compute_confidence(info)
    return info


def merge_contact_info(primary: ContactInfo, secondary: ContactInfo) -> ContactInfo:
    """Union two contact records, keeping the primary's main email when it has one."""
    emails: list[str] = []
    for email in primary.all_emails() + secondary.all_emails():
        if email not in emails:
            emails.append(email)

    social = list(primary.social)
    seen = {(s.platform, (s.username or s.url).lower()) for s in social}
    for profile in secondary.social:
        key = (profile.platform, (profile.username or profile.url).lower())
        if key not in seen:
            seen.add(key)
            social.append(profile)

    stamps = [s for s in (primary.last_updated, secondary.last_updated) if s is not None]
    merged = ContactInfo(
        email=emails[0] if emails else None,
        emails=emails[1:],
        form=primary.form or secondary.form,
        social=social,
        phones=list(dict.fromkeys(primary.phones + secondary.phones)),
        sources=list(dict.fromkeys(primary.sources + secondary.sources)),
        last_updated=max(stamps) if stamps else None,
    )
    merged.confidence = max(primary.confidence, secondary.confidence, compute_confidence(merged))
    return merged


# --- Entry Point ---


def run(input_data: ExtractContactsInput) -> ExtractContactsOutput:
    """Extract contacts from a page."""
    info = extract_contact_info(input_data.html, input_data.base_url)
    return ExtractContactsOutput(
        contact_info=info,
        has_contact_method=info.has_contact_method(),
    )
