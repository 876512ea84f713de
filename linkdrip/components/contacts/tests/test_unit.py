"""
Unit tests for Contacts component.

Tests:
- Email discovery from text, mailto, data attributes, JSON-LD and obfuscation
- False positive filtering
- Social profile detection and share-link filtering
- Contact form and phone detection
- Legacy payload normalization and merging
"""

from __future__ import annotations

from datetime import UTC, datetime

from linkdrip.domain.entities import ContactInfo, SocialProfile

from ..component import (
    compute_confidence,
    deobfuscate_emails,
    extract_contact_info,
    extract_social_profile,
    is_valid_email,
    merge_contact_info,
    normalize_contact_info,
    run,
)
from ..models import ExtractContactsInput

BASE_URL = "https://garden.example.net/resources"

PAGE = """
<html>
<head>
  <script type="application/ld+json">
    {"@context": "https://schema.org", "@type": "Organization", "email": "press@garden.example.net"}
  </script>
</head>
<body>
  <p>Questions? Email Editor@Garden.example.net or the team.</p>
  <p>Logo: logo@2x.png</p>
  <a href="mailto:hello@garden.example.net?subject=Hi">Say hello</a>
  <span data-email="tips@garden.example.net"></span>
  <p>Partnerships: deals [at] garden [dot] net</p>
  <a href="https://twitter.com/gardenblog">Twitter</a>
  <a href="https://x.com/gardenblog">X</a>
  <a href="https://twitter.com/intent/tweet?url=abc">Share</a>
  <a href="https://www.linkedin.com/company/garden-co/">LinkedIn</a>
  <a href="/contact-us">Contact</a>
  <a href="tel:+1-555-123-4567">Call</a>
</body>
</html>
"""


class TestEmailValidation:
    def test_accepts_regular_address(self) -> None:
        assert is_valid_email("editor@garden.net")

    def test_rejects_image_filenames(self) -> None:
        assert not is_valid_email("logo@2x.png")

    def test_rejects_placeholder_domains(self) -> None:
        assert not is_valid_email("you@example.com")

    def test_rejects_garbage(self) -> None:
        assert not is_valid_email("not-an-email")


class TestDeobfuscation:
    def test_bracketed_form(self) -> None:
        assert deobfuscate_emails("write to jane [at] blog [dot] com") == ["jane@blog.com"]

    def test_word_form(self) -> None:
        assert deobfuscate_emails("jane at blog dot org") == ["jane@blog.org"]

    def test_unknown_tld_ignored(self) -> None:
        assert deobfuscate_emails("look at this dot point") == []


class TestExtractContactInfo:
    def test_collects_emails_from_all_sources(self) -> None:
        info = extract_contact_info(PAGE, BASE_URL)
        emails = info.all_emails()

        assert "hello@garden.example.net" in emails
        assert "tips@garden.example.net" in emails
        assert "press@garden.example.net" in emails
        assert "editor@garden.example.net" in emails
        assert "deals@garden.net" in emails
        assert "logo@2x.png" not in emails

    def test_primary_email_is_first_found(self) -> None:
        info = extract_contact_info(PAGE, BASE_URL)
        assert info.email == "hello@garden.example.net"
        assert info.email not in info.emails

    def test_emails_are_unique(self) -> None:
        html = '<a href="mailto:a@site.org">a@site.org</a><p>A@SITE.ORG</p>'
        info = extract_contact_info(html, "https://site.org")
        assert info.all_emails() == ["a@site.org"]

    def test_social_profiles_deduplicated_and_share_links_skipped(self) -> None:
        info = extract_contact_info(PAGE, BASE_URL)
        platforms = [(s.platform, s.username) for s in info.social]

        assert ("twitter", "gardenblog") in platforms
        assert ("linkedin", "garden-co") in platforms
        assert platforms.count(("twitter", "gardenblog")) == 1
        assert all(username != "intent" for _, username in platforms)

    def test_contact_form_link_resolved(self) -> None:
        info = extract_contact_info(PAGE, BASE_URL)
        assert info.form == "https://garden.example.net/contact-us"

    def test_inline_form_counts_as_contact_form(self) -> None:
        html = '<form><input type="email" name="e"><textarea></textarea></form>'
        info = extract_contact_info(html, "https://site.org/contact")
        assert info.form == "https://site.org/contact"

    def test_external_contact_link_ignored(self) -> None:
        html = '<a href="https://other.org/contact">Contact them</a>'
        info = extract_contact_info(html, "https://site.org")
        assert info.form is None

    def test_phone_from_tel_link(self) -> None:
        info = extract_contact_info(PAGE, BASE_URL)
        assert "+1-555-123-4567" in info.phones

    def test_empty_page_has_no_contact_method(self) -> None:
        info = extract_contact_info("<html><body>Nothing here</body></html>", BASE_URL)
        assert not info.has_contact_method()
        assert info.confidence == 0.0

    def test_records_timestamp(self) -> None:
        now = datetime(2026, 1, 1, tzinfo=UTC)
        info = extract_contact_info(PAGE, BASE_URL, now=now)
        assert info.last_updated == now


class TestConfidence:
    def test_email_only(self) -> None:
        assert compute_confidence(ContactInfo(email="a@b.org")) == 0.4

    def test_caps_social_contribution(self) -> None:
        social = [SocialProfile(platform=f"p{i}", url=f"https://p{i}.org/x") for i in range(5)]
        info = ContactInfo(email="a@b.org", form="https://b.org/contact", social=social)
        assert compute_confidence(info) == 0.9


class TestSocialProfile:
    def test_box_domain_is_not_x(self) -> None:
        assert extract_social_profile("https://box.com/user") is None

    def test_youtube_handle(self) -> None:
        profile = extract_social_profile("https://www.youtube.com/@gardening")
        assert profile is not None
        assert profile.platform == "youtube"
        assert profile.username == "gardening"

    def test_scheme_added(self) -> None:
        profile = extract_social_profile("github.com/linkdrip")
        assert profile is not None
        assert profile.url == "https://github.com/linkdrip"


class TestNormalize:
    def test_none_gives_empty(self) -> None:
        assert normalize_contact_info(None) == ContactInfo()

    def test_legacy_shape(self) -> None:
        info = normalize_contact_info(
            {
                "emails": ["First@site.org", "second@site.org", "bad"],
                "contactForm": "https://site.org/contact",
                "socialProfiles": [{"platform": "Twitter", "url": "https://twitter.com/site"}],
                "phoneNumbers": ["555-123-4567"],
            }
        )
        assert info.email == "first@site.org"
        assert info.emails == ["second@site.org"]
        assert info.form == "https://site.org/contact"
        assert info.social[0].platform == "twitter"
        assert info.social[0].username == "site"
        assert info.phones == ["555-123-4567"]
        assert info.confidence > 0

    def test_social_mapping_form(self) -> None:
        info = normalize_contact_info({"social": {"github": "https://github.com/site"}})
        assert info.social[0].platform == "github"

    def test_explicit_confidence_clamped(self) -> None:
        info = normalize_contact_info({"email": "a@site.org", "confidence": 3})
        assert info.confidence == 1.0


class TestMerge:
    def test_keeps_primary_email_and_unions(self) -> None:
        a = ContactInfo(email="a@site.org", social=[SocialProfile(platform="github", url="u", username="x")])
        b = ContactInfo(
            email="b@site.org",
            form="https://site.org/contact",
            social=[SocialProfile(platform="github", url="u", username="X")],
        )
        merged = merge_contact_info(a, b)

        assert merged.email == "a@site.org"
        assert merged.emails == ["b@site.org"]
        assert merged.form == "https://site.org/contact"
        assert len(merged.social) == 1


class TestRun:
    def test_run_reports_contact_method(self) -> None:
        output = run(ExtractContactsInput(html=PAGE, base_url=BASE_URL))
        assert output.has_contact_method
        assert output.contact_info.email is not None
