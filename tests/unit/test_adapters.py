import random
import smtplib
from types import SimpleNamespace

import pytest
import requests

from linkdrip.adapters.dev_email import DevEmailAdapter
from linkdrip.adapters.http_fetcher import RequestsPageFetcher
from linkdrip.adapters.metrics import OpenPageRankAdapter, StaticMetricsAdapter
from linkdrip.adapters.smtp_email import SMTPConfig, SMTPEmailAdapter
from linkdrip.core.ports.email import EmailAddress, EmailMessage, EmailResult, EmailStatus
from linkdrip.core.ports.fetcher import FetchError
from linkdrip.core.ports.metrics import DomainMetrics, MetricsError


def make_message(**kwargs) -> EmailMessage:
    defaults = {
        "recipient": EmailAddress("editor@gardenblog.com"),
        "subject": "Guest post opportunity",
        "body_html": "<p>Hello</p>",
        "body_text": "Hello",
        "sender": EmailAddress("outreach@linkdrip.app", "Gina Green"),
        "headers": {"X-LinkDrip-Message-ID": "abc@linkdrip.app"},
    }
    defaults.update(kwargs)
    return EmailMessage(**defaults)


class TestDevEmailAdapter:
    def test_logs_instead_of_sending(self):
        adapter = DevEmailAdapter()
        result = adapter.send(make_message())

        assert result.status == EmailStatus.SKIPPED
        assert result.delivered
        assert result.message_id.startswith("dev-")
        assert adapter.email_count == 1

        logged = adapter.get_last_email()
        assert logged.sender == '"Gina Green" <outreach@linkdrip.app>'
        assert logged.headers == {"X-LinkDrip-Message-ID": "abc@linkdrip.app"}

    def test_helpers(self):
        adapter = DevEmailAdapter()
        adapter.send(make_message())
        adapter.send(make_message(recipient=EmailAddress("other@example.com")))

        assert len(adapter.get_emails_to("other@example.com")) == 1
        adapter.clear()
        assert adapter.get_last_email() is None

    def test_message_requires_recipient(self):
        with pytest.raises(ValueError):
            make_message(recipient=EmailAddress(""))


class TestSMTPEmailAdapter:
    def test_config_from_env(self, monkeypatch):
        monkeypatch.delenv("SMTP_HOST", raising=False)
        assert SMTPConfig.from_env() is None

        monkeypatch.setenv("SMTP_HOST", "smtp.example.com")
        monkeypatch.setenv("SMTP_PORT", "465")
        config = SMTPConfig.from_env()
        assert config.host == "smtp.example.com"
        assert config.secure

    def test_mime_carries_tracking_headers(self):
        adapter = SMTPEmailAdapter(
            SMTPConfig(host="smtp.example.com"), EmailAddress("outreach@linkdrip.app")
        )
        mime = adapter._build(make_message(reply_to=EmailAddress("gina@example.com")))

        assert mime["To"] == "editor@gardenblog.com"
        assert mime["Reply-To"] == "gina@example.com"
        assert mime["X-LinkDrip-Message-ID"] == "abc@linkdrip.app"
        assert mime["Message-ID"].endswith("@linkdrip.app>")
        assert mime["In-Reply-To"] is None

    def test_follow_up_threads_onto_parent(self):
        adapter = SMTPEmailAdapter(
            SMTPConfig(host="smtp.example.com"), EmailAddress("outreach@linkdrip.app")
        )
        mime = adapter._build(make_message(in_reply_to="first@linkdrip.app"))

        assert mime["In-Reply-To"] == "<first@linkdrip.app>"
        assert mime["References"] == "<first@linkdrip.app>"

    def test_connection_failure_is_reported(self, monkeypatch):
        adapter = SMTPEmailAdapter(
            SMTPConfig(host="smtp.example.com"), EmailAddress("outreach@linkdrip.app")
        )

        def refuse():
            raise ConnectionRefusedError("refused")

        monkeypatch.setattr(adapter, "_connect", refuse)
        result = adapter.send(make_message())

        assert result.status == EmailStatus.FAILED
        assert not result.delivered
        assert "refused" in result.error

    def test_header_injection_fails_without_connecting(self, monkeypatch):
        adapter = SMTPEmailAdapter(
            SMTPConfig(host="smtp.example.com"), EmailAddress("outreach@linkdrip.app")
        )
        connects: list[int] = []
        monkeypatch.setattr(adapter, "_connect", lambda: connects.append(1))

        result = adapter.send(make_message(subject="Hello\r\nBcc: everyone@example.com"))

        assert result.status == EmailStatus.FAILED
        assert connects == []

    def test_starttls_failure_closes_connection(self, monkeypatch):
        clients: list[FakeSMTP] = []

        def make_client(*args, **kwargs):
            clients.append(FakeSMTP())
            return clients[-1]

        monkeypatch.setattr(smtplib, "SMTP", make_client)
        adapter = SMTPEmailAdapter(
            SMTPConfig(host="smtp.example.com"), EmailAddress("outreach@linkdrip.app")
        )
        result = adapter.send(make_message())

        assert result.status == EmailStatus.FAILED
        assert "STARTTLS" in result.error
        assert clients[0].closed


class FakeSMTP:
    def __init__(self) -> None:
        self.closed = False

    def starttls(self):
        raise smtplib.SMTPNotSupportedError("STARTTLS extension not supported by server.")

    def close(self):
        self.closed = True


class TestEmailResult:
    def test_queued_and_skipped_count_as_delivered(self):
        assert EmailResult(EmailStatus.QUEUED, "a@b.com").delivered
        assert EmailResult.skipped("a@b.com").delivered
        assert not EmailResult.failed("a@b.com", "bounced").delivered


class TestStaticMetrics:
    def test_table_default_and_missing(self):
        metrics = StaticMetricsAdapter()
        metrics.set("https://www.gardenblog.com/about", 45, spam_score=1)

        known = metrics.get_domain_metrics("gardenblog.com")
        assert known.domain_authority == 45
        assert known.page_authority == 45

        with pytest.raises(MetricsError):
            metrics.get_domain_metrics("unknown.com")

        batch = metrics.get_batch_domain_metrics(["gardenblog.com", "unknown.com"])
        assert batch["unknown.com"].domain_authority == 0

        metrics.default = DomainMetrics("", 25, 20, 3)
        assert metrics.get_domain_metrics("unknown.com").domain_authority == 25


class StubSession:
    def __init__(self, response=None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.calls: list[dict] = []

    def get(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        if self.error is not None:
            raise self.error
        return self.response


class JsonResponse:
    def __init__(self, status_code: int, payload) -> None:
        self.status_code = status_code
        self._payload = payload

    def json(self):
        return self._payload


class TestOpenPageRank:
    def test_page_rank_converted_to_authority(self):
        session = StubSession(
            JsonResponse(200, {"response": [{"page_rank_decimal": 3.0, "rank": "1200"}]})
        )
        adapter = OpenPageRankAdapter("key", session=session)

        metrics = adapter.get_domain_metrics("https://www.gardenblog.com")
        assert metrics.domain == "gardenblog.com"
        assert metrics.domain_authority == 20
        assert metrics.rank == 1200
        assert metrics.spam_score is None
        assert session.calls[0]["headers"] == {"API-OPR": "key"}

    def test_http_error_raises(self):
        adapter = OpenPageRankAdapter("key", session=StubSession(JsonResponse(429, {})))
        with pytest.raises(MetricsError, match="HTTP 429"):
            adapter.get_domain_metrics("gardenblog.com")

    def test_batch_never_raises(self):
        session = StubSession(error=requests.ConnectionError("offline"))
        slept: list[float] = []
        adapter = OpenPageRankAdapter("key", session=session, sleep=slept.append)

        results = adapter.get_batch_domain_metrics(["a.com", "b.com", "a.com"])
        assert set(results) == {"a.com", "b.com"}
        assert results["a.com"].domain_authority == 0
        assert slept == [0.2]

    def test_malformed_payloads_raise_metrics_error(self):
        payloads = [
            ["not", "a", "dict"],
            {"response": "oops"},
            {"response": [42]},
            {"response": [{"page_rank_decimal": "n/a"}]},
            {"response": [{"page_rank_decimal": 2.5, "rank": "unranked"}]},
            {"response": [{"page_rank_decimal": "nan"}]},
        ]
        for payload in payloads:
            adapter = OpenPageRankAdapter("key", session=StubSession(JsonResponse(200, payload)))
            with pytest.raises(MetricsError):
                adapter.get_domain_metrics("a.com")

    def test_batch_survives_malformed_values(self):
        session = StubSession(JsonResponse(200, {"response": [{"page_rank_decimal": "n/a"}]}))
        adapter = OpenPageRankAdapter("key", session=session, sleep=lambda _: None)

        results = adapter.get_batch_domain_metrics(["a.com"])
        assert results["a.com"].domain_authority == 0

    def test_missing_key(self):
        with pytest.raises(MetricsError):
            OpenPageRankAdapter("").get_domain_metrics("a.com")


class TestRequestsPageFetcher:
    def test_transport_errors_become_fetch_errors(self, monkeypatch):
        fetcher = RequestsPageFetcher()

        def fail(*args, **kwargs):
            raise requests.ConnectionError("reset")

        monkeypatch.setattr(fetcher.session, "get", fail)
        with pytest.raises(FetchError) as exc:
            fetcher.get("https://gone.example")
        assert exc.value.url == "https://gone.example"

    def test_rotates_user_agents(self, monkeypatch):
        agents = ["agent-a", "agent-b"]
        fetcher = RequestsPageFetcher(user_agents=agents, rng=random.Random(7))
        seen: list[str] = []

        def fake_get(url, headers=None, **kwargs):
            seen.append(headers["User-Agent"])
            return SimpleNamespace(url=url, status_code=200, text="<html></html>", headers={})

        monkeypatch.setattr(fetcher.session, "get", fake_get)
        for _ in range(20):
            response = fetcher.get("https://a.com")

        assert response.ok
        assert response.text == "<html></html>"
        assert set(seen) <= set(agents)
        assert len(set(seen)) == 2
