from datetime import UTC, datetime
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from linkdrip.adapters.clock import FixedClock
from linkdrip.adapters.dev_email import DevEmailAdapter
from linkdrip.adapters.metrics import StaticMetricsAdapter
from linkdrip.adapters.sqlite.migrator import SQLiteMigrator
from linkdrip.app_shell.context import ServiceContext
from linkdrip.core.ports.fetcher import FetchError, FetchResponse
from linkdrip.core.ports.metrics import DomainMetrics
from linkdrip.rules.loader import load_rules

ROOT = Path(__file__).resolve().parent.parent
NOW = datetime(2025, 3, 14, 9, 0, tzinfo=UTC)


class StubFetcher:
    """Serves canned pages; unknown URLs fail like an unreachable host."""

    def __init__(self) -> None:
        self.pages: dict[str, FetchResponse] = {}
        self.requested: list[str] = []

    def add(self, url: str, html: str, status_code: int = 200) -> None:
        self.pages[url] = FetchResponse(url=url, status_code=status_code, text=html)

    def get(self, url: str, timeout: float | None = None) -> FetchResponse:
        self.requested.append(url)
        if url not in self.pages:
            raise FetchError(url, "connection refused")
        return self.pages[url]

    def head(self, url: str, timeout: float | None = None) -> FetchResponse:
        return self.get(url, timeout)


class StubDns:
    def __init__(self, resolvable: bool = True) -> None:
        self.resolvable = resolvable

    def resolves(self, hostname: str) -> bool:
        return self.resolvable


@pytest.fixture
def db_path(tmp_path):
    path = str(tmp_path / "linkdrip.db")
    SQLiteMigrator(path, str(ROOT / "migrations")).run_migrations()
    return path


@pytest.fixture
def rules():
    return load_rules(ROOT / "rules.yaml")


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def fetcher():
    return StubFetcher()


@pytest.fixture
def email_adapter():
    return DevEmailAdapter()


@pytest.fixture
def ctx(db_path, rules, clock, fetcher, email_adapter):
    """Full ServiceContext on a migrated temp database with no network access."""
    metrics = StaticMetricsAdapter(
        default=DomainMetrics(
            domain="", domain_authority=30, page_authority=25, spam_score=2, source="static"
        )
    )
    return ServiceContext.create(
        db_path,
        rules,
        metrics=metrics,
        email=email_adapter,
        fetcher=fetcher,
        dns=StubDns(),
        clock=clock,
    )


@pytest.fixture
def client(ctx):
    from linkdrip.api.deps import get_context
    from linkdrip.api.main import app

    app.dependency_overrides[get_context] = lambda: ctx
    # No context manager: the lifespan would migrate the configured data dir
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    """Register a user and return bearer auth headers for them."""

    def _register(username: str = "gina", **extra) -> dict[str, str]:
        payload = {
            "username": username,
            "email": f"{username}@example.com",
            "password": "correct-horse",
            "first_name": "Gina",
            "last_name": "Green",
        }
        payload.update(extra)
        response = client.post("/api/auth/register", json=payload)
        assert response.status_code == 201, response.text
        # The session cookie would take precedence over the header
        client.cookies.clear()
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _register
