"""
Page Fetcher Port.

Protocol-based interface for outbound HTTP used by the crawler and the
validation pipeline.

Key requirements:
- GET returns the decoded body together with status and final URL
- HEAD is used for cheap reachability checks
- Network failures raise FetchError; HTTP error statuses do not

Implementation strategies:
1. RequestsPageFetcher: requests.Session with retries (production)
2. In-memory fakes (tests)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True)
class FetchResponse:
    """Result of a completed HTTP request."""

    url: str
    status_code: int
    text: str = ""
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400


class FetchError(Exception):
    """The request could not be completed (DNS, TLS, timeout, connection reset)."""

    def __init__(self, url: str, error: str) -> None:
        self.url = url
        self.error = error
        super().__init__(f"Failed to fetch {url}: {error}")


class PageFetcherPort(Protocol):
    """Outbound HTTP interface."""

    def get(self, url: str, timeout: float | None = None) -> FetchResponse:
        """
        Fetch a page.

        Raises:
            FetchError: when no HTTP response was received
        """
        ...

    def head(self, url: str, timeout: float | None = None) -> FetchResponse:
        """
        Check a URL without downloading the body.

        Raises:
            FetchError: when no HTTP response was received
        """
        ...
