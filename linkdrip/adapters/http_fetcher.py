"""
HTTP page fetcher backed by requests.

Provides a shared session that:
- Retries network errors and 5xx responses with exponential backoff
- Rotates the User-Agent per request
- Maps transport failures to FetchError
"""

from __future__ import annotations

import logging
import random

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from linkdrip.core.ports.fetcher import FetchError, FetchResponse

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; LinkDripBot/1.0)"


class RequestsPageFetcher:
    """
    PageFetcherPort implementation over requests.Session.

    Usage:
        fetcher = RequestsPageFetcher(user_agents=rules.crawler.user_agents)
        response = fetcher.get("https://example.com/resources")
    """

    def __init__(
        self,
        user_agents: list[str] | None = None,
        timeout: float = 30,
        max_retries: int = 2,
        rng: random.Random | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.user_agents = user_agents or [DEFAULT_USER_AGENT]
        self.timeout = timeout
        self._rng = rng or random.Random()

        self.session = session or requests.Session()

        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=1,  # 1s, 2s, 4s...
            status_forcelist=[500, 502, 503, 504],
            allowed_methods=["GET", "HEAD"],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        self.session.headers.update(
            {
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                "Accept-Language": "en-US,en;q=0.9",
                "DNT": "1",
            }
        )

    def _headers(self) -> dict[str, str]:
        return {"User-Agent": self._rng.choice(self.user_agents)}

    def get(self, url: str, timeout: float | None = None) -> FetchResponse:
        try:
            response = self.session.get(
                url,
                headers=self._headers(),
                timeout=timeout or self.timeout,
                allow_redirects=True,
            )
        except requests.RequestException as e:
            logger.debug("GET %s failed: %s", url, e)
            raise FetchError(url, str(e)) from e

        return FetchResponse(
            url=response.url or url,
            status_code=response.status_code,
            text=response.text,
            headers=dict(response.headers),
        )

    def head(self, url: str, timeout: float | None = None) -> FetchResponse:
        try:
            response = self.session.head(
                url,
                headers=self._headers(),
                timeout=timeout or self.timeout,
                allow_redirects=True,
            )
        except requests.RequestException as e:
            logger.debug("HEAD %s failed: %s", url, e)
            raise FetchError(url, str(e)) from e

        return FetchResponse(
            url=response.url or url,
            status_code=response.status_code,
            headers=dict(response.headers),
        )

    def close(self) -> None:
        self.session.close()
