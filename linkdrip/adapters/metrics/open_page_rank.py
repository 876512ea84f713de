"""
OpenPageRank metrics adapter.

Looks up page rank for domains and converts it to a 0-100 authority
scale. OpenPageRank has no spam signal, so spam_score is always None and
page authority mirrors domain authority.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from typing import Any

import requests

from linkdrip.core.ports.metrics import DomainMetrics, MetricsError, clean_domain, convert_to_da

logger = logging.getLogger(__name__)

API_BASE_URL = "https://openpagerank.com/api/v1.0/getPageRank"
SOURCE = "openpagerank"


class OpenPageRankAdapter:
    """DomainMetricsPort implementation for the OpenPageRank API."""

    def __init__(
        self,
        api_key: str,
        session: requests.Session | None = None,
        timeout: float = 15,
        batch_size: int = 25,
        request_delay: float = 0.2,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._api_key = api_key
        self._session = session or requests.Session()
        self._timeout = timeout
        self._batch_size = batch_size
        self._request_delay = request_delay
        self._sleep = sleep

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def _request(self, domain: str) -> dict[str, Any]:
        try:
            response = self._session.get(
                API_BASE_URL,
                params={"domains[]": domain},
                headers={"API-OPR": self._api_key},
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise MetricsError(domain, str(e)) from e

        if response.status_code != 200:
            raise MetricsError(domain, f"HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise MetricsError(domain, "Invalid JSON response") from e

        results = payload.get("response") if isinstance(payload, dict) else None
        if not results or not isinstance(results, list):
            raise MetricsError(domain, "Empty response")
        if not isinstance(results[0], dict):
            raise MetricsError(domain, "Malformed response")
        return results[0]

    def get_domain_metrics(self, domain: str) -> DomainMetrics:
        if not self.is_configured:
            raise MetricsError(domain, "OpenPageRank API key not configured")

        cleaned = clean_domain(domain)
        result = self._request(cleaned)

        rank = result.get("rank")
        try:
            page_rank = float(result.get("page_rank_decimal") or 0)
            rank = int(rank) if rank not in (None, "") else None
        except (TypeError, ValueError) as e:
            raise MetricsError(cleaned, f"Malformed response: {e}") from e
        if not math.isfinite(page_rank):
            raise MetricsError(cleaned, f"Malformed response: page rank {page_rank}")
        da = convert_to_da(page_rank)
        return DomainMetrics(
            domain=cleaned,
            domain_authority=da,
            page_authority=da,
            spam_score=None,
            page_rank=page_rank,
            rank=rank,
            source=SOURCE,
        )

    def get_batch_domain_metrics(self, domains: list[str]) -> dict[str, DomainMetrics]:
        results: dict[str, DomainMetrics] = {}
        cleaned = list(dict.fromkeys(clean_domain(d) for d in domains if d))

        for start in range(0, len(cleaned), self._batch_size):
            batch = cleaned[start : start + self._batch_size]
            for index, domain in enumerate(batch):
                try:
                    results[domain] = self.get_domain_metrics(domain)
                except MetricsError as e:
                    logger.warning("OpenPageRank lookup failed: %s", e)
                    results[domain] = DomainMetrics.empty(domain, SOURCE)
                if index < len(batch) - 1:
                    self._sleep(self._request_delay)

        return results
