"""
Domain Metrics Port.

Protocol-based interface for domain authority providers.

Key requirements:
- Single and batch lookups keyed by cleaned domain
- Domain authority and page authority on a 0-100 scale
- spam_score is None when the provider has no spam signal

Implementation strategies:
1. OpenPageRankAdapter: OpenPageRank API, page rank converted to a DA scale
2. StaticMetricsAdapter: fixed table (dev/test)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class DomainMetrics:
    """Authority metrics for one domain."""

    domain: str
    domain_authority: int
    page_authority: int
    spam_score: float | None = None
    page_rank: float | None = None
    rank: int | None = None
    source: str = "unknown"

    @classmethod
    def empty(cls, domain: str, source: str = "unknown") -> DomainMetrics:
        return cls(domain=domain, domain_authority=0, page_authority=0, source=source)


class MetricsError(Exception):
    """Metrics provider failed to answer."""

    def __init__(self, domain: str, error: str) -> None:
        self.domain = domain
        self.error = error
        super().__init__(f"Metrics lookup failed for {domain}: {error}")


class DomainMetricsPort(Protocol):
    """Domain metrics provider interface."""

    def get_domain_metrics(self, domain: str) -> DomainMetrics:
        """
        Look up metrics for one domain.

        Raises:
            MetricsError: when the provider cannot be reached or rejects the request
        """
        ...

    def get_batch_domain_metrics(self, domains: list[str]) -> dict[str, DomainMetrics]:
        """Look up many domains. Keys are cleaned domains. Never raises."""
        ...


_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.-]*://", re.IGNORECASE)


def clean_domain(value: str) -> str:
    """Strip scheme, leading www. and any path from a URL or domain."""
    domain = _SCHEME_RE.sub("", value.strip()).lower()
    if domain.startswith("www."):
        domain = domain[4:]
    return domain.split("/")[0].split("?")[0].split("#")[0]


def convert_to_da(page_rank: float) -> int:
    """
    Convert a 0-10 page rank to a 0-100 authority score.

    The curve is piecewise linear and steeper in the middle of the range,
    where most real sites land.
    """
    if page_rank <= 0:
        return 0
    if page_rank >= 10:
        return 100
    if page_rank < 2:
        return round(page_rank * 5)
    if page_rank < 4:
        return round(10 + (page_rank - 2) * 10)
    if page_rank < 6:
        return round(30 + (page_rank - 4) * 15)
    return round(60 + (page_rank - 6) * 10)
