# linkdrip: ports (Protocol interfaces)
# Abstract interfaces for adapters; no implementations here

from linkdrip.core.ports.dns import DnsResolverPort
from linkdrip.core.ports.email import (
    EmailAddress,
    EmailMessage,
    EmailPort,
    EmailResult,
    EmailStatus,
)
from linkdrip.core.ports.fetcher import FetchError, FetchResponse, PageFetcherPort
from linkdrip.core.ports.metrics import (
    DomainMetrics,
    DomainMetricsPort,
    MetricsError,
    clean_domain,
    convert_to_da,
)

__all__ = [
    # DNS
    "DnsResolverPort",
    # Email
    "EmailAddress",
    "EmailMessage",
    "EmailPort",
    "EmailResult",
    "EmailStatus",
    # Fetcher
    "FetchError",
    "FetchResponse",
    "PageFetcherPort",
    # Metrics
    "DomainMetrics",
    "DomainMetricsPort",
    "MetricsError",
    "clean_domain",
    "convert_to_da",
]
