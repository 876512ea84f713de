from __future__ import annotations

from dataclasses import dataclass, field

from linkdrip.core.ports.metrics import DomainMetrics, MetricsError, clean_domain


@dataclass
class StaticMetricsAdapter:
    """
    Metrics from a fixed table.

    Used when no provider key is configured and in tests. Unknown domains
    get `default` when set, otherwise the lookup fails with MetricsError.
    """

    table: dict[str, DomainMetrics] = field(default_factory=dict)
    default: DomainMetrics | None = None
    lookups: list[str] = field(default_factory=list)

    def set(
        self,
        domain: str,
        domain_authority: int,
        page_authority: int | None = None,
        spam_score: float | None = None,
    ) -> None:
        cleaned = clean_domain(domain)
        self.table[cleaned] = DomainMetrics(
            domain=cleaned,
            domain_authority=domain_authority,
            page_authority=page_authority if page_authority is not None else domain_authority,
            spam_score=spam_score,
            source="static",
        )

    def get_domain_metrics(self, domain: str) -> DomainMetrics:
        cleaned = clean_domain(domain)
        self.lookups.append(cleaned)
        if cleaned in self.table:
            return self.table[cleaned]
        if self.default is not None:
            return DomainMetrics(
                domain=cleaned,
                domain_authority=self.default.domain_authority,
                page_authority=self.default.page_authority,
                spam_score=self.default.spam_score,
                source="static",
            )
        raise MetricsError(cleaned, "No metrics recorded")

    def get_batch_domain_metrics(self, domains: list[str]) -> dict[str, DomainMetrics]:
        results: dict[str, DomainMetrics] = {}
        for domain in domains:
            cleaned = clean_domain(domain)
            try:
                results[cleaned] = self.get_domain_metrics(cleaned)
            except MetricsError:
                results[cleaned] = DomainMetrics.empty(cleaned, "static")
        return results
