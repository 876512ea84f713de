from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from linkdrip.adapters.clock import SystemClock
from linkdrip.adapters.dev_email import DevEmailAdapter
from linkdrip.adapters.dns_resolver import SocketDnsResolver
from linkdrip.adapters.http_fetcher import RequestsPageFetcher
from linkdrip.adapters.metrics import OpenPageRankAdapter, StaticMetricsAdapter
from linkdrip.adapters.smtp_email import SMTPConfig, SMTPEmailAdapter
from linkdrip.adapters.sqlite.repos import (
    SQLiteContactActivityRepo,
    SQLiteCrawlerJobRepo,
    SQLiteDripRepo,
    SQLiteMatchRepo,
    SQLiteOpportunityRepo,
    SQLiteOutreachEmailRepo,
    SQLiteSplashRepo,
    SQLiteUserRepo,
    SQLiteWebsiteProfileRepo,
    SQLiteWebsiteRepo,
)
from linkdrip.components.analyzer import WebsiteAnalyzer
from linkdrip.components.crawler import CrawlerConfig, CrawlerService
from linkdrip.components.discovery import DiscoveryScheduler
from linkdrip.components.maintenance import MaintenanceConfig, MaintenanceService
from linkdrip.components.matching import MatchingConfig, OpportunityMatcher
from linkdrip.components.outreach import OutreachConfig, OutreachService
from linkdrip.components.validation import ValidationConfig, ValidationPipeline
from linkdrip.core.ports.dns import DnsResolverPort
from linkdrip.core.ports.email import EmailAddress, EmailPort
from linkdrip.core.ports.fetcher import PageFetcherPort
from linkdrip.core.ports.metrics import DomainMetricsPort
from linkdrip.domain.plans import PlanCatalog
from linkdrip.rules.models import Rules

logger = logging.getLogger(__name__)


@dataclass
class ServiceContext:
    rules: Rules
    plans: PlanCatalog
    clock: SystemClock
    # Repos
    user_repo: SQLiteUserRepo
    website_repo: SQLiteWebsiteRepo
    profile_repo: SQLiteWebsiteProfileRepo
    opportunity_repo: SQLiteOpportunityRepo
    match_repo: SQLiteMatchRepo
    drip_repo: SQLiteDripRepo
    splash_repo: SQLiteSplashRepo
    job_repo: SQLiteCrawlerJobRepo
    email_repo: SQLiteOutreachEmailRepo
    activity_repo: SQLiteContactActivityRepo
    # Adapters
    metrics: DomainMetricsPort
    email: EmailPort
    # Services
    crawler: CrawlerService
    validator: ValidationPipeline
    analyzer: WebsiteAnalyzer
    matcher: OpportunityMatcher
    discovery: DiscoveryScheduler
    maintenance: MaintenanceService
    outreach: OutreachService

    @classmethod
    def create(
        cls,
        db_path: str,
        rules: Rules,
        openpagerank_api_key: str | None = None,
        *,
        metrics: DomainMetricsPort | None = None,
        email: EmailPort | None = None,
        fetcher: PageFetcherPort | None = None,
        dns: DnsResolverPort | None = None,
        clock: SystemClock | None = None,
    ) -> ServiceContext:
        """Wire repositories, adapters and services for one database."""
        clock = clock or SystemClock()
        plans = PlanCatalog.from_rules(rules.plans)

        user_repo = SQLiteUserRepo(db_path)
        website_repo = SQLiteWebsiteRepo(db_path)
        profile_repo = SQLiteWebsiteProfileRepo(db_path)
        opportunity_repo = SQLiteOpportunityRepo(db_path)
        match_repo = SQLiteMatchRepo(db_path)
        drip_repo = SQLiteDripRepo(db_path)
        splash_repo = SQLiteSplashRepo(db_path)
        job_repo = SQLiteCrawlerJobRepo(db_path)
        email_repo = SQLiteOutreachEmailRepo(db_path)
        activity_repo = SQLiteContactActivityRepo(db_path)

        if metrics is None:
            if openpagerank_api_key:
                metrics = OpenPageRankAdapter(openpagerank_api_key)
            else:
                logger.warning("No metrics API key configured, using fallback metrics")
                metrics = StaticMetricsAdapter()

        if email is None:
            smtp = SMTPConfig.from_env()
            if smtp is not None:
                sender = EmailAddress(rules.outreach.sender_email, rules.outreach.sender_name)
                email = SMTPEmailAdapter(smtp, sender)
            else:
                email = DevEmailAdapter()

        fetcher = fetcher or RequestsPageFetcher(
            user_agents=rules.crawler.user_agents,
            timeout=rules.crawler.request_timeout_seconds,
            max_retries=rules.crawler.max_retries,
        )
        dns = dns or SocketDnsResolver()

        crawler = CrawlerService(
            fetcher,
            opportunity_repo,
            job_repo,
            metrics,
            clock,
            CrawlerConfig.from_rules(rules.crawler),
        )
        validator = ValidationPipeline(
            dns,
            fetcher,
            metrics,
            opportunity_repo,
            clock,
            ValidationConfig.from_rules(rules.validation),
        )
        analyzer = WebsiteAnalyzer(website_repo, profile_repo, metrics, clock)
        matcher = OpportunityMatcher(
            user_repo,
            website_repo,
            profile_repo,
            opportunity_repo,
            match_repo,
            drip_repo,
            splash_repo,
            plans,
            clock,
            MatchingConfig.from_rules(rules.matching),
        )
        discovery = DiscoveryScheduler(analyzer, crawler, validator, matcher, clock)
        maintenance = MaintenanceService(
            job_repo, clock, MaintenanceConfig.from_rules(rules.maintenance)
        )
        outreach = OutreachService(
            email_repo,
            activity_repo,
            opportunity_repo,
            email,
            clock,
            OutreachConfig.from_rules(rules.outreach),
        )

        return cls(
            rules=rules,
            plans=plans,
            clock=clock,
            user_repo=user_repo,
            website_repo=website_repo,
            profile_repo=profile_repo,
            opportunity_repo=opportunity_repo,
            match_repo=match_repo,
            drip_repo=drip_repo,
            splash_repo=splash_repo,
            job_repo=job_repo,
            email_repo=email_repo,
            activity_repo=activity_repo,
            metrics=metrics,
            email=email,
            crawler=crawler,
            validator=validator,
            analyzer=analyzer,
            matcher=matcher,
            discovery=discovery,
            maintenance=maintenance,
            outreach=outreach,
        )

    @classmethod
    def from_env(cls, db_path: str, rules: Rules) -> ServiceContext:
        return cls.create(db_path, rules, os.environ.get("OPENPAGERANK_API_KEY"))
