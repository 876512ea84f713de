from pydantic import BaseModel, Field


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class AuthRules(BaseModel):
    token_ttl_minutes: int = 60 * 24
    password_min_length: int = 8


class CrawlerRules(BaseModel):
    request_timeout_seconds: float = 30
    crawl_delay_seconds: float = 5
    max_depth: int = 2
    links_to_follow: int = 5
    content_excerpt_length: int = 1000
    max_retries: int = 2
    user_agents: list[str]
    # Insertion order matters: the first matching type wins during classification.
    target_patterns: dict[str, list[str]]
    continuous_types: list[str]
    seed_urls: dict[str, list[str]] = Field(default_factory=dict)
    refresh_after_days: int = 7
    refresh_limit: int = 25
    enrich_limit: int = 50
    enrich_batch_size: int = 10


class ThresholdRule(BaseModel):
    min_domain_authority: int
    min_relevance: int
    max_spam_score: float


class FallbackMetrics(BaseModel):
    domain_authority: int = 25
    page_authority: int = 20
    spam_score: float = 3


class ValidationRules(BaseModel):
    batch_size: int = 20
    standard: ThresholdRule
    premium: ThresholdRule
    min_content_length: int = 100
    max_spam_matches: int = 2
    max_links: int = 50
    min_text_link_ratio: float = 20
    min_tier2_relevance: int = 40
    connect_timeout_seconds: float = 5
    spam_patterns: list[str]
    suspicious_tlds: list[str] = Field(default_factory=list)
    fallback_metrics: FallbackMetrics = Field(default_factory=FallbackMetrics)


class MatchWeights(BaseModel):
    relevance_weight: float
    quality_weight: float
    min_score: float
    candidate_limit: int


class MatchingRules(BaseModel):
    regular: MatchWeights
    premium: MatchWeights


class PlanTier(BaseModel):
    websites: int
    drips_per_day: int
    splashes_per_month: int


class PlansRules(BaseModel):
    default: str = "Free Trial"
    tiers: dict[str, PlanTier]


class OutreachRules(BaseModel):
    email_domain: str = "linkdrip.app"
    platform_name: str = "LinkDrip"
    sender_email: str
    sender_name: str | None = None


class MaintenanceRules(BaseModel):
    max_job_duration_hours: float = 1
    batch_size: int = 10


class SchedulerRules(BaseModel):
    discovery_interval_hours: float = 24
    maintenance_interval_minutes: float = 15
    refresh_interval_hours: float = 24


class OpsRules(BaseModel):
    required_env: list[str] = Field(default_factory=list)


class Rules(BaseModel):
    project: ProjectRules
    auth: AuthRules = Field(default_factory=AuthRules)
    crawler: CrawlerRules
    validation: ValidationRules
    matching: MatchingRules
    plans: PlansRules
    outreach: OutreachRules
    maintenance: MaintenanceRules = Field(default_factory=MaintenanceRules)
    scheduler: SchedulerRules = Field(default_factory=SchedulerRules)
    ops: OpsRules = Field(default_factory=OpsRules)
