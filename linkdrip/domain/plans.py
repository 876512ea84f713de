"""
Subscription plan limits.

Plans bound how many websites a user can register, how many regular
opportunities ("drips") are delivered per day and how many premium
opportunities ("splashes") are included per calendar month.
"""

from __future__ import annotations

from dataclasses import dataclass

from linkdrip.rules.models import PlansRules

FREE_TRIAL = "Free Trial"


@dataclass(frozen=True)
class PlanLimits:
    name: str
    websites: int
    drips_per_day: int
    splashes_per_month: int


DEFAULT_PLANS: dict[str, PlanLimits] = {
    "Free Trial": PlanLimits("Free Trial", 1, 5, 1),
    "Starter": PlanLimits("Starter", 1, 5, 1),
    "Grow": PlanLimits("Grow", 2, 10, 3),
    "Pro": PlanLimits("Pro", 5, 15, 7),
}


class PlanCatalog:
    """Lookup of plan limits with a fallback for unknown plan names."""

    def __init__(
        self,
        plans: dict[str, PlanLimits] | None = None,
        default: str = FREE_TRIAL,
    ) -> None:
        self._plans = dict(plans or DEFAULT_PLANS)
        self._default = default

    @classmethod
    def from_rules(cls, rules: PlansRules) -> PlanCatalog:
        plans = {
            name: PlanLimits(name, tier.websites, tier.drips_per_day, tier.splashes_per_month)
            for name, tier in rules.tiers.items()
        }
        return cls(plans, rules.default)

    def limits_for(self, plan: str | None) -> PlanLimits:
        if plan and plan in self._plans:
            return self._plans[plan]
        return self._plans.get(self._default, DEFAULT_PLANS[FREE_TRIAL])
