"""
Matching component - Match explanations, drip updates and on-demand splashes.

Shell Layer - ownership checks and error conversion.
"""

from __future__ import annotations

from ._impl import OpportunityMatcher
from .models import (
    DripOutput,
    ExplainMatchInput,
    ExplainMatchOutput,
    MatchingValidationError,
    SplashOutput,
    UpdateDripInput,
    UseSplashInput,
)
from .ports import WebsiteRepoPort


def run_explain_match(
    input_data: ExplainMatchInput,
    website_repo: WebsiteRepoPort,
    matcher: OpportunityMatcher,
) -> ExplainMatchOutput:
    """Explain a match for a website the user owns."""
    website = website_repo.get_by_id(input_data.website_id)
    if website is None or website.user_id != input_data.user_id:
        return ExplainMatchOutput(
            explanation=None,
            errors=(
                MatchingValidationError(
                    code="website_not_found",
                    message=f"Website with ID {input_data.website_id} not found",
                    field="website_id",
                ),
            ),
            success=False,
        )

    explanation = matcher.explain_match(input_data.opportunity_id, input_data.website_id)
    return ExplainMatchOutput(explanation=explanation, errors=(), success=True)


def run_update_drip(input_data: UpdateDripInput, matcher: OpportunityMatcher) -> DripOutput:
    """Change the status of one of the user's drips."""
    drip, errors = matcher.update_drip_status(
        input_data.user_id, input_data.drip_id, input_data.status
    )
    if errors:
        return DripOutput(drip=None, errors=tuple(errors), success=False)
    return DripOutput(drip=drip, errors=(), success=True)


def run_use_splash(input_data: UseSplashInput, matcher: OpportunityMatcher) -> SplashOutput:
    """Spend one of the user's splashes on a premium opportunity."""
    splash, errors = matcher.use_splash(input_data.user_id, input_data.website_id)
    if errors or splash is None:
        return SplashOutput(splash=None, errors=tuple(errors), success=False)
    return SplashOutput(splash=splash, errors=(), success=True)
