"""
Analyzer component - Website profiling entry point.

Shell Layer - ownership checks and error conversion.
"""

from __future__ import annotations

from ._impl import WebsiteAnalyzer
from .models import AnalyzeWebsiteInput, AnalyzeWebsiteOutput, AnalyzerValidationError
from .ports import WebsiteRepoPort


def run_analyze_website(
    input_data: AnalyzeWebsiteInput,
    website_repo: WebsiteRepoPort,
    analyzer: WebsiteAnalyzer,
) -> AnalyzeWebsiteOutput:
    """Profile a website owned by the requesting user."""
    website = website_repo.get_by_id(input_data.website_id)
    if website is None or website.user_id != input_data.user_id:
        return AnalyzeWebsiteOutput(
            profile=None,
            errors=(
                AnalyzerValidationError(
                    code="website_not_found",
                    message=f"Website with ID {input_data.website_id} not found",
                ),
            ),
            success=False,
        )

    profile = analyzer.process_website(website)
    return AnalyzeWebsiteOutput(profile=profile, errors=(), success=True)
