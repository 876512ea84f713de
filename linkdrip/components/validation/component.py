"""
Validation component - Batch validation entry point.

Shell Layer - handles input validation and error conversion.
"""

from __future__ import annotations

from ._impl import ValidationPipeline
from .models import ValidateBatchInput, ValidateBatchOutput, ValidationInputError

MAX_EXPLICIT_IDS = 200


def run_validate_batch(
    input_data: ValidateBatchInput, pipeline: ValidationPipeline
) -> ValidateBatchOutput:
    """Run one validation batch."""
    if len(input_data.opportunity_ids) > MAX_EXPLICIT_IDS:
        return ValidateBatchOutput(
            result=None,
            errors=(
                ValidationInputError(
                    code="too_many_ids",
                    message=f"At most {MAX_EXPLICIT_IDS} opportunities per batch",
                    field="opportunity_ids",
                ),
            ),
            success=False,
        )

    result = pipeline.process_batch(list(input_data.opportunity_ids))
    return ValidateBatchOutput(result=result, errors=(), success=True)
