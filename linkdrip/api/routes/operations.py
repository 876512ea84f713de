"""Routes that trigger pipeline runs on demand."""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from linkdrip.api.deps import (
    error_detail,
    get_current_user,
    get_discovery_scheduler,
    get_maintenance_service,
    get_validation_pipeline,
)
from linkdrip.components.discovery import DiscoveryScheduler
from linkdrip.components.maintenance import MaintenanceService
from linkdrip.components.validation import (
    ValidateBatchInput,
    ValidationPipeline,
    run_validate_batch,
)
from linkdrip.domain.entities import User

router = APIRouter()


class ValidationRunRequest(BaseModel):
    opportunity_ids: list[UUID] = Field(default_factory=list)


@router.post("/discovery/run")
def run_discovery(
    current_user: User = Depends(get_current_user),
    scheduler: DiscoveryScheduler = Depends(get_discovery_scheduler),
) -> dict[str, Any]:
    """Run the full discovery pipeline now."""
    result = scheduler.run_pipeline()
    if result.stats.skipped:
        raise HTTPException(status_code=409, detail="Discovery pipeline already running")
    return {"success": result.success, "stats": result.stats.to_dict()}


@router.post("/validation/run")
def run_validation(
    data: ValidationRunRequest | None = None,
    current_user: User = Depends(get_current_user),
    pipeline: ValidationPipeline = Depends(get_validation_pipeline),
) -> dict[str, int]:
    """Validate a batch of discovered opportunities, or the given ones."""
    ids = tuple(data.opportunity_ids) if data else ()
    result = run_validate_batch(ValidateBatchInput(opportunity_ids=ids), pipeline)
    if not result.success or result.result is None:
        raise HTTPException(status_code=400, detail=error_detail(result.errors))
    batch = result.result
    return {
        "processed": batch.processed,
        "passing": batch.passing,
        "premium": batch.premium,
        "failed": batch.failed,
    }


@router.post("/maintenance/cleanup")
def cleanup_stalled_jobs(
    current_user: User = Depends(get_current_user),
    service: MaintenanceService = Depends(get_maintenance_service),
) -> dict[str, int]:
    """Fail crawl jobs that have run past the maximum duration."""
    result = service.clean_stalled_jobs()
    return {"found": result.found, "cleaned": result.cleaned, "failed": result.failed}
