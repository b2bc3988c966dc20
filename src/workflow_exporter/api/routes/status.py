"""Scrape cycle status endpoint."""

from fastapi import APIRouter

from workflow_exporter.api.dependencies import MetricStoreDep, SchedulerDep
from workflow_exporter.api.models import (
    APIResponse,
    CycleStatusResponse,
    status_to_response,
)

router = APIRouter(tags=["status"])


@router.get("/status", response_model=APIResponse[CycleStatusResponse])
def get_status(
    scheduler: SchedulerDep, store: MetricStoreDep
) -> APIResponse[CycleStatusResponse]:
    """Counters and timings of the scrape cycles run so far."""
    return APIResponse(data=status_to_response(scheduler.status, ready=store.ready))
