"""Liveness and readiness probes."""

from fastapi import APIRouter, status
from fastapi.responses import PlainTextResponse

from workflow_exporter.api.dependencies import MetricStoreDep

router = APIRouter(tags=["health"])


@router.get("/healthz", response_class=PlainTextResponse)
def healthz() -> str:
    """Process is alive."""
    return "Ok"


@router.get("/readyz", response_class=PlainTextResponse)
def readyz(store: MetricStoreDep) -> PlainTextResponse:
    """Ready once the first scrape cycle has been committed."""
    if not store.ready:
        return PlainTextResponse("Not ready", status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return PlainTextResponse("Ok")
