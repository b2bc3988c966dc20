"""Prometheus scrape endpoint."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from workflow_exporter.api.dependencies import RegistryDep

router = APIRouter(tags=["metrics"])


@router.get("/metrics")
def metrics(registry: RegistryDep) -> Response:
    """Metrics of the last committed scrape cycle."""
    return Response(content=generate_latest(registry), media_type=CONTENT_TYPE_LATEST)
