"""HTTP API - Prometheus endpoint, health probes and cycle status."""

from workflow_exporter.api.app import create_app, create_auth, create_github_client
from workflow_exporter.api.models import APIResponse, CycleStatusResponse

__all__ = [
    "APIResponse",
    "CycleStatusResponse",
    "create_app",
    "create_auth",
    "create_github_client",
]
