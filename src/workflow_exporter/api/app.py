"""FastAPI application setup."""

from __future__ import annotations

import logging
import threading
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import httpx
from fastapi import FastAPI

from workflow_exporter import __version__
from workflow_exporter.api.dependencies import (
    close_metric_store,
    close_scheduler,
    init_metric_store,
    init_scheduler,
)
from workflow_exporter.api.routes import health, metrics, status
from workflow_exporter.collector import WorkflowCollector
from workflow_exporter.github import AppInstallationAuth, GitHubClient, TokenAuth
from workflow_exporter.metrics import MetricStore
from workflow_exporter.scheduler import ScrapeScheduler

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from workflow_exporter.config import Settings

logger = logging.getLogger(__name__)


def create_auth(settings: Settings) -> httpx.Auth:
    """Build token or GitHub App auth from settings."""
    if not settings.uses_app_auth:
        logger.info("using GitHub token auth")
        return TokenAuth(settings.token)

    logger.info(
        "using GitHub app auth with private key (appID=%s, installationID=%s)",
        settings.app_id,
        settings.app_installation_id,
    )
    return AppInstallationAuth(
        app_id=settings.app_id,  # type: ignore[arg-type]
        installation_id=settings.app_installation_id,  # type: ignore[arg-type]
        private_key=settings.app_private_key_file,  # type: ignore[arg-type]
        base_url=settings.api_url,
    )


def create_github_client(
    settings: Settings, stop_event: threading.Event | None = None
) -> GitHubClient:
    """Create the GitHub client described by settings."""
    return GitHubClient(
        auth=create_auth(settings),
        base_url=settings.api_url,
        stop_event=stop_event,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings: Settings = app.state.settings

    # Startup
    stop_event = threading.Event()
    client = create_github_client(settings, stop_event)
    store = init_metric_store(MetricStore(settings.custom_properties))
    collector = WorkflowCollector(
        client=client,
        organization=settings.organization,
        timeframe=settings.workflows_timeframe,
        custom_properties=settings.custom_properties,
    )
    scheduler = ScrapeScheduler(
        collector=collector,
        store=store,
        interval=settings.scrape_time,
        stop_event=stop_event,
    )
    init_scheduler(scheduler)
    scheduler.start()

    yield
    # Shutdown
    close_scheduler()
    close_metric_store()
    client.close()


def create_app(settings: Settings) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="GitHub Workflow Exporter",
        description="Prometheus metrics for GitHub Actions workflow runs",
        version=__version__,
        lifespan=lifespan,
    )

    # Store config for lifespan manager
    app.state.settings = settings

    # Include routers
    app.include_router(metrics.router)
    app.include_router(health.router)
    app.include_router(status.router, prefix="/api/v1")

    return app
