"""FastAPI dependencies for dependency injection."""

from __future__ import annotations

from collections.abc import Generator  # noqa: TC003
from typing import Annotated

from fastapi import Depends
from prometheus_client import CollectorRegistry

from workflow_exporter.metrics import MetricStore, create_registry
from workflow_exporter.scheduler import ScrapeScheduler

# Global MetricStore and its registry (initialized on app startup)
_store: MetricStore | None = None
_registry: CollectorRegistry | None = None


def init_metric_store(store: MetricStore) -> MetricStore:
    """Initialize the global MetricStore instance and its registry."""
    global _store, _registry  # noqa: PLW0603
    _store = store
    _registry = create_registry(store)
    return _store


def close_metric_store() -> None:
    """Release the global MetricStore instance."""
    global _store, _registry  # noqa: PLW0603
    _store = None
    _registry = None


def get_metric_store() -> Generator[MetricStore, None, None]:
    """Dependency that provides the MetricStore instance."""
    if _store is None:
        raise RuntimeError("MetricStore not initialized. Call init_metric_store() first.")
    yield _store


def get_registry() -> Generator[CollectorRegistry, None, None]:
    """Dependency that provides the Prometheus registry."""
    if _registry is None:
        raise RuntimeError("Registry not initialized. Call init_metric_store() first.")
    yield _registry


# Type aliases for dependency injection
MetricStoreDep = Annotated[MetricStore, Depends(get_metric_store)]
RegistryDep = Annotated[CollectorRegistry, Depends(get_registry)]

# Global Scheduler instance (initialized on app startup)
_scheduler: ScrapeScheduler | None = None


def init_scheduler(scheduler: ScrapeScheduler) -> None:
    """Initialize the global Scheduler instance."""
    global _scheduler  # noqa: PLW0603
    _scheduler = scheduler


def close_scheduler() -> None:
    """Stop and release the global Scheduler instance."""
    global _scheduler  # noqa: PLW0603
    if _scheduler is not None:
        _scheduler.stop()
        _scheduler = None


def get_scheduler() -> Generator[ScrapeScheduler, None, None]:
    """Dependency that provides the Scheduler instance."""
    if _scheduler is None:
        raise RuntimeError("Scheduler not initialized. Call init_scheduler() first.")
    yield _scheduler


# Type alias for dependency injection
SchedulerDep = Annotated[ScrapeScheduler, Depends(get_scheduler)]
