"""MetricStore - Prometheus view of the last committed scrape cycle."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from datetime import datetime, timezone

from prometheus_client import CollectorRegistry
from prometheus_client.core import GaugeMetricFamily, Metric
from prometheus_client.registry import Collector

from workflow_exporter.collector.models import (
    ConsecutiveFailures,
    CycleResult,
    LatestRun,
    RepositoryInfo,
    RunningRun,
    WorkflowInfo,
)

logger = logging.getLogger(__name__)

CUSTOM_PROPERTY_LABEL_FMT = "prop_{}"

RUN_STAT_LABELS = ["org", "repo", "workflowID", "workflowRunNumber"]
REPOSITORY_LABELS = ["org", "repo", "defaultBranch"]
WORKFLOW_LABELS = ["org", "repo", "workflowID", "workflow", "workflowUrl", "state", "path"]
RUNNING_RUN_LABELS = [
    *RUN_STAT_LABELS,
    "workflow",
    "workflowUrl",
    "workflowRun",
    "workflowRunUrl",
    "event",
    "branch",
    "status",
    "actorLogin",
    "actorType",
]
LATEST_RUN_LABELS = [
    *RUN_STAT_LABELS,
    "workflow",
    "workflowUrl",
    "workflowRun",
    "workflowRunUrl",
    "event",
    "branch",
    "conclusion",
    "actorLogin",
    "actorType",
]
CONSECUTIVE_FAILURE_LABELS = [
    *RUN_STAT_LABELS,
    "workflow",
    "workflowUrl",
    "workflowRun",
    "workflowRunUrl",
    "branch",
    "actorLogin",
    "actorType",
]


def repository_labels(record: RepositoryInfo, properties: list[str]) -> list[str]:
    return [
        record.org,
        record.repo,
        record.default_branch,
        *(record.properties.get(name, "") for name in properties),
    ]


def workflow_labels(record: WorkflowInfo, properties: list[str]) -> list[str]:
    return [
        record.org,
        record.repo,
        str(record.workflow_id),
        record.workflow,
        record.workflow_url,
        record.state,
        record.path,
        *(record.properties.get(name, "") for name in properties),
    ]


def run_stat_labels(record: RunningRun | LatestRun | ConsecutiveFailures) -> list[str]:
    return [record.org, record.repo, str(record.workflow_id), str(record.run_number)]


def running_run_labels(record: RunningRun) -> list[str]:
    return [
        *run_stat_labels(record),
        record.workflow,
        record.workflow_url,
        record.run_name,
        record.run_url,
        record.event,
        record.branch,
        record.status,
        record.actor_login,
        record.actor_type,
    ]


def latest_run_labels(record: LatestRun) -> list[str]:
    return [
        *run_stat_labels(record),
        record.workflow,
        record.workflow_url,
        record.run_name,
        record.run_url,
        record.event,
        record.branch,
        record.conclusion,
        record.actor_login,
        record.actor_type,
    ]


def consecutive_failure_labels(record: ConsecutiveFailures) -> list[str]:
    return [
        *run_stat_labels(record),
        record.workflow,
        record.workflow_url,
        record.run_name,
        record.run_url,
        record.branch,
        record.actor_login,
        record.actor_type,
    ]


class MetricStore(Collector):
    """Serves the metrics of the last successfully committed cycle.

    A cycle result is swapped in whole by :meth:`commit`; scrapes render
    whichever result was committed last, never a partially updated one.
    Failed cycles are simply never committed.
    """

    def __init__(self, custom_properties: list[str] | None = None) -> None:
        self.custom_properties = list(custom_properties or [])
        self.property_labels = [CUSTOM_PROPERTY_LABEL_FMT.format(p) for p in self.custom_properties]
        self._lock = threading.Lock()
        self._result: CycleResult | None = None
        self._committed_at: datetime | None = None

    def commit(self, result: CycleResult) -> None:
        """Replace the served metrics with a completed cycle result."""
        with self._lock:
            self._result = result
            self._committed_at = datetime.now(timezone.utc)
        logger.debug(
            "Committed cycle: %d repositories, %d workflows, %d running, %d latest",
            len(result.repositories),
            len(result.workflows),
            len(result.running_runs),
            len(result.latest_runs),
        )

    @property
    def ready(self) -> bool:
        """True once at least one cycle has been committed."""
        with self._lock:
            return self._result is not None

    @property
    def committed_at(self) -> datetime | None:
        with self._lock:
            return self._committed_at

    def collect(self) -> Iterator[Metric]:
        with self._lock:
            result = self._result
        if result is None:
            return
        yield from self._render(result)

    def _render(self, result: CycleResult) -> Iterator[Metric]:
        repository = GaugeMetricFamily(
            "github_repository_info",
            "GitHub repository info",
            labels=[*REPOSITORY_LABELS, *self.property_labels],
        )
        for repo in result.repositories:
            repository.add_metric(repository_labels(repo, self.custom_properties), 1)
        yield repository

        workflow = GaugeMetricFamily(
            "github_workflow_info",
            "GitHub workflow info",
            labels=[*WORKFLOW_LABELS, *self.property_labels],
        )
        for wf in result.workflows:
            workflow.add_metric(workflow_labels(wf, self.custom_properties), 1)
        yield workflow

        yield from self._render_running(result.running_runs)
        yield from self._render_latest(result.latest_runs)

        failures = GaugeMetricFamily(
            "github_workflow_consecutive_failed_runs",
            "GitHub workflow consecutive count of failed runs per workflow",
            labels=CONSECUTIVE_FAILURE_LABELS,
        )
        for streak in result.consecutive_failures:
            failures.add_metric(consecutive_failure_labels(streak), streak.count)
        yield failures

    def _render_running(self, runs: list[RunningRun]) -> Iterator[Metric]:
        info = GaugeMetricFamily(
            "github_workflow_run_running",
            "GitHub workflow running information",
            labels=RUNNING_RUN_LABELS,
        )
        start_time = GaugeMetricFamily(
            "github_workflow_run_running_start_time_seconds",
            "GitHub workflow run running start time as unix timestamp",
            labels=RUN_STAT_LABELS,
        )
        for run in runs:
            info.add_metric(running_run_labels(run), 1)
            if run.started_at is not None:
                start_time.add_metric(run_stat_labels(run), run.started_at.timestamp())
        yield info
        yield start_time

    def _render_latest(self, runs: list[LatestRun]) -> Iterator[Metric]:
        info = GaugeMetricFamily(
            "github_workflow_latest_run",
            "GitHub workflow latest run information",
            labels=LATEST_RUN_LABELS,
        )
        start_time = GaugeMetricFamily(
            "github_workflow_latest_run_start_time_seconds",
            "GitHub workflow latest run last executed timestamp",
            labels=RUN_STAT_LABELS,
        )
        duration = GaugeMetricFamily(
            "github_workflow_latest_run_duration_seconds",
            "GitHub workflow latest run last duration in seconds",
            labels=RUN_STAT_LABELS,
        )
        for run in runs:
            info.add_metric(latest_run_labels(run), 1)
            if run.started_at is not None:
                start_time.add_metric(run_stat_labels(run), run.started_at.timestamp())
            duration.add_metric(run_stat_labels(run), run.duration_seconds)
        yield info
        yield start_time
        yield duration


def create_registry(store: MetricStore) -> CollectorRegistry:
    """Create a dedicated registry exposing only the store's metrics."""
    registry = CollectorRegistry(auto_describe=False)
    registry.register(store)
    return registry
