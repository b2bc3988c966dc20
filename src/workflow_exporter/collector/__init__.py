"""Workflow collector - Derives run metrics from an organization's workflow history."""

from workflow_exporter.collector.classifier import classify_run
from workflow_exporter.collector.exceptions import CollectionError
from workflow_exporter.collector.models import (
    RUNNING_STATUSES,
    UNKNOWN_WORKFLOW,
    ConsecutiveFailures,
    CycleResult,
    FailureStreak,
    LatestRun,
    RepositoryInfo,
    RunningRun,
    RunState,
    WorkflowInfo,
)
from workflow_exporter.collector.reducers import (
    count_consecutive_failures,
    running_runs,
    select_latest_runs,
)
from workflow_exporter.collector.walker import WorkflowCollector

__all__ = [
    "RUNNING_STATUSES",
    "UNKNOWN_WORKFLOW",
    "CollectionError",
    "ConsecutiveFailures",
    "CycleResult",
    "FailureStreak",
    "LatestRun",
    "RepositoryInfo",
    "RunState",
    "RunningRun",
    "WorkflowCollector",
    "WorkflowInfo",
    "classify_run",
    "count_consecutive_failures",
    "running_runs",
    "select_latest_runs",
]
