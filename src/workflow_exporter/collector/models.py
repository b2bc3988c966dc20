"""Data models for the workflow collector.

Records are per metric kind and carry named fields only; conversion to
Prometheus label sets happens in :mod:`workflow_exporter.metrics`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from workflow_exporter.github.models import WorkflowRun

# Statuses of runs that have not finished yet
RUNNING_STATUSES = frozenset({"in_progress", "action_required", "queued", "waiting", "pending"})

# Workflow label value when a run references a workflow that was not listed
UNKNOWN_WORKFLOW = "<unknown>"


class RunState(str, Enum):
    """Logical state of a workflow run."""

    RUNNING = "running"
    TERMINAL = "terminal"
    INDETERMINATE = "indeterminate"


@dataclass
class FailureStreak:
    """Consecutive failures of one workflow since its newest success.

    Attributes:
        count: Number of failing runs before the newest success.
        run: Newest failing run of the streak, or the newest terminal run
            when the streak is empty.
    """

    count: int
    run: WorkflowRun


@dataclass(frozen=True)
class RepositoryInfo:
    org: str
    repo: str
    default_branch: str
    properties: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class WorkflowInfo:
    org: str
    repo: str
    workflow_id: int
    workflow: str
    workflow_url: str
    state: str
    path: str
    properties: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class RunningRun:
    """A run that has not finished yet."""

    org: str
    repo: str
    workflow_id: int
    run_number: int
    workflow: str
    workflow_url: str
    run_name: str
    run_url: str
    event: str
    branch: str
    status: str
    actor_login: str
    actor_type: str
    started_at: datetime | None


@dataclass(frozen=True)
class LatestRun:
    """Most recent finished run of a workflow."""

    org: str
    repo: str
    workflow_id: int
    run_number: int
    workflow: str
    workflow_url: str
    run_name: str
    run_url: str
    event: str
    branch: str
    conclusion: str
    actor_login: str
    actor_type: str
    started_at: datetime | None
    duration_seconds: float


@dataclass(frozen=True)
class ConsecutiveFailures:
    """Failure streak of a workflow, labelled with its newest failing run."""

    org: str
    repo: str
    workflow_id: int
    run_number: int
    workflow: str
    workflow_url: str
    run_name: str
    run_url: str
    branch: str
    actor_login: str
    actor_type: str
    count: int


@dataclass
class CycleResult:
    """Everything one scrape cycle derived, ready to be committed at once."""

    repositories: list[RepositoryInfo] = field(default_factory=list)
    workflows: list[WorkflowInfo] = field(default_factory=list)
    running_runs: list[RunningRun] = field(default_factory=list)
    latest_runs: list[LatestRun] = field(default_factory=list)
    consecutive_failures: list[ConsecutiveFailures] = field(default_factory=list)
