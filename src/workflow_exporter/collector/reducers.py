"""Per-workflow reducers over the runs of one repository.

Both reducers only look at terminal runs and keep the order the runs were
fetched in, which is newest first.
"""

from __future__ import annotations

from collections.abc import Iterable

from workflow_exporter.collector.classifier import classify_run
from workflow_exporter.collector.models import FailureStreak, RunState
from workflow_exporter.github.models import WorkflowRun


def select_latest_runs(runs: Iterable[WorkflowRun]) -> dict[int, WorkflowRun]:
    """Pick the terminal run with the latest creation time per workflow.

    On equal creation times the run seen first is kept.
    """
    latest: dict[int, WorkflowRun] = {}
    for run in runs:
        if classify_run(run) is not RunState.TERMINAL:
            continue

        current = latest.get(run.workflow_id)
        if current is None or current.created_at < run.created_at:
            latest[run.workflow_id] = run
    return latest


def count_consecutive_failures(runs: Iterable[WorkflowRun]) -> dict[int, FailureStreak]:
    """Count failing runs per workflow until the newest success.

    Runs must be in fetch order (newest first); they are not re-sorted.
    Conclusions other than ``failure`` and ``success`` neither extend nor end
    a streak.
    """
    streaks: dict[int, FailureStreak] = {}
    resolved: dict[int, bool] = {}

    for run in runs:
        if classify_run(run) is not RunState.TERMINAL:
            continue

        workflow_id = run.workflow_id
        if workflow_id not in streaks:
            streaks[workflow_id] = FailureStreak(count=0, run=run)
            resolved[workflow_id] = False

        # success already seen, older runs don't matter
        if resolved[workflow_id]:
            continue

        streak = streaks[workflow_id]
        if run.conclusion == "failure":
            if streak.count == 0:
                streak.run = run
            streak.count += 1
        elif run.conclusion == "success":
            resolved[workflow_id] = True

    return streaks


def running_runs(runs: Iterable[WorkflowRun]) -> list[WorkflowRun]:
    """Runs that are queued or in progress, in fetch order."""
    return [run for run in runs if classify_run(run) is RunState.RUNNING]
