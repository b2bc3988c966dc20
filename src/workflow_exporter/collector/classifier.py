"""Run state classification."""

from __future__ import annotations

from workflow_exporter.collector.models import RUNNING_STATUSES, RunState
from workflow_exporter.github.models import WorkflowRun


def classify_run(run: WorkflowRun) -> RunState:
    """Map a run's status/conclusion pair to its logical state.

    A run with a running status that already carries a conclusion is
    inconsistent and treated as indeterminate.
    """
    if run.status in RUNNING_STATUSES:
        return RunState.RUNNING if not run.conclusion else RunState.INDETERMINATE
    if run.conclusion:
        return RunState.TERMINAL
    return RunState.INDETERMINATE
