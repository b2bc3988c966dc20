"""Shared pytest fixtures and configuration."""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from workflow_exporter.github import Actor, WorkflowRun

# Reference timestamps, T1 < T2 < T3
T1 = datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)
T2 = T1 + timedelta(hours=1)
T3 = T1 + timedelta(hours=2)


# Register custom markers
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: fast tests with no external dependencies")
    config.addinivalue_line("markers", "integration: component interaction tests")
    config.addinivalue_line("markers", "real: requests against the live GitHub API (local only)")


def build_run(
    run_id: int = 1,
    workflow_id: int = 100,
    status: str = "completed",
    conclusion: str = "success",
    created_at: datetime = T1,
    **overrides: Any,
) -> WorkflowRun:
    """Build a WorkflowRun with sensible defaults."""
    values: dict[str, Any] = {
        "id": run_id,
        "workflow_id": workflow_id,
        "run_number": run_id,
        "status": status,
        "conclusion": conclusion,
        "created_at": created_at,
        "updated_at": created_at + timedelta(minutes=5),
        "run_started_at": created_at + timedelta(seconds=30),
        "name": "CI",
        "html_url": f"https://github.com/acme/app/actions/runs/{run_id}",
        "event": "push",
        "head_branch": "main",
        "actor": Actor(login="octocat", type="User"),
    }
    values.update(overrides)
    return WorkflowRun(**values)


@pytest.fixture
def make_run() -> Callable[..., WorkflowRun]:
    """Factory for WorkflowRun objects."""
    return build_run
