"""Unit tests for MetricStore."""

from datetime import datetime, timezone

import pytest
from prometheus_client import generate_latest

from workflow_exporter.collector import (
    ConsecutiveFailures,
    CycleResult,
    LatestRun,
    RepositoryInfo,
    RunningRun,
    WorkflowInfo,
)
from workflow_exporter.metrics import MetricStore, create_registry

STARTED = datetime(2024, 5, 1, 10, 0, 30, tzinfo=timezone.utc)

RUN_KEY = {"org": "acme", "repo": "app", "workflowID": "100", "workflowRunNumber": "7"}


def latest_run(**overrides: object) -> LatestRun:
    values: dict[str, object] = {
        "org": "acme",
        "repo": "app",
        "workflow_id": 100,
        "run_number": 7,
        "workflow": "CI",
        "workflow_url": "https://github.com/acme/app/actions/workflows/ci.yml",
        "run_name": "CI",
        "run_url": "https://github.com/acme/app/actions/runs/7",
        "event": "push",
        "branch": "main",
        "conclusion": "failure",
        "actor_login": "octocat",
        "actor_type": "User",
        "started_at": STARTED,
        "duration_seconds": 300.0,
    }
    values.update(overrides)
    return LatestRun(**values)  # type: ignore[arg-type]


def running_run(**overrides: object) -> RunningRun:
    values: dict[str, object] = {
        "org": "acme",
        "repo": "app",
        "workflow_id": 100,
        "run_number": 8,
        "workflow": "CI",
        "workflow_url": "",
        "run_name": "CI",
        "run_url": "https://github.com/acme/app/actions/runs/8",
        "event": "push",
        "branch": "main",
        "status": "in_progress",
        "actor_login": "octocat",
        "actor_type": "User",
        "started_at": STARTED,
    }
    values.update(overrides)
    return RunningRun(**values)  # type: ignore[arg-type]


def streak(count: int) -> ConsecutiveFailures:
    return ConsecutiveFailures(
        org="acme",
        repo="app",
        workflow_id=100,
        run_number=7,
        workflow="CI",
        workflow_url="",
        run_name="CI",
        run_url="https://github.com/acme/app/actions/runs/7",
        branch="main",
        actor_login="octocat",
        actor_type="User",
        count=count,
    )


@pytest.mark.unit
class TestCommit:
    """Tests for committing cycle results."""

    def test_not_ready_before_commit(self) -> None:
        store = MetricStore()

        assert store.ready is False
        assert store.committed_at is None
        assert generate_latest(create_registry(store)) == b""

    def test_ready_after_commit(self) -> None:
        store = MetricStore()

        store.commit(CycleResult())

        assert store.ready is True
        assert store.committed_at is not None

    def test_commit_replaces_previous_result(self) -> None:
        """Series that vanished from the new cycle are no longer served."""
        store = MetricStore()
        registry = create_registry(store)
        store.commit(CycleResult(repositories=[RepositoryInfo("acme", "old", "main")]))

        store.commit(CycleResult(repositories=[RepositoryInfo("acme", "new", "main")]))

        labels = {"org": "acme", "defaultBranch": "main"}
        old = registry.get_sample_value("github_repository_info", {**labels, "repo": "old"})
        new = registry.get_sample_value("github_repository_info", {**labels, "repo": "new"})
        assert old is None
        assert new == 1


@pytest.mark.unit
class TestRender:
    """Tests for rendered metric families."""

    def test_repository_info_with_properties(self) -> None:
        store = MetricStore(custom_properties=["team", "tier"])
        registry = create_registry(store)
        store.commit(
            CycleResult(
                repositories=[
                    RepositoryInfo("acme", "app", "main", properties={"team": "platform"})
                ]
            )
        )

        value = registry.get_sample_value(
            "github_repository_info",
            {
                "org": "acme",
                "repo": "app",
                "defaultBranch": "main",
                "prop_team": "platform",
                "prop_tier": "",
            },
        )
        assert value == 1

    def test_workflow_info(self) -> None:
        store = MetricStore()
        registry = create_registry(store)
        store.commit(
            CycleResult(
                workflows=[
                    WorkflowInfo(
                        org="acme",
                        repo="app",
                        workflow_id=100,
                        workflow="CI",
                        workflow_url="https://example.com/ci",
                        state="active",
                        path=".github/workflows/ci.yml",
                    )
                ]
            )
        )

        value = registry.get_sample_value(
            "github_workflow_info",
            {
                "org": "acme",
                "repo": "app",
                "workflowID": "100",
                "workflow": "CI",
                "workflowUrl": "https://example.com/ci",
                "state": "active",
                "path": ".github/workflows/ci.yml",
            },
        )
        assert value == 1

    def test_latest_run_series(self) -> None:
        store = MetricStore()
        registry = create_registry(store)
        store.commit(CycleResult(latest_runs=[latest_run()]))

        assert registry.get_sample_value(
            "github_workflow_latest_run_duration_seconds", RUN_KEY
        ) == 300
        assert registry.get_sample_value(
            "github_workflow_latest_run_start_time_seconds", RUN_KEY
        ) == STARTED.timestamp()
        info = registry.get_sample_value(
            "github_workflow_latest_run",
            {
                **RUN_KEY,
                "workflow": "CI",
                "workflowUrl": "https://github.com/acme/app/actions/workflows/ci.yml",
                "workflowRun": "CI",
                "workflowRunUrl": "https://github.com/acme/app/actions/runs/7",
                "event": "push",
                "branch": "main",
                "conclusion": "failure",
                "actorLogin": "octocat",
                "actorType": "User",
            },
        )
        assert info == 1

    def test_missing_start_time_is_skipped(self) -> None:
        store = MetricStore()
        registry = create_registry(store)
        store.commit(CycleResult(latest_runs=[latest_run(started_at=None)]))

        assert registry.get_sample_value(
            "github_workflow_latest_run_start_time_seconds", RUN_KEY
        ) is None
        assert registry.get_sample_value(
            "github_workflow_latest_run_duration_seconds", RUN_KEY
        ) == 300

    def test_running_run_series(self) -> None:
        store = MetricStore()
        registry = create_registry(store)
        store.commit(CycleResult(running_runs=[running_run()]))

        key = {**RUN_KEY, "workflowRunNumber": "8"}
        assert registry.get_sample_value(
            "github_workflow_run_running_start_time_seconds", key
        ) == STARTED.timestamp()
        output = generate_latest(registry).decode()
        assert 'status="in_progress"' in output

    def test_consecutive_failures_value(self) -> None:
        store = MetricStore()
        registry = create_registry(store)
        store.commit(CycleResult(consecutive_failures=[streak(3)]))

        output = generate_latest(registry).decode()

        assert "# TYPE github_workflow_consecutive_failed_runs gauge" in output
        assert 'actorLogin="octocat"' in output
        assert output.count("github_workflow_consecutive_failed_runs{") == 1
        assert "} 3.0" in output

    def test_zero_streak_is_exported(self) -> None:
        store = MetricStore()
        registry = create_registry(store)
        store.commit(CycleResult(consecutive_failures=[streak(0)]))

        assert "github_workflow_consecutive_failed_runs{" in generate_latest(registry).decode()

    def test_all_families_present(self) -> None:
        store = MetricStore()
        store.commit(CycleResult())

        output = generate_latest(create_registry(store)).decode()

        for name in (
            "github_repository_info",
            "github_workflow_info",
            "github_workflow_run_running",
            "github_workflow_run_running_start_time_seconds",
            "github_workflow_latest_run",
            "github_workflow_latest_run_start_time_seconds",
            "github_workflow_latest_run_duration_seconds",
            "github_workflow_consecutive_failed_runs",
        ):
            assert f"# TYPE {name} gauge" in output
