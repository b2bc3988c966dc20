"""WorkflowCollector - Walks an organization's repositories once per scrape cycle."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from workflow_exporter.collector.exceptions import CollectionError
from workflow_exporter.collector.models import (
    UNKNOWN_WORKFLOW,
    ConsecutiveFailures,
    CycleResult,
    LatestRun,
    RepositoryInfo,
    RunningRun,
    WorkflowInfo,
)
from workflow_exporter.collector.reducers import (
    count_consecutive_failures,
    running_runs,
    select_latest_runs,
)
from workflow_exporter.github.exceptions import FetchCancelledError, GitHubError

if TYPE_CHECKING:
    from workflow_exporter.github import GitHubClient, Repository, Workflow, WorkflowRun

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WorkflowCollector:
    """Derives workflow run metrics for every repository of an organization.

    All aggregation state lives in the :class:`CycleResult` of a single
    :meth:`collect` call; nothing is carried over between cycles.
    """

    def __init__(
        self,
        client: GitHubClient,
        organization: str,
        timeframe: timedelta,
        custom_properties: list[str] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Initialize the collector.

        Args:
            client: GitHub API client.
            organization: Organization whose repositories are scraped.
            timeframe: Only runs created within this window are fetched.
            custom_properties: Repository custom properties exported as labels.
            clock: Returns the current time (for testing).
        """
        self.client = client
        self.organization = organization
        self.timeframe = timeframe
        self.custom_properties = list(custom_properties or [])
        self.clock = clock

    def collect(self) -> CycleResult:
        """Run one scrape cycle.

        Returns:
            All records derived in this cycle.

        Raises:
            CollectionError: If any API call fails for a reason other than
                rate limiting. Nothing from the cycle should be committed.
            FetchCancelledError: If a rate-limit wait was cancelled.
        """
        result = CycleResult()
        since = self.clock() - self.timeframe

        try:
            repositories = self.client.list_repositories(self.organization)
        except FetchCancelledError:
            raise
        except GitHubError as e:
            raise CollectionError(f"Failed to list repositories of {self.organization}: {e}") from e

        logger.info("Found %d repositories in %s", len(repositories), self.organization)

        for repository in repositories:
            try:
                self._collect_repository(repository, since, result)
            except FetchCancelledError:
                raise
            except GitHubError as e:
                raise CollectionError(
                    f"Failed to collect repository {repository.name}: {e}",
                    repository=repository.name,
                ) from e

        return result

    def _property_labels(self, repository: Repository) -> dict[str, str]:
        if not self.custom_properties:
            return {}
        repository.custom_properties = self.client.get_custom_property_values(
            self.organization, repository.name
        )
        return {
            name: repository.custom_properties.get(name, "") for name in self.custom_properties
        }

    def _collect_repository(
        self, repository: Repository, since: datetime, result: CycleResult
    ) -> None:
        if repository.archived or repository.disabled:
            logger.debug("Skipping archived or disabled repository %s", repository.name)
            return

        properties = self._property_labels(repository)
        result.repositories.append(
            RepositoryInfo(
                org=self.organization,
                repo=repository.name,
                default_branch=repository.default_branch,
                properties=properties,
            )
        )

        # repository without default branch is not set up yet
        if not repository.default_branch:
            logger.debug("Skipping repository %s without default branch", repository.name)
            return

        workflows = self.client.list_workflows(self.organization, repository.name)
        for workflow in workflows.values():
            result.workflows.append(
                WorkflowInfo(
                    org=self.organization,
                    repo=repository.name,
                    workflow_id=workflow.id,
                    workflow=workflow.name,
                    workflow_url=workflow.html_url,
                    state=workflow.state,
                    path=workflow.path,
                    properties=properties,
                )
            )

        if not workflows:
            return

        runs = self.client.list_workflow_runs(
            self.organization, repository.name, repository.default_branch, since
        )
        logger.debug(
            "Repository %s: %d workflows, %d runs", repository.name, len(workflows), len(runs)
        )
        if runs:
            self._collect_runs(repository, workflows, runs, result)

    def _workflow_labels(self, workflows: dict[int, Workflow], run: WorkflowRun) -> tuple[str, str]:
        workflow = workflows.get(run.workflow_id)
        if workflow is None:
            return UNKNOWN_WORKFLOW, ""
        return workflow.name, workflow.html_url

    def _collect_runs(
        self,
        repository: Repository,
        workflows: dict[int, Workflow],
        runs: list[WorkflowRun],
        result: CycleResult,
    ) -> None:
        org = self.organization

        for run in running_runs(runs):
            name, url = self._workflow_labels(workflows, run)
            result.running_runs.append(
                RunningRun(
                    org=org,
                    repo=repository.name,
                    workflow_id=run.workflow_id,
                    run_number=run.run_number,
                    workflow=name,
                    workflow_url=url,
                    run_name=run.name,
                    run_url=run.html_url,
                    event=run.event,
                    branch=run.head_branch,
                    status=run.status,
                    actor_login=run.actor.login,
                    actor_type=run.actor.type,
                    started_at=run.run_started_at,
                )
            )

        for run in select_latest_runs(runs).values():
            name, url = self._workflow_labels(workflows, run)
            result.latest_runs.append(
                LatestRun(
                    org=org,
                    repo=repository.name,
                    workflow_id=run.workflow_id,
                    run_number=run.run_number,
                    workflow=name,
                    workflow_url=url,
                    run_name=run.name,
                    run_url=run.html_url,
                    event=run.event,
                    branch=run.head_branch,
                    conclusion=run.conclusion,
                    actor_login=run.actor.login,
                    actor_type=run.actor.type,
                    started_at=run.run_started_at,
                    duration_seconds=(run.updated_at - run.created_at).total_seconds(),
                )
            )

        for workflow_id, streak in count_consecutive_failures(runs).items():
            run = streak.run
            name, url = self._workflow_labels(workflows, run)
            result.consecutive_failures.append(
                ConsecutiveFailures(
                    org=org,
                    repo=repository.name,
                    workflow_id=workflow_id,
                    run_number=run.run_number,
                    workflow=name,
                    workflow_url=url,
                    run_name=run.name,
                    run_url=run.html_url,
                    branch=run.head_branch,
                    actor_login=run.actor.login,
                    actor_type=run.actor.type,
                    count=streak.count,
                )
            )
