"""GitHubClient - Paginated, rate-limit aware access to the GitHub REST API."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterator
from datetime import datetime, timedelta, timezone
from typing import Any, TypeVar

import httpx

from workflow_exporter import __version__
from workflow_exporter.github.exceptions import (
    FetchCancelledError,
    GitHubAPIError,
    RateLimitError,
)
from workflow_exporter.github.models import Repository, Workflow, WorkflowRun

logger = logging.getLogger("workflow_exporter.github.client")

PER_PAGE = 100
USER_AGENT = f"github-workflow-exporter/{__version__}"

# Floor for rate-limit waits, a reset time in the past still pauses retries
MIN_RATE_LIMIT_WAIT = 1.0

# Status codes GitHub uses when a request quota is exhausted
_RATE_LIMIT_STATUS = (403, 429)

T = TypeVar("T")


def _rate_limit_reset(response: httpx.Response) -> datetime | None:
    """Return the reset time if the response signals an exhausted quota."""
    if response.status_code not in _RATE_LIMIT_STATUS:
        return None

    headers = response.headers
    reset = headers.get("X-RateLimit-Reset", "")
    if headers.get("X-RateLimit-Remaining") == "0" and reset.isdigit():
        return datetime.fromtimestamp(int(reset), tz=timezone.utc)

    # secondary rate limit
    retry_after = headers.get("Retry-After", "")
    if retry_after.isdigit():
        return datetime.now(timezone.utc) + timedelta(seconds=int(retry_after))

    return None


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return response.text


def _next_page(response: httpx.Response) -> int | None:
    """Page number advertised by the ``Link: rel="next"`` header, if any."""
    link = response.links.get("next")
    if not link or "url" not in link:
        return None
    page = httpx.URL(link["url"]).params.get("page")
    return int(page) if page and page.isdigit() else None


def _json(response: httpx.Response, operation: str) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise GitHubAPIError(f"{operation}: invalid JSON response: {e}") from e


def _items(data: Any, operation: str, items_key: str | None = None) -> list[dict[str, Any]]:
    """Extract the item list of a list response, checking its shape.

    Raises:
        GitHubAPIError: If the payload is not a list of objects
    """
    if items_key is not None:
        if not isinstance(data, dict):
            raise GitHubAPIError(
                f"{operation}: unexpected response payload: expected an object, "
                f"got {type(data).__name__}"
            )
        data = data.get(items_key, [])
    if not isinstance(data, list):
        raise GitHubAPIError(
            f"{operation}: unexpected response payload: expected a list, got {type(data).__name__}"
        )
    for item in data:
        if not isinstance(item, dict):
            raise GitHubAPIError(
                f"{operation}: unexpected response payload: expected list items to be objects, "
                f"got {type(item).__name__}"
            )
    return data


def _parse(factory: Callable[[dict[str, Any]], T], item: dict[str, Any], operation: str) -> T:
    """Build a model from an API item, reporting malformed payloads as API errors."""
    try:
        return factory(item)
    except (KeyError, TypeError, ValueError) as e:
        raise GitHubAPIError(f"{operation}: unexpected response payload: {e!r}") from e


class GitHubClient:
    """Read-only client for the GitHub endpoints the exporter needs.

    Every call that hits a rate limit blocks until the quota resets and then
    retries the same request, without an attempt limit. Any other failure
    raises :class:`GitHubAPIError`.
    """

    def __init__(
        self,
        auth: httpx.Auth,
        base_url: str = "https://api.github.com",
        timeout: float = 30.0,
        stop_event: threading.Event | None = None,
        sleep: Callable[[float], None] = time.sleep,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize GitHub client.

        Args:
            auth: Token or app installation auth
            base_url: GitHub API base URL (for testing/enterprise)
            timeout: Per-request timeout in seconds
            stop_event: When set, pending rate-limit waits are cancelled
            sleep: Sleep function used when no stop_event is given
            transport: Custom httpx transport (for testing)
        """
        self.auth = auth
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.stop_event = stop_event
        self._sleep = sleep
        self._transport = transport
        self._client: httpx.Client | None = None

    @property
    def client(self) -> httpx.Client:
        """Get or create HTTP client for GitHub API."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.base_url,
                auth=self.auth,
                headers={
                    "Accept": "application/vnd.github+json",
                    "X-GitHub-Api-Version": "2022-11-28",
                    "User-Agent": USER_AGENT,
                },
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _request(self, path: str, params: dict[str, Any] | None = None) -> httpx.Response:
        """Perform a single GET request.

        Raises:
            RateLimitError: If the request quota is exhausted
            GitHubAPIError: On transport errors and any other non-2xx response
        """
        try:
            response = self.client.get(path, params=params)
        except httpx.HTTPError as e:
            raise GitHubAPIError(f"GET {path} failed: {e}") from e

        if response.is_success:
            return response

        reset_at = _rate_limit_reset(response)
        if reset_at is not None:
            raise RateLimitError(f"GET {path} rate limited", reset_at=reset_at)

        raise GitHubAPIError(
            f"GET {path} failed: {response.status_code} - {_error_message(response)}",
            status_code=response.status_code,
        )

    def _wait_until(self, reset_at: datetime) -> None:
        """Block until ``reset_at``, but at least ``MIN_RATE_LIMIT_WAIT`` seconds.

        Raises:
            FetchCancelledError: If the stop event is set while waiting
        """
        remaining = (reset_at - datetime.now(timezone.utc)).total_seconds()
        seconds = max(MIN_RATE_LIMIT_WAIT, remaining)
        if self.stop_event is None:
            self._sleep(seconds)
            return
        if self.stop_event.wait(seconds):
            raise FetchCancelledError("Rate limit wait cancelled")

    def _get(self, path: str, params: dict[str, Any] | None, operation: str) -> httpx.Response:
        """GET with wait-until-reset retry on rate limits."""
        while True:
            try:
                return self._request(path, params)
            except RateLimitError as e:
                logger.info(
                    "request %s rate limited, waiting until %s",
                    operation,
                    e.reset_at.isoformat(),
                )
                self._wait_until(e.reset_at)

    def _paginate(
        self,
        path: str,
        operation: str,
        params: dict[str, Any] | None = None,
        items_key: str | None = None,
    ) -> Iterator[dict[str, Any]]:
        """Yield items from every page of a list endpoint.

        Args:
            path: API path relative to the base URL
            operation: Name used in log messages
            params: Extra query parameters
            items_key: Key of the item list when the endpoint wraps it in an object
        """
        page = 1
        while True:
            logger.debug("fetching %s %s (page %d)", operation, path, page)
            query = {**(params or {}), "per_page": PER_PAGE, "page": page}
            response = self._get(path, query, operation)

            yield from _items(_json(response, operation), operation, items_key)

            next_page = _next_page(response)
            if next_page is None:
                break
            page = next_page

    def get_organization(self, org: str) -> dict[str, Any]:
        """Fetch organization details; used as a connection test."""
        response = self._get(f"/orgs/{org}", None, "GetOrganization")
        data: dict[str, Any] = _json(response, "GetOrganization")
        return data

    def list_repositories(self, org: str) -> list[Repository]:
        """List all repositories of an organization."""
        return [
            _parse(Repository.from_api, item, "ListByOrg")
            for item in self._paginate(f"/orgs/{org}/repos", "ListByOrg")
        ]

    def get_custom_property_values(self, owner: str, repo: str) -> dict[str, str]:
        """Fetch custom property values of a repository.

        Multi-select values are joined with commas; unset values are empty.
        """
        operation = "GetAllCustomPropertyValues"
        response = self._get(f"/repos/{owner}/{repo}/properties/values", None, operation)
        properties: dict[str, str] = {}
        for item in _items(_json(response, operation), operation):
            value = item.get("value")
            if value is None:
                value = ""
            elif isinstance(value, list):
                value = ",".join(str(v) for v in value)
            if item.get("property_name"):
                properties[item["property_name"]] = str(value)
        return properties

    def list_workflows(self, owner: str, repo: str) -> dict[int, Workflow]:
        """List workflows of a repository, keyed by workflow ID."""
        workflows: dict[int, Workflow] = {}
        for item in self._paginate(
            f"/repos/{owner}/{repo}/actions/workflows", "ListWorkflows", items_key="workflows"
        ):
            workflow = _parse(Workflow.from_api, item, "ListWorkflows")
            workflows[workflow.id] = workflow
        return workflows

    def list_workflow_runs(
        self, owner: str, repo: str, branch: str, created_since: datetime
    ) -> list[WorkflowRun]:
        """List workflow runs on a branch created at or after ``created_since``.

        Runs triggered by pull requests are excluded. Runs are returned in API
        order, newest first.
        """
        since = created_since.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        params = {
            "branch": branch,
            "exclude_pull_requests": "true",
            "created": f">={since}",
        }
        return [
            _parse(WorkflowRun.from_api, item, "ListRepositoryWorkflowRuns")
            for item in self._paginate(
                f"/repos/{owner}/{repo}/actions/runs",
                "ListRepositoryWorkflowRuns",
                params=params,
                items_key="workflow_runs",
            )
        ]
