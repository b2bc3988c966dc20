"""GitHub client - Paginated, rate-limit aware GitHub Actions API access."""

from workflow_exporter.github.auth import AppInstallationAuth, TokenAuth
from workflow_exporter.github.client import GitHubClient
from workflow_exporter.github.exceptions import (
    FetchCancelledError,
    GitHubAPIError,
    GitHubAuthError,
    GitHubError,
    RateLimitError,
)
from workflow_exporter.github.models import Actor, Repository, Workflow, WorkflowRun

__all__ = [
    "Actor",
    "AppInstallationAuth",
    "FetchCancelledError",
    "GitHubAPIError",
    "GitHubAuthError",
    "GitHubClient",
    "GitHubError",
    "RateLimitError",
    "Repository",
    "TokenAuth",
    "Workflow",
    "WorkflowRun",
]
