"""Custom exceptions for the GitHub client."""

from __future__ import annotations

from datetime import datetime


class GitHubError(Exception):
    """Base exception for GitHub client errors."""


class GitHubAPIError(GitHubError):
    """Request failed with a non rate-limit error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(GitHubError):
    """Request quota exhausted until ``reset_at``."""

    def __init__(self, message: str, reset_at: datetime) -> None:
        super().__init__(message)
        self.reset_at = reset_at


class FetchCancelledError(GitHubError):
    """Rate-limit wait was interrupted by shutdown."""


class GitHubAuthError(GitHubError):
    """Authentication could not be set up."""
