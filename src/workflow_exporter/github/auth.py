"""GitHub authentication for the REST client.

Personal access tokens are sent as bearer tokens. GitHub App credentials are
exchanged for a short-lived installation token, refreshed before it expires.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Generator
from datetime import datetime, timedelta, timezone
from pathlib import Path

import httpx
from jose import jwt

from workflow_exporter.github.exceptions import GitHubAuthError

logger = logging.getLogger("workflow_exporter.github.auth")

# Refresh installation tokens this long before GitHub expires them
TOKEN_REFRESH_MARGIN = timedelta(minutes=1)


class TokenAuth(httpx.Auth):
    """Bearer token auth with a personal access token."""

    def __init__(self, token: str) -> None:
        self.token = token

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = f"Bearer {self.token}"
        yield request


def load_private_key(raw: str) -> str:
    """Load a PEM private key from a string or a file path."""
    if "PRIVATE KEY-----" in raw:
        return raw.replace("\\n", "\n")
    path = Path(raw.strip().strip('"'))
    if path.exists():
        return path.read_text()
    raise GitHubAuthError("GitHub app private key must be a PEM string or path to a key file")


def generate_jwt(app_id: int, private_key: str, now: float | None = None) -> str:
    """Generate the RS256 JWT that identifies the GitHub App."""
    issued = int(now if now is not None else time.time())
    payload = {
        "iat": issued - 60,
        "exp": issued + 600,
        "iss": str(app_id),
    }
    return str(jwt.encode(payload, private_key, algorithm="RS256"))


class AppInstallationAuth(httpx.Auth):
    """GitHub App installation auth.

    The installation token is requested lazily on the first API call and
    cached until shortly before its expiry.
    """

    def __init__(
        self,
        app_id: int,
        installation_id: int,
        private_key: str,
        base_url: str = "https://api.github.com",
    ) -> None:
        """Initialize GitHub App auth.

        Args:
            app_id: GitHub App ID
            installation_id: Installation ID of the app in the organization
            private_key: PEM private key or path to the key file
            base_url: GitHub API base URL (for enterprise)
        """
        self.app_id = app_id
        self.installation_id = installation_id
        self.private_key = load_private_key(private_key)
        self.base_url = base_url.rstrip("/")
        self._token: str | None = None
        self._expires_at: datetime | None = None
        self._lock = threading.Lock()

    def _token_valid(self) -> bool:
        if self._token is None or self._expires_at is None:
            return False
        return datetime.now(timezone.utc) < self._expires_at - TOKEN_REFRESH_MARGIN

    def _request_installation_token(self) -> tuple[str, datetime]:
        url = f"{self.base_url}/app/installations/{self.installation_id}/access_tokens"
        headers = {
            "Authorization": f"Bearer {generate_jwt(self.app_id, self.private_key)}",
            "Accept": "application/vnd.github+json",
        }
        try:
            response = httpx.post(url, headers=headers, timeout=15)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise GitHubAuthError(f"Failed to request installation token: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise GitHubAuthError(f"Installation token response is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise GitHubAuthError("Installation token response is not an object")

        token = data.get("token")
        expires_at_raw = data.get("expires_at")
        if not token or not expires_at_raw:
            raise GitHubAuthError("Installation token response missing token or expires_at")
        try:
            expires_at = datetime.fromisoformat(str(expires_at_raw).replace("Z", "+00:00"))
        except ValueError as e:
            raise GitHubAuthError(f"Invalid expires_at in installation token response: {e}") from e
        return token, expires_at

    def get_token(self) -> str:
        """Return a valid installation token, requesting a new one if needed."""
        with self._lock:
            if not self._token_valid():
                logger.debug("Requesting installation token for app %s", self.app_id)
                self._token, self._expires_at = self._request_installation_token()
                logger.info("Installation token refreshed, expires at %s", self._expires_at)
            return self._token  # type: ignore[return-value]

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = f"Bearer {self.get_token()}"
        yield request
