"""Data models for GitHub API resources."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a GitHub ISO 8601 timestamp into an aware datetime."""
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@dataclass
class Repository:
    """Organization repository."""

    id: int
    name: str
    default_branch: str = ""
    archived: bool = False
    disabled: bool = False
    custom_properties: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Repository:
        return cls(
            id=data["id"],
            name=data["name"],
            default_branch=data.get("default_branch") or "",
            archived=bool(data.get("archived", False)),
            disabled=bool(data.get("disabled", False)),
        )


@dataclass
class Workflow:
    """Workflow definition within a repository."""

    id: int
    name: str
    state: str = ""
    path: str = ""
    html_url: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Workflow:
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            state=data.get("state") or "",
            path=data.get("path") or "",
            html_url=data.get("html_url") or "",
        )


@dataclass
class Actor:
    """User or bot that triggered a run."""

    login: str = ""
    type: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any] | None) -> Actor:
        if not data:
            return cls()
        return cls(login=data.get("login") or "", type=data.get("type") or "")


@dataclass
class WorkflowRun:
    """One execution of a workflow.

    ``conclusion`` is an empty string until the run has finished.
    """

    id: int
    workflow_id: int
    run_number: int
    status: str
    conclusion: str
    created_at: datetime
    updated_at: datetime
    run_started_at: datetime | None = None
    name: str = ""
    html_url: str = ""
    event: str = ""
    head_branch: str = ""
    actor: Actor = field(default_factory=Actor)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> WorkflowRun:
        created_at = parse_timestamp(data["created_at"])
        if created_at is None:
            raise ValueError("workflow run has no created_at")
        updated_at = parse_timestamp(data.get("updated_at")) or created_at
        return cls(
            id=data["id"],
            workflow_id=data["workflow_id"],
            run_number=data.get("run_number", 0),
            status=data.get("status") or "",
            conclusion=data.get("conclusion") or "",
            created_at=created_at,  # type: ignore[arg-type]
            updated_at=updated_at,  # type: ignore[arg-type]
            run_started_at=parse_timestamp(data.get("run_started_at")),
            name=data.get("name") or "",
            html_url=data.get("html_url") or "",
            event=data.get("event") or "",
            head_branch=data.get("head_branch") or "",
            actor=Actor.from_api(data.get("actor")),
        )
