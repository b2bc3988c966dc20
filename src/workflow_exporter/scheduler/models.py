"""Data models for the Scheduler module."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class CycleStatus:
    """Outcome of the scrape cycles run so far.

    Attributes:
        cycles: Number of cycles started.
        failures: Number of cycles that aborted.
        last_success: Completion time of the last committed cycle.
        last_duration: Duration of the last committed cycle in seconds.
        last_error: Error message of the last aborted cycle.
    """

    cycles: int = 0
    failures: int = 0
    last_success: datetime | None = None
    last_duration: float | None = None
    last_error: str | None = None
