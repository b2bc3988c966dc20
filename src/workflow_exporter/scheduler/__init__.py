"""Scheduler - Runs scrape cycles on a fixed interval."""

from workflow_exporter.scheduler.models import CycleStatus
from workflow_exporter.scheduler.scheduler import ScrapeScheduler

__all__ = [
    "CycleStatus",
    "ScrapeScheduler",
]
