"""ScrapeScheduler - Runs collection cycles on a background thread."""

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from workflow_exporter.collector import CollectionError
from workflow_exporter.github import FetchCancelledError
from workflow_exporter.scheduler.models import CycleStatus

if TYPE_CHECKING:
    from workflow_exporter.collector import WorkflowCollector
    from workflow_exporter.metrics import MetricStore

logger = logging.getLogger(__name__)


class ScrapeScheduler:
    """Runs a scrape cycle immediately, then again ``interval`` after each one ends.

    Cycles never overlap. A successful cycle is committed to the metric
    store; a failed cycle is logged and the previous metrics stay visible.
    """

    def __init__(
        self,
        collector: WorkflowCollector,
        store: MetricStore,
        interval: timedelta,
        stop_event: threading.Event | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            collector: Collector that performs one cycle per call.
            store: Store the results are committed to.
            interval: Pause between the end of a cycle and the next start.
            stop_event: Event shared with the GitHub client so that stopping
                also cancels pending rate-limit waits.
        """
        self.collector = collector
        self.store = store
        self.interval = interval
        self.stop_event = stop_event or threading.Event()
        self.status = CycleStatus()
        self._thread: threading.Thread | None = None

    def run_once(self) -> bool:
        """Run one cycle synchronously.

        Returns:
            True if the cycle completed and was committed.
        """
        self.status.cycles += 1
        started = time.monotonic()
        logger.info("Starting scrape cycle %d", self.status.cycles)

        try:
            result = self.collector.collect()
        except FetchCancelledError:
            logger.info("Scrape cycle cancelled")
            return False
        except CollectionError as e:
            self.status.failures += 1
            self.status.last_error = str(e)
            logger.exception("Scrape cycle failed: %s", e)
            return False
        except Exception as e:
            # the loop thread must outlive any single broken cycle
            self.status.failures += 1
            self.status.last_error = f"{type(e).__name__}: {e}"
            logger.exception("Scrape cycle failed with unexpected error: %s", e)
            return False

        self.store.commit(result)
        duration = time.monotonic() - started
        self.status.last_success = datetime.now(timezone.utc)
        self.status.last_duration = duration
        self.status.last_error = None
        logger.info("Scrape cycle finished in %.1fs", duration)
        return True

    def _loop(self) -> None:
        logger.info("Scheduler started (interval=%s)", self.interval)
        while not self.stop_event.is_set():
            self.run_once()
            if self.stop_event.wait(self.interval.total_seconds()):
                break
        logger.info("Scheduler stopped")

    def start(self) -> None:
        """Start the scrape loop on a daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self.stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="scrape-scheduler", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = 10.0) -> None:
        """Stop the scrape loop and wait for the running cycle to end."""
        self.stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
