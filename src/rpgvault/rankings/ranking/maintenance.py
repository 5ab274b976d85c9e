"""Batched rank maintenance.

Counts aggregation events and runs a maintenance cycle (pending
aggregation retries, prior mean refresh, global reassignment) on a
background thread, woken once enough changes have accumulated or on a
fixed schedule. Cycles never run inside the caller that wrote a review.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from ..config import get_config
from ..errors import ReassignmentFailedError
from ..ratings.aggregator import RatingAggregator
from .assigner import RankAssigner

logger = logging.getLogger(__name__)

# Prior mean drift below this is ignored
PRIOR_MEAN_TOLERANCE = 1e-9


@dataclass
class MaintenanceResult:
    """Result of one maintenance cycle."""

    retried: int = 0
    recomputed: int = 0
    ranked: int = 0
    prior_mean: Optional[float] = None
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return len(self.errors) == 0


class RankMaintenance:
    """Triggers rank reassignment after N aggregation events or periodically."""

    def __init__(
        self,
        aggregator: RatingAggregator,
        assigner: RankAssigner,
        threshold: Optional[int] = None,
        interval: Optional[float] = None,
    ):
        """Initialize maintenance.

        Args:
            aggregator: Rating aggregator
            assigner: Rank assigner
            threshold: Aggregation events that trigger a cycle
            interval: Seconds between scheduled cycles
        """
        config = get_config()
        self.aggregator = aggregator
        self.assigner = assigner
        self.threshold = threshold or config.reassign_threshold
        self.interval = interval or config.reassign_interval

        self._events = 0
        # Prior mean the stored bayesian ratings were last rebuilt with
        self._applied_prior: Optional[float] = None
        self._events_guard = threading.Lock()
        self._cycle_lock = threading.Lock()
        self._stop = threading.Event()
        self._wake = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._thread_guard = threading.Lock()

    @property
    def events(self) -> int:
        """Aggregation events since the last successful cycle."""
        with self._events_guard:
            return self._events

    def record_event(self, item_id: str) -> bool:
        """Count one aggregation change; wake the worker at the threshold.

        Args:
            item_id: Item whose aggregates changed

        Returns:
            True if a cycle was requested
        """
        with self._events_guard:
            self._events += 1
            due = self._events >= self.threshold

        # A running cycle re-checks the counter when it finishes
        if not due or self._wake.is_set() or self._cycle_lock.locked():
            return False

        logger.debug(f"Aggregation threshold reached after item {item_id}")
        self.request_cycle()
        return True

    def request_cycle(self) -> None:
        """Ask the background worker to run a cycle soon, starting it if needed."""
        self._wake.set()
        self.start()

    def run_cycle(self, blocking: bool = True) -> Optional[MaintenanceResult]:
        """Run one maintenance cycle.

        Args:
            blocking: Wait for a cycle already in progress instead of skipping

        Returns:
            MaintenanceResult, or None if skipped because a cycle was running
        """
        if not self._cycle_lock.acquire(blocking=blocking):
            logger.debug("Maintenance cycle already running, skipping")
            return None

        try:
            result = MaintenanceResult()

            result.retried = self.aggregator.retry_pending()

            try:
                result.prior_mean = self.aggregator.prior.refresh()
            except SQLAlchemyError as e:
                result.errors.append(f"prior mean refresh: {e}")
                logger.error(f"Prior mean refresh failed: {e}")

            if result.prior_mean is not None and (
                self._applied_prior is None
                or abs(result.prior_mean - self._applied_prior) > PRIOR_MEAN_TOLERANCE
            ):
                result.recomputed = self.aggregator.recompute_all()
                self._applied_prior = result.prior_mean

            with self._events_guard:
                events_at_start = self._events
            try:
                result.ranked = self.assigner.reassign_all()
            except ReassignmentFailedError as e:
                result.errors.append(str(e))
            else:
                with self._events_guard:
                    self._events = max(0, self._events - events_at_start)

            logger.info(
                f"Maintenance cycle: ranked={result.ranked} recomputed={result.recomputed} "
                f"retried={result.retried} errors={len(result.errors)}"
            )
        finally:
            self._cycle_lock.release()

        if result.success and self.events >= self.threshold:
            self.request_cycle()
        return result

    # -------------------------------------------------------------------------
    # Scheduling
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Run cycles in a background thread every ``interval`` seconds."""
        with self._thread_guard:
            if self._thread and self._thread.is_alive():
                return
            self._stop.clear()
            self._thread = threading.Thread(
                target=self._run_periodically, name="rank-maintenance", daemon=True
            )
            self._thread.start()
        logger.info(f"Rank maintenance scheduled every {self.interval}s")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the background thread."""
        self._stop.set()
        self._wake.set()
        if self._thread:
            self._thread.join(timeout)
            self._thread = None
        self._wake.clear()

    def _run_periodically(self) -> None:
        while not self._stop.is_set():
            self._wake.wait(self.interval)
            if self._stop.is_set():
                return
            self._wake.clear()
            try:
                self.run_cycle()
            except Exception:
                logger.exception("Scheduled maintenance cycle failed")
