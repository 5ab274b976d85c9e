"""Per-item rating aggregation.

Keeps review_count, average_rating and bayesian_rating on each item in
step with the reviews attached to it. The Bayesian rating blends the raw
ratings with C virtual reviews at the global prior mean m:

    bayesian = (C * m + sum(ratings)) / (C + count)

so sparsely reviewed items are pulled toward m and heavily reviewed items
converge on their raw average.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError

from ..config import get_config
from ..db.models import Review, RpgItem
from ..db.sqlite import Database, get_db
from ..errors import AggregationFailedError, NotFoundError
from .prior import PriorMeanCache

logger = logging.getLogger(__name__)


def bayesian_rating(
    ratings_sum: float, count: int, prior_mean: float, prior_weight: float
) -> float:
    """Smooth a rating total toward the prior mean.

    Args:
        ratings_sum: Sum of the item's ratings
        count: Number of ratings
        prior_mean: Global prior mean m
        prior_weight: Number of virtual reviews C at the prior mean

    Returns:
        The smoothed rating; exactly prior_mean when count is 0

    Raises:
        ValueError: If prior_weight is not positive
    """
    if prior_weight <= 0:
        raise ValueError("prior_weight must be greater than 0")
    return (prior_weight * prior_mean + ratings_sum) / (prior_weight + count)


@dataclass
class ItemAggregate:
    """Aggregate values written to one item."""

    item_id: str
    review_count: int
    average_rating: float
    bayesian_rating: float


class RatingAggregator:
    """Recomputes rating aggregates for items."""

    def __init__(
        self,
        db: Optional[Database] = None,
        prior: Optional[PriorMeanCache] = None,
        prior_weight: Optional[float] = None,
        max_retries: Optional[int] = None,
        initial_backoff: Optional[float] = None,
        on_recompute: Optional[Callable[[str], None]] = None,
    ):
        """Initialize the aggregator.

        Args:
            db: Database instance (uses global if not provided)
            prior: Prior mean provider (built from config if not provided)
            prior_weight: Virtual review count C (config default if not provided)
            max_retries: Attempts per recompute before giving up
            initial_backoff: Initial backoff delay in seconds
            on_recompute: Called with the item ID after each successful recompute
        """
        config = get_config()
        self.db = db or get_db()
        self.prior = prior or PriorMeanCache(self.db)
        self.prior_weight = prior_weight if prior_weight is not None else config.prior_weight
        if self.prior_weight <= 0:
            raise ValueError("prior_weight must be greater than 0")
        self.max_retries = max_retries or config.recompute_retry_max
        self.initial_backoff = (
            initial_backoff if initial_backoff is not None else config.recompute_retry_delay
        )
        self.on_recompute = on_recompute

        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._pending: set[str] = set()
        self._pending_guard = threading.Lock()

    # -------------------------------------------------------------------------
    # Recompute
    # -------------------------------------------------------------------------

    def recompute(self, item_id: str) -> Optional[ItemAggregate]:
        """Recompute one item's aggregates from its current reviews.

        Args:
            item_id: Item ID

        Returns:
            The written aggregates, or None if the item no longer exists

        Raises:
            AggregationFailedError: If the store kept failing after retries
        """
        try:
            with self._lock_for(item_id):
                aggregate = self._with_retry(item_id, lambda: self._recompute_once(item_id))
        except NotFoundError:
            logger.warning(f"Skipping recompute for missing item {item_id}")
            self.forget(item_id)
            return None
        except AggregationFailedError:
            with self._pending_guard:
                self._pending.add(item_id)
            raise

        self._clear_pending(item_id)
        logger.debug(
            f"Recomputed item {item_id}: count={aggregate.review_count} "
            f"avg={aggregate.average_rating:.3f} bayes={aggregate.bayesian_rating:.3f}"
        )
        if self.on_recompute:
            self.on_recompute(item_id)
        return aggregate

    def recompute_all(self) -> int:
        """Recompute every item, skipping items that fail.

        Returns:
            Number of items recomputed
        """
        recomputed = 0
        for item_id in self.db.list_item_ids():
            try:
                if self.recompute(item_id) is not None:
                    recomputed += 1
            except AggregationFailedError as e:
                logger.error(str(e))
        logger.info(f"Recomputed aggregates for {recomputed} items")
        return recomputed

    def retry_pending(self) -> int:
        """Retry items whose last recompute failed.

        Returns:
            Number of items that now succeeded
        """
        with self._pending_guard:
            pending = sorted(self._pending)

        succeeded = 0
        for item_id in pending:
            try:
                self.recompute(item_id)
                succeeded += 1
            except AggregationFailedError as e:
                logger.error(f"{e} (still pending)")
        return succeeded

    @property
    def pending(self) -> set[str]:
        """Item IDs waiting for a successful recompute."""
        with self._pending_guard:
            return set(self._pending)

    def forget(self, item_id: str) -> None:
        """Drop the lock and pending entry kept for a deleted item."""
        with self._locks_guard:
            self._locks.pop(item_id, None)
        self._clear_pending(item_id)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _recompute_once(self, item_id: str) -> ItemAggregate:
        """Read the item's ratings and write its aggregates in one transaction."""
        prior_mean = self.prior.get()

        with self.db.get_session() as session:
            exists = session.execute(
                select(RpgItem.id).where(RpgItem.id == item_id)
            ).scalar_one_or_none()
            if exists is None:
                raise NotFoundError(f"Item {item_id} not found")

            count, total = session.execute(
                select(func.count(Review.id), func.coalesce(func.sum(Review.rating), 0.0))
                .where(Review.item_id == item_id)
            ).one()

            aggregate = ItemAggregate(
                item_id=item_id,
                review_count=count,
                average_rating=total / count if count else 0.0,
                bayesian_rating=bayesian_rating(total, count, prior_mean, self.prior_weight),
            )

            session.execute(
                update(RpgItem)
                .where(RpgItem.id == item_id)
                .values(
                    review_count=aggregate.review_count,
                    average_rating=aggregate.average_rating,
                    bayesian_rating=aggregate.bayesian_rating,
                )
            )

        return aggregate

    def _with_retry(self, item_id: str, operation: Callable[[], ItemAggregate]) -> ItemAggregate:
        """Execute operation with exponential backoff retry.

        Args:
            item_id: Item being recomputed, for error reporting
            operation: Callable to execute

        Returns:
            Result of operation
        """
        backoff = self.initial_backoff

        for attempt in range(self.max_retries):
            try:
                return operation()
            except SQLAlchemyError as e:
                if attempt == self.max_retries - 1:
                    logger.error(f"Giving up on item {item_id} after {self.max_retries} attempts: {e}")
                    raise AggregationFailedError(item_id, e) from e
                logger.warning(f"Recompute of item {item_id} failed, retrying in {backoff}s: {e}")
                time.sleep(backoff)
                backoff *= 2

        raise AggregationFailedError(item_id)

    def _lock_for(self, item_id: str) -> threading.Lock:
        """Get the lock serializing recomputes of one item."""
        with self._locks_guard:
            lock = self._locks.get(item_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[item_id] = lock
            return lock

    def _clear_pending(self, item_id: str) -> None:
        with self._pending_guard:
            self._pending.discard(item_id)
