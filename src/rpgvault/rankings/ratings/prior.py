"""Global prior mean for Bayesian smoothing."""

import logging
import threading
import time
from typing import Optional

from sqlalchemy import func, select

from ..config import get_config
from ..db.models import RpgItem
from ..db.sqlite import Database

logger = logging.getLogger(__name__)


class PriorMeanCache:
    """Caches the mean average_rating across all rated items.

    The value is recomputed when older than ``ttl`` seconds or on an
    explicit ``refresh()``. A ``fixed`` value disables lookups entirely.
    """

    def __init__(
        self,
        db: Database,
        ttl: Optional[float] = None,
        fallback: Optional[float] = None,
        fixed: Optional[float] = None,
    ):
        config = get_config()
        self.db = db
        self.ttl = ttl if ttl is not None else config.prior_mean_ttl
        self.fallback = fallback if fallback is not None else config.fallback_prior_mean
        self.fixed = fixed

        self._value: Optional[float] = None
        self._loaded_at = 0.0
        self._lock = threading.Lock()

    def get(self) -> float:
        """Return the prior mean, refreshing it if stale."""
        if self.fixed is not None:
            return self.fixed

        with self._lock:
            if self._value is not None and time.monotonic() - self._loaded_at < self.ttl:
                return self._value
        return self.refresh()

    def refresh(self) -> float:
        """Recompute the prior mean from the store."""
        if self.fixed is not None:
            return self.fixed

        with self.db.get_session() as session:
            mean = session.execute(
                select(func.avg(RpgItem.average_rating)).where(RpgItem.review_count > 0)
            ).scalar_one_or_none()

        value = float(mean) if mean is not None else self.fallback

        with self._lock:
            previous = self._value
            self._value = value
            self._loaded_at = time.monotonic()

        if previous != value:
            logger.info(f"Prior mean is now {value:.4f}")
        return value

    def invalidate(self) -> None:
        """Drop the cached value so the next get() reloads it."""
        with self._lock:
            self._value = None
