"""Exceptions raised by the ranking subsystem."""

from typing import Optional


class RankingError(Exception):
    """Base exception for rating and ranking errors."""

    pass


class NotFoundError(RankingError):
    """Raised for an unknown category, subcategory or item."""

    pass


class InvalidArgumentError(RankingError):
    """Raised for bad pagination parameters."""

    pass


class AggregationFailedError(RankingError):
    """Raised when an item's aggregates could not be recomputed."""

    def __init__(self, item_id: str, cause: Optional[Exception] = None):
        self.item_id = item_id
        self.cause = cause
        message = f"Aggregation failed for item {item_id}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class ReassignmentFailedError(RankingError):
    """Raised when a global rank reassignment was aborted."""

    pass
