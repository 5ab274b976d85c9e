"""Rating aggregation module."""

from .aggregator import ItemAggregate, RatingAggregator, bayesian_rating
from .prior import PriorMeanCache

__all__ = [
    "ItemAggregate",
    "RatingAggregator",
    "PriorMeanCache",
    "bayesian_rating",
]
