"""Rank assignment, maintenance and ranked queries."""

from .assigner import RankAssigner, rank_key, rank_order
from .maintenance import MaintenanceResult, RankMaintenance
from .query import RankedPage, RankingQueryService, to_item_response

__all__ = [
    "RankAssigner",
    "rank_key",
    "rank_order",
    "MaintenanceResult",
    "RankMaintenance",
    "RankedPage",
    "RankingQueryService",
    "to_item_response",
]
