"""Wiring of the rating and ranking components."""

from dataclasses import dataclass
from typing import Optional

from .categories.index import CategoryIndex
from .categories.taxonomy import Taxonomy, load_taxonomy
from .config import Config, get_config
from .db.sqlite import Database, get_db
from .items.manager import ItemManager
from .ranking.assigner import RankAssigner
from .ranking.maintenance import RankMaintenance
from .ranking.query import RankingQueryService
from .ratings.aggregator import RatingAggregator
from .ratings.prior import PriorMeanCache
from .reviews.manager import ReviewManager


@dataclass
class Services:
    """All components sharing one database."""

    config: Config
    db: Database
    index: CategoryIndex
    aggregator: RatingAggregator
    assigner: RankAssigner
    maintenance: RankMaintenance
    rankings: RankingQueryService
    items: ItemManager
    reviews: ReviewManager


def build_services(
    db: Optional[Database] = None,
    config: Optional[Config] = None,
    taxonomy: Optional[Taxonomy] = None,
    prior_mean: Optional[float] = None,
) -> Services:
    """Build and connect the components.

    Args:
        db: Database instance (uses global if not provided)
        config: Configuration (uses global if not provided)
        taxonomy: Category table (config path or bundled default if not provided)
        prior_mean: Fixed prior mean instead of the computed one
    """
    config = config or get_config()
    db = db or get_db(str(config.db_path))

    index = CategoryIndex(taxonomy or load_taxonomy(config.taxonomy_path))
    prior = PriorMeanCache(
        db,
        ttl=config.prior_mean_ttl,
        fallback=config.fallback_prior_mean,
        fixed=prior_mean,
    )
    aggregator = RatingAggregator(
        db,
        prior=prior,
        prior_weight=config.prior_weight,
        max_retries=config.recompute_retry_max,
        initial_backoff=config.recompute_retry_delay,
    )
    assigner = RankAssigner(db)
    maintenance = RankMaintenance(
        aggregator,
        assigner,
        threshold=config.reassign_threshold,
        interval=config.reassign_interval,
    )
    aggregator.on_recompute = maintenance.record_event

    return Services(
        config=config,
        db=db,
        index=index,
        aggregator=aggregator,
        assigner=assigner,
        maintenance=maintenance,
        rankings=RankingQueryService(db, index=index, max_page_size=config.max_page_size),
        items=ItemManager(db, aggregator=aggregator, assigner=assigner, maintenance=maintenance),
        reviews=ReviewManager(db, aggregator=aggregator),
    )
