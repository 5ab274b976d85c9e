"""Item manager for catalogue operations.

New items start with the current prior mean as their bayesian rating.
Deleting a ranked item reassigns ranks straight away so positions stay
dense.
"""

import logging
from typing import Optional

from ..db.models import RpgItem
from ..db.schemas import RpgItemCreate, RpgItemUpdate
from ..db.sqlite import Database, get_db
from ..errors import ReassignmentFailedError
from ..ranking.assigner import RankAssigner
from ..ranking.maintenance import RankMaintenance
from ..ratings.aggregator import RatingAggregator

logger = logging.getLogger(__name__)


class ItemManager:
    """Manages catalogue items."""

    def __init__(
        self,
        db: Optional[Database] = None,
        aggregator: Optional[RatingAggregator] = None,
        assigner: Optional[RankAssigner] = None,
        maintenance: Optional[RankMaintenance] = None,
    ):
        """Initialize item manager.

        Args:
            db: Database instance
            aggregator: Aggregator providing the prior mean
            assigner: Rank assigner run after deleting a ranked item
            maintenance: Asked for a cycle if that reassignment fails
        """
        self.db = db or get_db()
        self.aggregator = aggregator or RatingAggregator(self.db)
        self.assigner = assigner or RankAssigner(self.db)
        self.maintenance = maintenance

    def add_item(self, data: RpgItemCreate) -> RpgItem:
        """Add an item to the catalogue.

        Args:
            data: Item creation data

        Returns:
            Created item, unranked, with bayesian rating equal to m
        """
        item = self.db.create_item(data, prior_mean=self.aggregator.prior.get())
        logger.info(f"Item {item.id} added: {item.title}")
        return item

    def get_item(self, item_id: str) -> Optional[RpgItem]:
        return self.db.get_item(item_id)

    def list_items(self) -> list[RpgItem]:
        return self.db.list_items()

    def update_item(self, item_id: str, data: RpgItemUpdate) -> Optional[RpgItem]:
        """Edit an item's descriptive attributes.

        Category membership may change; global rank positions do not.
        """
        item = self.db.update_item(item_id, data)
        if item:
            logger.info(f"Item {item_id} updated")
        return item

    def delete_item(self, item_id: str) -> bool:
        """Delete an item and its reviews.

        Args:
            item_id: Item ID

        Returns:
            True if deleted
        """
        item = self.db.get_item(item_id)
        if not item:
            return False

        self.db.delete_item(item_id)
        self.aggregator.forget(item_id)
        logger.info(f"Item {item_id} deleted")

        if item.rank_position is not None:
            try:
                self.assigner.reassign_all()
            except ReassignmentFailedError as e:
                logger.error(f"{e}; ranks after item {item_id} keep a gap until the next cycle")
                if self.maintenance:
                    self.maintenance.request_cycle()
        return True
