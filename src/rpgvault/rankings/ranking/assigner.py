"""Global rank assignment.

Rank positions are recomputed in a batch over a snapshot of every rated
item and published in a single commit, so readers see either the previous
ranking or the new one, never a mix.
"""

import logging
import threading
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ..db.models import RpgItem
from ..db.sqlite import Database, get_db
from ..errors import ReassignmentFailedError

logger = logging.getLogger(__name__)

# (id, bayesian_rating, review_count)
RankRow = tuple[str, float, int]


def rank_key(row: RankRow) -> tuple[float, int, str]:
    """Sort key: bayesian rating desc, review count desc, id asc."""
    item_id, bayesian, count = row
    return (-bayesian, -count, item_id)


def rank_order(rows: list[RankRow]) -> list[str]:
    """Order rated items into a strict total order of IDs."""
    return [row[0] for row in sorted(rows, key=rank_key)]


class RankAssigner:
    """Assigns dense rank positions to all rated items."""

    def __init__(self, db: Optional[Database] = None):
        """Initialize the assigner.

        Args:
            db: Database instance (uses global if not provided)
        """
        self.db = db or get_db()
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        """Whether a reassignment is in progress."""
        return self._lock.locked()

    def reassign_all(self) -> int:
        """Recompute rank positions for every item.

        Returns:
            Number of ranked items

        Raises:
            ReassignmentFailedError: If the batch was aborted; previous
                positions stay in place
        """
        with self._lock:
            try:
                with self.db.get_session() as session:
                    rows = self._snapshot(session)
                    ordered = rank_order(rows)
                    self._apply_positions(session, ordered)
            except Exception as e:
                logger.error(f"Rank reassignment aborted, keeping previous positions: {e}")
                raise ReassignmentFailedError(f"Rank reassignment failed: {e}") from e

        logger.info(f"Assigned rank positions to {len(ordered)} items")
        return len(ordered)

    def _snapshot(self, session: Session) -> list[RankRow]:
        """Read every rated item's ranking inputs within the transaction."""
        stmt = select(RpgItem.id, RpgItem.bayesian_rating, RpgItem.review_count).where(
            RpgItem.review_count >= 1
        )
        return [tuple(row) for row in session.execute(stmt).all()]

    def _apply_positions(self, session: Session, ordered: list[str]) -> None:
        """Clear all positions, then write 1..K in order."""
        session.execute(
            update(RpgItem).where(RpgItem.rank_position.is_not(None)).values(rank_position=None)
        )
        if ordered:
            session.execute(
                update(RpgItem),
                [
                    {"id": item_id, "rank_position": position}
                    for position, item_id in enumerate(ordered, start=1)
                ],
            )
