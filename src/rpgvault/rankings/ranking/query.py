"""Ranked, filtered, paginated reads."""

import logging
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy import select

from ..categories.index import CategoryIndex
from ..config import get_config
from ..db.models import RpgItem
from ..db.schemas import RankedPageResponse, RpgItemResponse
from ..db.sqlite import Database, get_db
from ..errors import InvalidArgumentError

logger = logging.getLogger(__name__)


@dataclass
class RankedPage:
    """One page of a ranking."""

    items: list[RpgItem] = field(default_factory=list)
    total_count: int = 0
    has_more: bool = False

    def to_response(self, trusted_review_count: int = 0) -> RankedPageResponse:
        """Build the API representation."""
        return RankedPageResponse(
            items=[to_item_response(item, trusted_review_count) for item in self.items],
            total_count=self.total_count,
            has_more=self.has_more,
        )


def to_item_response(item: RpgItem, trusted_review_count: int = 0) -> RpgItemResponse:
    """Convert an item, flagging whether its raw average is trusted yet."""
    response = RpgItemResponse.model_validate(item)
    response.rating_trusted = item.review_count >= trusted_review_count > 0
    return response


class RankingQueryService:
    """Serves slices of the current ranking.

    Read-only: reads whatever rank positions are committed and never
    waits on aggregation or reassignment. Rank positions may lag by one
    aggregation cycle behind the latest raw ratings.
    """

    def __init__(
        self,
        db: Optional[Database] = None,
        index: Optional[CategoryIndex] = None,
        max_page_size: Optional[int] = None,
    ):
        """Initialize the query service.

        Args:
            db: Database instance (uses global if not provided)
            index: Category index (built from config if not provided)
            max_page_size: Limit above which requests are clamped
        """
        self.db = db or get_db()
        self.index = index or CategoryIndex()
        self.max_page_size = max_page_size or get_config().max_page_size

    def query(
        self,
        category_id: str,
        subcategory_id: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> RankedPage:
        """Fetch one page of a category ranking.

        Args:
            category_id: Category ID ("overall" for everything)
            subcategory_id: Optional subcategory within the category
            limit: Page size, clamped to max_page_size
            offset: Zero-based position of the first item

        Returns:
            RankedPage with the slice, total count and has-more flag

        Raises:
            InvalidArgumentError: If limit < 1 or offset < 0
            NotFoundError: If the category or subcategory is unknown
        """
        limit = self._validate_limit(limit)
        offset = self._validate_offset(offset)
        category, subcategory = self.index.resolve(category_id, subcategory_id)

        # One statement, so the page comes from a single committed ranking
        with self.db.get_session() as session:
            stmt = (
                select(RpgItem)
                .where(RpgItem.rank_position.is_not(None))
                .order_by(RpgItem.rank_position, RpgItem.id)
            )
            ranked = list(session.execute(stmt).scalars().all())
            for item in ranked:
                session.expunge(item)

        matching = [
            item
            for item in ranked
            if self.index.matches(item, category.id, subcategory.id if subcategory else None)
        ]
        total_count = len(matching)

        page = RankedPage(
            items=matching[offset : offset + limit],
            total_count=total_count,
            has_more=offset + limit < total_count,
        )
        logger.debug(
            f"Ranking {category_id}/{subcategory_id or '-'} offset={offset} limit={limit}: "
            f"{len(page.items)} of {total_count}"
        )
        return page

    def _validate_limit(self, limit) -> int:
        if isinstance(limit, bool) or not isinstance(limit, int):
            raise InvalidArgumentError(f"limit must be an integer, got {limit!r}")
        if limit < 1:
            raise InvalidArgumentError(f"limit must be positive, got {limit}")
        return min(limit, self.max_page_size)

    def _validate_offset(self, offset) -> int:
        if isinstance(offset, bool) or not isinstance(offset, int):
            raise InvalidArgumentError(f"offset must be an integer, got {offset!r}")
        if offset < 0:
            raise InvalidArgumentError(f"offset must not be negative, got {offset}")
        return offset
