"""Review manager for item review operations.

Every committed review mutation triggers a recompute of the affected
item's aggregates. A failed recompute is logged and left to the
maintenance cycle; it never undoes the review write.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select

from ..db.models import Review, RpgItem
from ..db.sqlite import Database, get_db
from ..errors import AggregationFailedError, NotFoundError
from ..ratings.aggregator import RatingAggregator
from .schemas import ReviewCreate, ReviewUpdate

logger = logging.getLogger(__name__)


class ReviewManager:
    """Manages item review operations."""

    def __init__(
        self,
        db: Optional[Database] = None,
        aggregator: Optional[RatingAggregator] = None,
    ):
        """Initialize review manager.

        Args:
            db: Database instance
            aggregator: Aggregator notified after each mutation
        """
        self.db = db or get_db()
        self.aggregator = aggregator or RatingAggregator(self.db)

    # -------------------------------------------------------------------------
    # Review CRUD
    # -------------------------------------------------------------------------

    def create_review(self, data: ReviewCreate) -> Review:
        """Create a new review.

        Args:
            data: Review creation data

        Returns:
            Created review

        Raises:
            NotFoundError: If the item does not exist
            ValueError: If the reviewer already reviewed the item
        """
        item_id = str(data.item_id)

        with self.db.get_session() as session:
            # Verify item exists
            item = session.execute(
                select(RpgItem.id).where(RpgItem.id == item_id)
            ).scalar_one_or_none()
            if not item:
                raise NotFoundError(f"Item not found: {item_id}")

            # One review per reviewer per item
            existing = session.execute(
                select(Review.id).where(
                    Review.item_id == item_id, Review.user_id == data.user_id
                )
            ).scalar_one_or_none()
            if existing:
                raise ValueError("Review already exists for this item")

            review = Review(
                item_id=item_id,
                user_id=data.user_id,
                rating=data.rating,
                review_text=data.review_text,
            )

            session.add(review)
            session.commit()
            session.refresh(review)
            session.expunge(review)

        logger.info(f"Review {review.id} created for item {item_id} (rating {review.rating})")
        self._trigger_recompute(item_id)
        return review

    def get_review(self, review_id: str) -> Optional[Review]:
        """Get a review by ID.

        Args:
            review_id: Review ID

        Returns:
            Review or None
        """
        with self.db.get_session() as session:
            stmt = select(Review).where(Review.id == review_id)
            review = session.execute(stmt).scalar_one_or_none()
            if review:
                session.expunge(review)
            return review

    def get_review_by_user(self, item_id: str, user_id: str) -> Optional[Review]:
        """Get a reviewer's review of an item."""
        with self.db.get_session() as session:
            stmt = select(Review).where(Review.item_id == item_id, Review.user_id == user_id)
            review = session.execute(stmt).scalar_one_or_none()
            if review:
                session.expunge(review)
            return review

    def list_reviews_for_item(self, item_id: str) -> list[Review]:
        """List an item's reviews, newest first.

        Args:
            item_id: Item ID

        Returns:
            List of reviews
        """
        with self.db.get_session() as session:
            stmt = (
                select(Review)
                .where(Review.item_id == item_id)
                .order_by(Review.created_at.desc(), Review.id)
            )
            reviews = session.execute(stmt).scalars().all()
            for review in reviews:
                session.expunge(review)
            return list(reviews)

    def update_review(
        self,
        review_id: str,
        data: ReviewUpdate,
    ) -> Optional[Review]:
        """Update a review.

        Args:
            review_id: Review ID
            data: Update data

        Returns:
            Updated review or None
        """
        with self.db.get_session() as session:
            stmt = select(Review).where(Review.id == review_id)
            review = session.execute(stmt).scalar_one_or_none()

            if not review:
                return None

            update_data = data.model_dump(exclude_unset=True)
            for field, value in update_data.items():
                if field == "rating" and value is None:
                    continue
                setattr(review, field, value)

            session.commit()
            session.refresh(review)
            session.expunge(review)

        if "rating" in update_data:
            self._trigger_recompute(review.item_id)
        return review

    def delete_review(self, review_id: str) -> bool:
        """Delete a review.

        Args:
            review_id: Review ID

        Returns:
            True if deleted
        """
        with self.db.get_session() as session:
            stmt = select(Review).where(Review.id == review_id)
            review = session.execute(stmt).scalar_one_or_none()

            if not review:
                return False

            item_id = review.item_id
            session.delete(review)
            session.commit()

        logger.info(f"Review {review_id} deleted from item {item_id}")
        self._trigger_recompute(item_id)
        return True

    # -------------------------------------------------------------------------
    # Quick Rating
    # -------------------------------------------------------------------------

    def rate(self, item_id: str, user_id: str, rating: float) -> Review:
        """Create or update a reviewer's rating of an item.

        Args:
            item_id: Item ID
            user_id: Reviewer ID
            rating: Rating (1-10)

        Returns:
            Created or updated review
        """
        existing = self.get_review_by_user(item_id, user_id)

        if existing:
            return self.update_review(existing.id, ReviewUpdate(rating=rating))
        return self.create_review(
            ReviewCreate(item_id=UUID(item_id), user_id=user_id, rating=rating)
        )

    # -------------------------------------------------------------------------
    # Aggregation trigger
    # -------------------------------------------------------------------------

    def _trigger_recompute(self, item_id: str) -> None:
        """Recompute the item's aggregates without failing the review write."""
        try:
            self.aggregator.recompute(item_id)
        except AggregationFailedError as e:
            logger.error(f"{e}; review saved, item queued for retry")
