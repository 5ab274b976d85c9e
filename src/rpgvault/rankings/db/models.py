"""SQLAlchemy ORM models for the local SQLite database.

Tables:
- rpg_items: Catalogue items with their rating aggregates and rank position
- reviews: Per-reviewer ratings attached to an item
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy import Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from .schemas import Genre, ItemType


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def generate_uuid() -> str:
    """Generate a UUID string for primary keys."""
    return str(uuid4())


def utc_now() -> str:
    """Current UTC time as an ISO string."""
    return datetime.now(timezone.utc).isoformat()


class RpgItem(Base):
    """RPG product - descriptive attributes plus rating aggregates."""

    __tablename__ = "rpg_items"

    # Primary key
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    # Descriptive fields
    title: Mapped[str] = mapped_column(String(300), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text)
    image_url: Mapped[Optional[str]] = mapped_column(Text)
    genre: Mapped[str] = mapped_column(String(20), default=Genre.FANTASY.value, index=True)
    item_type: Mapped[str] = mapped_column(
        String(20), default=ItemType.ADVENTURE.value, index=True
    )
    system: Mapped[Optional[str]] = mapped_column(String(200))
    publisher: Mapped[Optional[str]] = mapped_column(String(200))
    year: Mapped[Optional[int]] = mapped_column(Integer)
    theme: Mapped[Optional[str]] = mapped_column(String(20))
    adventure_type: Mapped[Optional[str]] = mapped_column(String(20))

    # Aggregates (written by the rating aggregator)
    review_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    average_rating: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    bayesian_rating: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    # Written only by the rank assigner
    rank_position: Mapped[Optional[int]] = mapped_column(Integer, index=True)

    # Timestamps
    created_at: Mapped[str] = mapped_column(String(32), default=utc_now)
    updated_at: Mapped[str] = mapped_column(String(32), default=utc_now, onupdate=utc_now)

    reviews: Mapped[list["Review"]] = relationship(
        back_populates="item", cascade="all, delete-orphan"
    )

    # Attribute name used by taxonomy rules -> model attribute
    ATTRIBUTE_FIELDS = {
        "title": "title",
        "genre": "genre",
        "type": "item_type",
        "system": "system",
        "publisher": "publisher",
        "year": "year",
        "theme": "theme",
        "adventure_type": "adventure_type",
    }

    def attribute(self, name: str):
        """Look up a taxonomy attribute by its public name."""
        return getattr(self, self.ATTRIBUTE_FIELDS[name])

    @property
    def is_rated(self) -> bool:
        """Whether the item has at least one review."""
        return self.review_count > 0

    def __repr__(self) -> str:
        return f"<RpgItem(id={self.id}, title='{self.title}', rank={self.rank_position})>"


class Review(Base):
    """Review model - one reviewer's rating of one item."""

    __tablename__ = "reviews"
    __table_args__ = (UniqueConstraint("item_id", "user_id", name="uq_review_item_user"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    item_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("rpg_items.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    # Rating (1-10, one decimal)
    rating: Mapped[float] = mapped_column(Float, nullable=False)
    review_text: Mapped[Optional[str]] = mapped_column(Text)

    # Timestamps
    created_at: Mapped[str] = mapped_column(String(32), default=utc_now)
    updated_at: Mapped[str] = mapped_column(String(32), default=utc_now, onupdate=utc_now)

    item: Mapped["RpgItem"] = relationship(back_populates="reviews")

    def __repr__(self) -> str:
        return f"<Review(id={self.id}, item_id={self.item_id}, rating={self.rating})>"
