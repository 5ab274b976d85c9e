"""Pydantic schemas for item reviews."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

MIN_RATING = 1.0
MAX_RATING = 10.0


def round_rating(value: Optional[float]) -> Optional[float]:
    """Round a rating to one decimal place."""
    if value is None:
        return None
    return round(value * 10) / 10


class ReviewBase(BaseModel):
    """Base review fields."""

    rating: float = Field(..., ge=MIN_RATING, le=MAX_RATING)
    review_text: Optional[str] = None

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    @field_validator("rating")
    @classmethod
    def validate_rating(cls, v):
        """Keep one decimal of precision."""
        return round_rating(v)


class ReviewCreate(ReviewBase):
    """Schema for creating a review."""

    item_id: UUID
    user_id: str = Field(..., min_length=1, max_length=64)


class ReviewUpdate(BaseModel):
    """Schema for updating a review."""

    rating: Optional[float] = Field(None, ge=MIN_RATING, le=MAX_RATING)
    review_text: Optional[str] = None

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    @field_validator("rating")
    @classmethod
    def validate_rating(cls, v):
        """Keep one decimal of precision."""
        return round_rating(v)


class ReviewResponse(BaseModel):
    """Schema for review responses."""

    id: UUID
    item_id: UUID
    user_id: str
    rating: float
    review_text: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }
