"""Pydantic schemas for data validation.

These schemas validate catalogue items on the way in and shape ranked
items on the way out to the page-rendering layer.
"""

from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class Genre(str, Enum):
    """Setting genre of an RPG product."""

    FANTASY = "fantasy"
    SCI_FI = "sci-fi"
    HORROR = "horror"
    MODERN = "modern"
    HISTORICAL = "historical"
    SUPERHERO = "superhero"
    OTHER = "other"


class ItemType(str, Enum):
    """Kind of RPG product."""

    CORE_RULES = "core-rules"
    ADVENTURE = "adventure"
    SETTING = "setting"
    SUPPLEMENT = "supplement"


class Theme(str, Enum):
    """Dominant play theme."""

    ACTION = "action"
    HORROR = "horror"
    MYSTERY = "mystery"
    EXPLORATION = "exploration"
    POLITICAL = "political"
    SOCIAL = "social"


class AdventureType(str, Enum):
    """Format of an adventure product."""

    ONE_SHOT = "one-shot"
    MODULE = "module"
    CAMPAIGN = "campaign"
    ANTHOLOGY = "anthology"
    SETTING_BOOK = "setting-book"


# ============================================================================
# Item Schemas
# ============================================================================


class RpgItemBase(BaseModel):
    """Descriptive item fields."""

    title: str = Field(..., min_length=1, max_length=300)
    description: Optional[str] = None
    image_url: Optional[str] = None
    genre: Genre = Genre.FANTASY
    item_type: ItemType = ItemType.ADVENTURE
    system: Optional[str] = Field(None, max_length=200)
    publisher: Optional[str] = Field(None, max_length=200)
    year: Optional[int] = Field(None, ge=1970, le=2100)
    theme: Optional[Theme] = None
    adventure_type: Optional[AdventureType] = None

    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class RpgItemCreate(RpgItemBase):
    """Schema for creating a catalogue item."""

    pass


class RpgItemUpdate(BaseModel):
    """Schema for editing descriptive attributes. Aggregates are not editable."""

    title: Optional[str] = Field(None, min_length=1, max_length=300)
    description: Optional[str] = None
    image_url: Optional[str] = None
    genre: Optional[Genre] = None
    item_type: Optional[ItemType] = None
    system: Optional[str] = Field(None, max_length=200)
    publisher: Optional[str] = Field(None, max_length=200)
    year: Optional[int] = Field(None, ge=1970, le=2100)
    theme: Optional[Theme] = None
    adventure_type: Optional[AdventureType] = None

    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class RpgItemResponse(BaseModel):
    """Item as handed to the page-rendering layer."""

    id: UUID
    title: str
    description: Optional[str]
    image_url: Optional[str]
    genre: str
    item_type: str = Field(serialization_alias="type")
    system: Optional[str]
    publisher: Optional[str]
    year: Optional[int]
    theme: Optional[str]
    adventure_type: Optional[str]

    # Aggregates
    review_count: int
    average_rating: float
    bayesian_rating: float
    rank_position: Optional[int]

    # Computed
    rating_trusted: bool = False

    model_config = {
        "from_attributes": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class RankedPageResponse(BaseModel):
    """One page of a ranking."""

    items: list[RpgItemResponse]
    total_count: int
    has_more: bool

    model_config = {"alias_generator": to_camel, "populate_by_name": True}
