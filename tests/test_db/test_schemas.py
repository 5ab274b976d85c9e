"""Tests for Pydantic schemas."""

from uuid import uuid4

import pytest
from pydantic import ValidationError

from rpgvault.rankings.db.schemas import (
    Genre,
    ItemType,
    RankedPageResponse,
    RpgItemCreate,
    RpgItemResponse,
)


class TestRpgItemCreate:
    """Tests for RpgItemCreate schema."""

    def test_defaults(self):
        """Test default genre and type."""
        item = RpgItemCreate(title="Untitled")
        assert item.genre == Genre.FANTASY
        assert item.item_type == ItemType.ADVENTURE

    def test_enum_from_string(self):
        """Test enum values parse from their string form."""
        item = RpgItemCreate(title="Alien", genre="sci-fi", item_type="core-rules")
        assert item.genre == Genre.SCI_FI
        assert item.item_type == ItemType.CORE_RULES

    def test_empty_title_rejected(self):
        """Test that titles are required."""
        with pytest.raises(ValidationError):
            RpgItemCreate(title="")

    def test_year_range(self):
        """Test publication year bounds."""
        with pytest.raises(ValidationError):
            RpgItemCreate(title="Ancient", year=1800)

    def test_unknown_genre_rejected(self):
        """Test that unknown genres are rejected."""
        with pytest.raises(ValidationError):
            RpgItemCreate(title="Odd", genre="western")


class TestRpgItemResponse:
    """Tests for the outgoing item shape."""

    def _response(self, **overrides) -> RpgItemResponse:
        data = {
            "id": uuid4(),
            "title": "Dungeon",
            "description": None,
            "image_url": None,
            "genre": "fantasy",
            "item_type": "adventure",
            "system": None,
            "publisher": None,
            "year": None,
            "theme": None,
            "adventure_type": "one-shot",
            "review_count": 3,
            "average_rating": 8.0,
            "bayesian_rating": 6.846,
            "rank_position": 1,
        }
        data.update(overrides)
        return RpgItemResponse(**data)

    def test_camel_case_keys(self):
        """Test that dumped keys are camelCase."""
        dumped = self._response().model_dump(by_alias=True)

        assert dumped["reviewCount"] == 3
        assert dumped["averageRating"] == 8.0
        assert dumped["bayesianRating"] == 6.846
        assert dumped["rankPosition"] == 1
        assert dumped["adventureType"] == "one-shot"
        assert dumped["ratingTrusted"] is False

    def test_item_type_serialized_as_type(self):
        """Test that item_type is exposed as "type"."""
        dumped = self._response().model_dump(by_alias=True)
        assert dumped["type"] == "adventure"
        assert "itemType" not in dumped

    def test_page_response(self):
        """Test the page envelope keys."""
        page = RankedPageResponse(items=[self._response()], total_count=1, has_more=False)
        dumped = page.model_dump(by_alias=True, mode="json")

        assert dumped["totalCount"] == 1
        assert dumped["hasMore"] is False
        assert len(dumped["items"]) == 1
