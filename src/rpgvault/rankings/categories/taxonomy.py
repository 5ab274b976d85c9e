"""Category taxonomy: a rule table of attribute predicates.

Categories are data, not code. Each category or subcategory carries a list
of attribute rules combined with ``all`` or ``any``; a subcategory is
additionally bound by its parent's rules. A category without rules matches
every item.
"""

import json
from pathlib import Path
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

Attribute = Literal[
    "title", "genre", "type", "system", "publisher", "year", "theme", "adventure_type"
]

OVERALL = "overall"


class AttributeRule(BaseModel):
    """Attribute equality/membership test."""

    attribute: Attribute
    values: list[Union[str, int]] = Field(..., min_length=1)

    @field_validator("values")
    @classmethod
    def normalize_values(cls, v):
        """Compare case-insensitively."""
        return [str(value).strip().lower() for value in v]

    def test(self, value) -> bool:
        """Check one attribute value against the rule."""
        if value is None:
            return False
        return str(value).strip().lower() in self.values


class Predicate(BaseModel):
    """A set of rules combined with all/any."""

    rules: list[AttributeRule] = Field(default_factory=list)
    match: Literal["all", "any"] = "all"


class Subcategory(Predicate):
    """Subcategory definition."""

    id: str
    name: str
    description: Optional[str] = None
    examples: list[str] = Field(default_factory=list)


class Category(Predicate):
    """Main category definition."""

    id: str
    name: str
    description: Optional[str] = None
    subcategories: list[Subcategory] = Field(default_factory=list)

    def get_subcategory(self, subcategory_id: str) -> Optional[Subcategory]:
        for subcategory in self.subcategories:
            if subcategory.id == subcategory_id:
                return subcategory
        return None


class Taxonomy(BaseModel):
    """The full category table."""

    categories: list[Category]

    @field_validator("categories")
    @classmethod
    def unique_ids(cls, v):
        """Category IDs and subcategory IDs within a category must be unique."""
        seen = set()
        for category in v:
            if category.id in seen:
                raise ValueError(f"Duplicate category id: {category.id}")
            seen.add(category.id)
            sub_ids = [s.id for s in category.subcategories]
            if len(sub_ids) != len(set(sub_ids)):
                raise ValueError(f"Duplicate subcategory id in {category.id}")
        return v

    def get_category(self, category_id: str) -> Optional[Category]:
        for category in self.categories:
            if category.id == category_id:
                return category
        return None

    @classmethod
    def from_file(cls, path: Path) -> "Taxonomy":
        """Load a taxonomy from a JSON file."""
        with open(path, encoding="utf-8") as f:
            return cls.model_validate(json.load(f))


def _rule(attribute: str, *values: str) -> dict:
    return {"attribute": attribute, "values": list(values)}


DEFAULT_TAXONOMY = {
    "categories": [
        {
            "id": OVERALL,
            "name": "Overall",
            "description": "Every rated product.",
        },
        {
            "id": "fantasy",
            "name": "Fantasy",
            "rules": [_rule("genre", "fantasy")],
            "subcategories": [
                {
                    "id": "one-shots",
                    "name": "Fantasy One-Shots",
                    "description": "Single-session fantasy adventures.",
                    "rules": [_rule("adventure_type", "one-shot")],
                },
                {
                    "id": "campaigns",
                    "name": "Fantasy Campaigns",
                    "description": "Long-form fantasy campaigns.",
                    "rules": [_rule("adventure_type", "campaign")],
                    "examples": ["Curse of Strahd", "The Enemy Within"],
                },
                {
                    "id": "dungeon-crawls",
                    "name": "Dungeon Crawls",
                    "description": "Exploration-driven fantasy adventures.",
                    "rules": [_rule("theme", "exploration", "action")],
                },
            ],
        },
        {
            "id": "sci-fi",
            "name": "Science Fiction",
            "rules": [_rule("genre", "sci-fi")],
            "subcategories": [
                {
                    "id": "exploration",
                    "name": "Space Exploration",
                    "rules": [_rule("theme", "exploration")],
                },
                {
                    "id": "intrigue",
                    "name": "Political Intrigue",
                    "rules": [_rule("theme", "political", "social")],
                },
            ],
        },
        {
            "id": "horror",
            "name": "Horror",
            "description": "Horror settings or horror-themed play in any genre.",
            "match": "any",
            "rules": [_rule("genre", "horror"), _rule("theme", "horror")],
            "subcategories": [
                {
                    "id": "investigation",
                    "name": "Investigative Horror",
                    "rules": [_rule("theme", "mystery")],
                },
                {
                    "id": "one-shots",
                    "name": "Horror One-Shots",
                    "rules": [_rule("adventure_type", "one-shot")],
                },
            ],
        },
        {
            "id": "modern",
            "name": "Modern & Superhero",
            "rules": [_rule("genre", "modern", "superhero")],
            "subcategories": [
                {"id": "urban", "name": "Modern/Urban", "rules": [_rule("genre", "modern")]},
                {
                    "id": "superhero",
                    "name": "Superhero",
                    "rules": [_rule("genre", "superhero")],
                },
            ],
        },
        {
            "id": "historical",
            "name": "Historical",
            "rules": [_rule("genre", "historical")],
        },
        {
            "id": "adventures",
            "name": "Adventures",
            "rules": [_rule("type", "adventure")],
            "subcategories": [
                {"id": "one-shots", "name": "One-Shots", "rules": [_rule("adventure_type", "one-shot")]},
                {"id": "modules", "name": "Modules", "rules": [_rule("adventure_type", "module")]},
                {"id": "campaigns", "name": "Campaigns", "rules": [_rule("adventure_type", "campaign")]},
                {"id": "anthologies", "name": "Anthologies", "rules": [_rule("adventure_type", "anthology")]},
            ],
        },
        {
            "id": "rulebooks",
            "name": "Rulebooks & Supplements",
            "rules": [_rule("type", "core-rules", "setting", "supplement")],
            "subcategories": [
                {"id": "core-rules", "name": "Core Rules", "rules": [_rule("type", "core-rules")]},
                {"id": "settings", "name": "Setting Books", "rules": [_rule("type", "setting")]},
                {"id": "supplements", "name": "Supplements", "rules": [_rule("type", "supplement")]},
            ],
        },
        {
            "id": "mystery-intrigue",
            "name": "Mystery & Intrigue",
            "rules": [_rule("theme", "mystery", "political", "social")],
        },
    ]
}


def load_taxonomy(path: Optional[Path] = None) -> Taxonomy:
    """Load the taxonomy from a JSON file, or the bundled default table."""
    if path is not None:
        return Taxonomy.from_file(path)
    return Taxonomy.model_validate(DEFAULT_TAXONOMY)
