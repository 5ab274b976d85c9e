"""Category taxonomy and membership module."""

from .index import CategoryIndex, evaluate
from .taxonomy import (
    DEFAULT_TAXONOMY,
    OVERALL,
    AttributeRule,
    Category,
    Predicate,
    Subcategory,
    Taxonomy,
    load_taxonomy,
)

__all__ = [
    "CategoryIndex",
    "evaluate",
    "DEFAULT_TAXONOMY",
    "OVERALL",
    "AttributeRule",
    "Category",
    "Predicate",
    "Subcategory",
    "Taxonomy",
    "load_taxonomy",
]
