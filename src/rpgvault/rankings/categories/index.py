"""Category membership evaluation."""

import logging
from typing import Optional

from ..config import get_config
from ..db.models import RpgItem
from ..errors import NotFoundError
from .taxonomy import Category, Predicate, Subcategory, Taxonomy, load_taxonomy

logger = logging.getLogger(__name__)


def evaluate(predicate: Predicate, item: RpgItem) -> bool:
    """Evaluate a rule set against an item's attributes."""
    if not predicate.rules:
        return True
    results = (rule.test(item.attribute(rule.attribute)) for rule in predicate.rules)
    if predicate.match == "any":
        return any(results)
    return all(results)


class CategoryIndex:
    """Answers which items belong to a category or subcategory."""

    def __init__(self, taxonomy: Optional[Taxonomy] = None):
        """Initialize the index.

        Args:
            taxonomy: Category table (loaded from config or defaults if not provided)
        """
        self.taxonomy = taxonomy or load_taxonomy(get_config().taxonomy_path)

    def categories(self) -> list[Category]:
        """List all configured categories."""
        return list(self.taxonomy.categories)

    def resolve(
        self, category_id: str, subcategory_id: Optional[str] = None
    ) -> tuple[Category, Optional[Subcategory]]:
        """Look up a category and optional subcategory.

        Raises:
            NotFoundError: If either ID is unknown
        """
        category = self.taxonomy.get_category(category_id)
        if category is None:
            logger.info(f"Unknown category requested: {category_id}")
            raise NotFoundError(f"Category not found: {category_id}")

        subcategory = None
        if subcategory_id:
            subcategory = category.get_subcategory(subcategory_id)
            if subcategory is None:
                logger.info(f"Unknown subcategory requested: {category_id}/{subcategory_id}")
                raise NotFoundError(
                    f"Subcategory not found: {subcategory_id} in {category_id}"
                )
        return category, subcategory

    def matches(
        self, item: RpgItem, category_id: str, subcategory_id: Optional[str] = None
    ) -> bool:
        """Check whether an item belongs to a category/subcategory.

        Raises:
            NotFoundError: If the category or subcategory is unknown
        """
        category, subcategory = self.resolve(category_id, subcategory_id)
        if not evaluate(category, item):
            return False
        return subcategory is None or evaluate(subcategory, item)
