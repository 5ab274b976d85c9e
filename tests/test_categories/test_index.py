"""Tests for CategoryIndex."""

import pytest

from rpgvault.rankings.categories.index import CategoryIndex, evaluate
from rpgvault.rankings.categories.taxonomy import Predicate, Taxonomy
from rpgvault.rankings.db.schemas import AdventureType, Genre, ItemType, Theme
from rpgvault.rankings.errors import NotFoundError


@pytest.fixture
def index() -> CategoryIndex:
    """Index over the bundled taxonomy."""
    return CategoryIndex()


class TestEvaluate:
    """Tests for predicate evaluation."""

    def test_empty_predicate_matches(self, make_item):
        """Test that no rules means match everything."""
        assert evaluate(Predicate(), make_item())

    def test_all_requires_every_rule(self, make_item):
        """Test conjunction."""
        predicate = Predicate.model_validate(
            {
                "rules": [
                    {"attribute": "genre", "values": ["fantasy"]},
                    {"attribute": "type", "values": ["adventure"]},
                ]
            }
        )
        assert evaluate(predicate, make_item(genre=Genre.FANTASY))
        assert not evaluate(predicate, make_item(item_type=ItemType.SETTING))

    def test_any_requires_one_rule(self, make_item):
        """Test disjunction."""
        predicate = Predicate.model_validate(
            {
                "match": "any",
                "rules": [
                    {"attribute": "genre", "values": ["horror"]},
                    {"attribute": "theme", "values": ["horror"]},
                ],
            }
        )
        assert evaluate(predicate, make_item(genre=Genre.HORROR))
        assert evaluate(predicate, make_item(theme=Theme.HORROR))
        assert not evaluate(predicate, make_item(theme=Theme.ACTION))


class TestCategoryIndex:
    """Tests for membership lookups."""

    def test_overall_matches_everything(self, index, catalogue):
        """Test the identity category."""
        assert all(index.matches(item, "overall") for item in catalogue.values())

    def test_genre_category(self, index, catalogue):
        """Test a single-attribute category."""
        assert index.matches(catalogue["strahd"], "fantasy")
        assert not index.matches(catalogue["traveller"], "fantasy")

    def test_any_category(self, index, catalogue):
        """Test horror by genre or by theme."""
        assert index.matches(catalogue["masks"], "horror")
        assert index.matches(catalogue["strahd"], "horror")
        assert not index.matches(catalogue["tomb"], "horror")

    def test_subcategory_bound_by_parent(self, index, catalogue):
        """Test that a subcategory also applies its parent's rules."""
        # Masks is a campaign but not fantasy
        assert index.matches(catalogue["strahd"], "fantasy", "campaigns")
        assert not index.matches(catalogue["masks"], "fantasy", "campaigns")
        assert index.matches(catalogue["masks"], "adventures", "campaigns")

    def test_subcategory_by_type(self, index, catalogue):
        """Test a type-based subcategory."""
        assert index.matches(catalogue["traveller"], "rulebooks", "core-rules")
        assert not index.matches(catalogue["tomb"], "rulebooks")

    def test_missing_attribute_does_not_match(self, index, make_item):
        """Test that an item without adventure_type is outside format subcategories."""
        item = make_item(adventure_type=None)
        assert not index.matches(item, "adventures", "one-shots")
        assert index.matches(make_item(adventure_type=AdventureType.ONE_SHOT), "adventures", "one-shots")

    def test_unknown_category(self, index, catalogue):
        """Test that unknown categories raise NotFoundError."""
        with pytest.raises(NotFoundError):
            index.matches(catalogue["tomb"], "westerns")

    def test_unknown_subcategory(self, index, catalogue):
        """Test that unknown subcategories raise NotFoundError."""
        with pytest.raises(NotFoundError):
            index.resolve("fantasy", "space-opera")

    def test_resolve(self, index):
        """Test resolving a category and subcategory."""
        category, subcategory = index.resolve("horror", "investigation")
        assert category.id == "horror"
        assert subcategory.id == "investigation"

        category, subcategory = index.resolve("overall")
        assert subcategory is None

    def test_custom_taxonomy(self, catalogue):
        """Test that categories are data, not code."""
        taxonomy = Taxonomy.model_validate(
            {
                "categories": [
                    {
                        "id": "cthulhu",
                        "name": "Cthulhu Mythos",
                        "rules": [{"attribute": "system", "values": ["call of cthulhu"]}],
                    }
                ]
            }
        )
        index = CategoryIndex(taxonomy)

        assert [c.id for c in index.categories()] == ["cthulhu"]
        assert index.matches(catalogue["masks"], "cthulhu")
        assert not index.matches(catalogue["strahd"], "cthulhu")
