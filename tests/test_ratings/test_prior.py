"""Tests for PriorMeanCache."""

import pytest

from rpgvault.rankings.ratings.prior import PriorMeanCache


class TestPriorMeanCache:
    """Tests for the global prior mean."""

    def test_fallback_when_nothing_rated(self, db, make_item):
        """Test the fallback prior with no rated items."""
        make_item()
        cache = PriorMeanCache(db, fallback=5.5)
        assert cache.get() == 5.5

    def test_mean_of_rated_items_only(self, db, make_item, set_aggregates):
        """Test that unrated items do not drag the prior down."""
        a = make_item()
        b = make_item()
        make_item()
        set_aggregates(a.id, 3, 8.0, average=8.0)
        set_aggregates(b.id, 1, 6.0, average=6.0)

        assert PriorMeanCache(db).get() == pytest.approx(7.0)

    def test_fixed_value_wins(self, db, make_item, set_aggregates):
        """Test that a fixed prior skips the store."""
        item = make_item()
        set_aggregates(item.id, 1, 2.0)
        cache = PriorMeanCache(db, fixed=6.5)

        assert cache.get() == 6.5
        assert cache.refresh() == 6.5

    def test_cached_until_refresh(self, db, make_item, set_aggregates):
        """Test that get() serves the cached value within the TTL."""
        item = make_item()
        set_aggregates(item.id, 1, 4.0)
        cache = PriorMeanCache(db, ttl=3600)
        assert cache.get() == pytest.approx(4.0)

        set_aggregates(item.id, 1, 9.0)
        assert cache.get() == pytest.approx(4.0)
        assert cache.refresh() == pytest.approx(9.0)
        assert cache.get() == pytest.approx(9.0)

    def test_zero_ttl_always_reloads(self, db, make_item, set_aggregates):
        """Test that a zero TTL disables caching."""
        item = make_item()
        set_aggregates(item.id, 1, 4.0)
        cache = PriorMeanCache(db, ttl=0)
        cache.get()

        set_aggregates(item.id, 1, 7.0)
        assert cache.get() == pytest.approx(7.0)

    def test_invalidate(self, db, make_item, set_aggregates):
        """Test that invalidate forces a reload."""
        item = make_item()
        set_aggregates(item.id, 1, 4.0)
        cache = PriorMeanCache(db, ttl=3600)
        cache.get()

        set_aggregates(item.id, 1, 5.0)
        cache.invalidate()
        assert cache.get() == pytest.approx(5.0)
