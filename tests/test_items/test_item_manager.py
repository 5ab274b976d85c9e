"""Tests for ItemManager."""

import pytest

from rpgvault.rankings.db.schemas import Genre, RpgItemCreate, RpgItemUpdate
from rpgvault.rankings.errors import ReassignmentFailedError
from rpgvault.rankings.services import build_services


def _rank_positions(services, category: str = "overall") -> list[int]:
    return [item.rank_position for item in services.rankings.query(category).items]


class TestAddItem:
    """Tests for adding catalogue items."""

    def test_new_item_starts_at_prior_mean(self, services):
        """Test that an unreviewed item's bayesian rating is m."""
        item = services.items.add_item(RpgItemCreate(title="Fresh"))

        stored = services.db.get_item(item.id)
        assert stored.review_count == 0
        assert stored.average_rating == 0.0
        assert stored.bayesian_rating == 6.5
        assert stored.rank_position is None

    def test_item_added_between_cycles_uses_current_prior(self, db, config):
        """Test that an item added after the prior settles is stored at that prior."""
        services = build_services(db=db, config=config)
        rated = services.items.add_item(RpgItemCreate(title="Rated"))
        services.reviews.rate(rated.id, "alice", 8.0)
        services.maintenance.run_cycle()

        fresh = services.items.add_item(RpgItemCreate(title="Fresh"))
        result = services.maintenance.run_cycle()

        assert result.recomputed == 0
        assert services.aggregator.prior.get() == pytest.approx(8.0)
        assert services.db.get_item(fresh.id).bayesian_rating == pytest.approx(8.0)


class TestUpdateItem:
    """Tests for editing items."""

    def test_update_moves_category(self, services, catalogue):
        """Test that a genre change moves the item between category rankings."""
        item = catalogue["tomb"]
        services.reviews.rate(item.id, "alice", 7.0)
        services.assigner.reassign_all()
        assert len(services.rankings.query("fantasy").items) == 1

        services.items.update_item(item.id, RpgItemUpdate(genre=Genre.HORROR))

        assert services.rankings.query("fantasy").items == []
        assert [i.id for i in services.rankings.query("horror").items] == [item.id]

    def test_update_missing(self, services):
        """Test updating a nonexistent item."""
        assert services.items.update_item("missing", RpgItemUpdate(title="X")) is None


class TestDeleteItem:
    """Tests for deleting items."""

    @pytest.fixture
    def ranked(self, services, catalogue):
        """Three rated items with fresh ranks."""
        for key, rating in [("strahd", 9.0), ("tomb", 7.0), ("masks", 8.0)]:
            services.reviews.rate(catalogue[key].id, "alice", rating)
        services.assigner.reassign_all()
        return catalogue

    def test_delete_ranked_item_keeps_positions_dense(self, services, ranked):
        """Test that ranks close up after the top item is deleted."""
        top = services.rankings.query("overall").items[0]
        assert top.id == ranked["strahd"].id

        assert services.items.delete_item(top.id) is True

        assert _rank_positions(services) == [1, 2]
        assert services.rankings.query("overall").items[0].id == ranked["masks"].id

    def test_delete_unranked_item_skips_reassignment(self, services, ranked, monkeypatch):
        """Test that deleting an unranked item leaves ranks alone."""
        calls = []
        monkeypatch.setattr(services.assigner, "reassign_all", lambda: calls.append(1))

        assert services.items.delete_item(ranked["traveller"].id) is True

        assert calls == []
        assert _rank_positions(services) == [1, 2, 3]

    def test_delete_forgets_aggregator_state(self, services, ranked):
        """Test that the deleted item's lock is dropped."""
        item_id = ranked["tomb"].id
        assert item_id in services.aggregator._locks

        services.items.delete_item(item_id)

        assert item_id not in services.aggregator._locks

    def test_failed_reassignment_requests_cycle(self, services, ranked, monkeypatch):
        """Test that a failed reassignment after delete asks maintenance for a cycle."""
        requested = []

        def fail():
            raise ReassignmentFailedError("boom")

        monkeypatch.setattr(services.assigner, "reassign_all", fail)
        monkeypatch.setattr(
            services.maintenance, "request_cycle", lambda: requested.append(1)
        )

        assert services.items.delete_item(ranked["strahd"].id) is True
        assert requested == [1]
        assert services.db.get_item(ranked["strahd"].id) is None

    def test_delete_missing(self, services):
        """Test deleting a nonexistent item."""
        assert services.items.delete_item("missing") is False
