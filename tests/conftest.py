"""Pytest configuration and shared fixtures.

This module provides fixtures for testing the rankings subsystem,
including in-memory databases, item factories and wired services.
"""

from typing import Callable, Generator, Optional

import pytest
from sqlalchemy import update

from rpgvault.rankings.config import Config, reset_config
from rpgvault.rankings.db.models import RpgItem, Review
from rpgvault.rankings.db.schemas import (
    AdventureType,
    Genre,
    ItemType,
    RpgItemCreate,
    Theme,
)
from rpgvault.rankings.db.sqlite import Database, reset_db
from rpgvault.rankings.services import Services, build_services


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch) -> Generator[None, None, None]:
    """Point global state at a throwaway location for every test."""
    reset_db()
    reset_config()

    for name in [
        "RPGVAULT_PRIOR_WEIGHT",
        "RPGVAULT_TRUSTED_REVIEW_COUNT",
        "RPGVAULT_FALLBACK_PRIOR_MEAN",
        "RPGVAULT_PRIOR_MEAN_TTL",
        "RPGVAULT_MAX_PAGE_SIZE",
        "RPGVAULT_DEFAULT_PAGE_SIZE",
        "RPGVAULT_REASSIGN_THRESHOLD",
        "RPGVAULT_REASSIGN_INTERVAL",
        "RPGVAULT_RECOMPUTE_RETRY_MAX",
        "RPGVAULT_TAXONOMY_PATH",
        "RPGVAULT_LOG_LEVEL",
    ]:
        monkeypatch.delenv(name, raising=False)

    monkeypatch.setenv("RPGVAULT_DB_PATH", str(tmp_path / "rpgvault.db"))
    # No sleeping between recompute retries
    monkeypatch.setenv("RPGVAULT_RECOMPUTE_RETRY_DELAY", "0")

    yield

    reset_db()
    reset_config()


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
def db() -> Database:
    """Create an in-memory database for testing."""
    database = Database(":memory:")
    database.create_tables()
    return database


@pytest.fixture
def config() -> Config:
    """Configuration read from the test environment."""
    return Config.from_env()


@pytest.fixture
def services(db: Database, config: Config) -> Services:
    """Wired components with the prior mean pinned at 6.5."""
    return build_services(db=db, config=config, prior_mean=6.5)


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def make_item(db: Database) -> Callable[..., RpgItem]:
    """Factory that creates catalogue items."""
    counter = {"n": 0}

    def _make(title: Optional[str] = None, **kwargs) -> RpgItem:
        counter["n"] += 1
        return db.create_item(
            RpgItemCreate(title=title or f"Adventure {counter['n']}", **kwargs)
        )

    return _make


@pytest.fixture
def add_reviews(db: Database) -> Callable[[str, list[float]], None]:
    """Insert raw reviews for an item without triggering aggregation."""

    def _add(item_id: str, ratings: list[float]) -> None:
        with db.get_session() as session:
            offset = session.query(Review).filter(Review.item_id == item_id).count()
            for i, rating in enumerate(ratings):
                session.add(
                    Review(item_id=item_id, user_id=f"user-{offset + i}", rating=rating)
                )

    return _add


@pytest.fixture
def set_aggregates(db: Database) -> Callable[..., None]:
    """Write aggregate columns directly, bypassing the aggregator."""

    def _set(
        item_id: str, review_count: int, bayesian: float, average: Optional[float] = None
    ) -> None:
        with db.get_session() as session:
            session.execute(
                update(RpgItem)
                .where(RpgItem.id == item_id)
                .values(
                    review_count=review_count,
                    bayesian_rating=bayesian,
                    average_rating=average if average is not None else bayesian,
                )
            )

    return _set


@pytest.fixture
def catalogue(make_item) -> dict[str, RpgItem]:
    """A small mixed catalogue keyed by nickname."""
    return {
        "strahd": make_item(
            "Curse of Strahd",
            genre=Genre.FANTASY,
            item_type=ItemType.ADVENTURE,
            adventure_type=AdventureType.CAMPAIGN,
            theme=Theme.HORROR,
            system="D&D 5e",
            year=2016,
        ),
        "tomb": make_item(
            "Tomb of Horrors",
            genre=Genre.FANTASY,
            item_type=ItemType.ADVENTURE,
            adventure_type=AdventureType.ONE_SHOT,
            theme=Theme.EXPLORATION,
            year=1978,
        ),
        "masks": make_item(
            "Masks of Nyarlathotep",
            genre=Genre.HORROR,
            item_type=ItemType.ADVENTURE,
            adventure_type=AdventureType.CAMPAIGN,
            theme=Theme.MYSTERY,
            system="Call of Cthulhu",
        ),
        "traveller": make_item(
            "Traveller Core Rulebook",
            genre=Genre.SCI_FI,
            item_type=ItemType.CORE_RULES,
        ),
        "blades": make_item(
            "Blades in the Dark",
            genre=Genre.FANTASY,
            item_type=ItemType.CORE_RULES,
            theme=Theme.POLITICAL,
        ),
    }
