"""SQLite database operations.

Handles database connection, session management, and catalogue CRUD.
Rating aggregates and rank positions are not writable from here.
"""

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import create_engine, event, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import get_config
from .models import Base, RpgItem
from .schemas import RpgItemCreate, RpgItemUpdate


class Database:
    """Database connection and operations manager."""

    def __init__(self, db_path: Optional[str] = None):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file. If None, uses
                     RPGVAULT_DB_PATH env var or default location.
        """
        if db_path is None:
            db_path = os.environ.get(
                "RPGVAULT_DB_PATH",
                str(Path.home() / ".rpgvault" / "rpgvault.db"),
            )

        self.db_path = Path(db_path).expanduser()
        self._is_memory = str(db_path) == ":memory:"

        if not self._is_memory:
            self._ensure_directory()

        # For in-memory databases, use StaticPool to reuse the same connection
        # This ensures all sessions share the same in-memory database
        if self._is_memory:
            self.engine = create_engine(
                "sqlite:///:memory:",
                echo=False,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.engine = create_engine(
                f"sqlite:///{self.db_path}",
                echo=False,
                connect_args={"check_same_thread": False, "timeout": 30},
            )
            event.listen(self.engine, "connect", _enable_wal)
        self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)

    def _ensure_directory(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def create_tables(self) -> None:
        """Create all database tables."""
        Base.metadata.create_all(self.engine)

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get a database session context manager."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ========================================================================
    # Item Operations
    # ========================================================================

    def create_item(
        self,
        item: RpgItemCreate,
        prior_mean: Optional[float] = None,
        session: Optional[Session] = None,
    ) -> RpgItem:
        """Create a new catalogue item with no reviews.

        Args:
            item: Item creation data
            prior_mean: Current prior mean m, stored as the starting bayesian
                rating. Defaults to the configured fallback prior mean.
            session: Optional session to join
        """
        if prior_mean is None:
            prior_mean = get_config().fallback_prior_mean

        def _create(s: Session) -> RpgItem:
            db_item = RpgItem(
                title=item.title,
                description=item.description,
                image_url=item.image_url,
                genre=item.genre.value,
                item_type=item.item_type.value,
                system=item.system,
                publisher=item.publisher,
                year=item.year,
                theme=item.theme.value if item.theme else None,
                adventure_type=item.adventure_type.value if item.adventure_type else None,
                review_count=0,
                average_rating=0.0,
                bayesian_rating=prior_mean,
                rank_position=None,
            )
            s.add(db_item)
            s.flush()
            return db_item

        if session:
            return _create(session)
        else:
            with self.get_session() as s:
                db_item = _create(s)
                s.expunge(db_item)
                return db_item

    def get_item(self, item_id: str, session: Optional[Session] = None) -> Optional[RpgItem]:
        """Get an item by ID."""

        def _get(s: Session) -> Optional[RpgItem]:
            return s.get(RpgItem, item_id)

        if session:
            return _get(session)
        else:
            with self.get_session() as s:
                db_item = _get(s)
                if db_item:
                    s.expunge(db_item)
                return db_item

    def list_items(self, session: Optional[Session] = None) -> list[RpgItem]:
        """Get all items ordered by title."""

        def _get(s: Session) -> list[RpgItem]:
            stmt = select(RpgItem).order_by(RpgItem.title, RpgItem.id)
            return list(s.execute(stmt).scalars().all())

        if session:
            return _get(session)
        else:
            with self.get_session() as s:
                items = _get(s)
                for db_item in items:
                    s.expunge(db_item)
                return items

    def list_item_ids(self, session: Optional[Session] = None) -> list[str]:
        """Get the IDs of all items."""

        def _get(s: Session) -> list[str]:
            return list(s.execute(select(RpgItem.id).order_by(RpgItem.id)).scalars().all())

        if session:
            return _get(session)
        else:
            with self.get_session() as s:
                return _get(s)

    def update_item(
        self, item_id: str, update: RpgItemUpdate, session: Optional[Session] = None
    ) -> Optional[RpgItem]:
        """Update an item's descriptive attributes."""

        def _update(s: Session) -> Optional[RpgItem]:
            db_item = s.get(RpgItem, item_id)
            if not db_item:
                return None

            update_data = update.model_dump(exclude_unset=True)
            for field, value in update_data.items():
                if field in ("genre", "item_type", "theme", "adventure_type"):
                    setattr(db_item, field, value.value if value else None)
                else:
                    setattr(db_item, field, value)

            s.flush()
            return db_item

        if session:
            return _update(session)
        else:
            with self.get_session() as s:
                db_item = _update(s)
                if db_item:
                    s.expunge(db_item)
                return db_item

    def delete_item(self, item_id: str, session: Optional[Session] = None) -> bool:
        """Delete an item and its reviews."""

        def _delete(s: Session) -> bool:
            db_item = s.get(RpgItem, item_id)
            if not db_item:
                return False

            s.delete(db_item)
            return True

        if session:
            return _delete(session)
        else:
            with self.get_session() as s:
                return _delete(s)


def _enable_wal(dbapi_connection, connection_record) -> None:
    """Switch a new SQLite connection to write-ahead logging."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


# Global database instance
_db: Optional[Database] = None


def get_db(db_path: Optional[str] = None) -> Database:
    """Get or create the global database instance."""
    global _db
    if _db is None:
        _db = Database(db_path)
        _db.create_tables()
    return _db


def reset_db() -> None:
    """Reset the global database instance. Used for testing."""
    global _db
    _db = None
