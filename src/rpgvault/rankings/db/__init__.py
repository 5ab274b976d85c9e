"""Database module for local SQLite storage."""

from .models import RpgItem, Review
from .schemas import (
    RpgItemCreate,
    RpgItemUpdate,
    RpgItemResponse,
    RankedPageResponse,
)
from .sqlite import Database, get_db

__all__ = [
    "RpgItem",
    "Review",
    "RpgItemCreate",
    "RpgItemUpdate",
    "RpgItemResponse",
    "RankedPageResponse",
    "Database",
    "get_db",
]
