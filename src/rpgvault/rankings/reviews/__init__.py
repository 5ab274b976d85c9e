"""Item reviews module."""

from .manager import ReviewManager
from .schemas import ReviewCreate, ReviewResponse, ReviewUpdate

__all__ = [
    "ReviewManager",
    "ReviewCreate",
    "ReviewUpdate",
    "ReviewResponse",
]
