"""Catalogue items module."""

from .manager import ItemManager

__all__ = ["ItemManager"]
