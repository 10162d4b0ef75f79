"""Catalog package exports."""

from .client import CatalogClient
from .selector import ContextSelector, SelectionStep

__all__ = ["CatalogClient", "ContextSelector", "SelectionStep"]
