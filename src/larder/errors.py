"""Typed errors raised by the engine for validation failures."""

from __future__ import annotations

from typing import Optional


class LarderError(Exception):
    """Base class for engine errors."""


class ValidationError(LarderError):
    """Input rejected before any state was modified."""


class EmptyNameError(ValidationError):
    """A name was blank after trimming."""

    def __init__(self, what: str = "Name") -> None:
        super().__init__(f"{what} cannot be empty")
        self.what = what


class NameConflictError(ValidationError):
    """A name collides case-insensitively with an existing entry."""

    def __init__(self, name: str, location: Optional[str]) -> None:
        where = location or "the inventory"
        super().__init__(f'"{name}" already exists in {where}.')
        self.name = name
        self.location = location


class ItemNameConflictError(NameConflictError):
    """Inventory item names must be unique across all subcategories."""


class SubcategoryNameConflictError(NameConflictError):
    """Visible subcategory names must be unique across built-ins and customs."""


__all__ = [
    "LarderError",
    "ValidationError",
    "EmptyNameError",
    "NameConflictError",
    "ItemNameConflictError",
    "SubcategoryNameConflictError",
]
