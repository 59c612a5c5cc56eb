"""Pydantic models defining the engine's data contracts."""

from larder.models.activity import ActivityAction, ActivityDetails, ActivityLogEntry
from larder.models.exchange import ExportedInventoryItem, ExportPayload, ImportPayload
from larder.models.inventory import InventoryCategory, InventoryItem, utcnow
from larder.models.shopping import ShoppingListItem, ShoppingState
from larder.models.taxonomy import BuiltinSubcategory, CustomSubcategory, ResolvedSubcategory

__all__ = [
    "ActivityAction",
    "ActivityDetails",
    "ActivityLogEntry",
    "ExportedInventoryItem",
    "ExportPayload",
    "ImportPayload",
    "InventoryCategory",
    "InventoryItem",
    "utcnow",
    "ShoppingListItem",
    "ShoppingState",
    "BuiltinSubcategory",
    "CustomSubcategory",
    "ResolvedSubcategory",
]
