"""Export/import payloads exchanged at the engine boundary."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from larder.models.inventory import InventoryItem
from larder.models.shopping import ShoppingListItem
from larder.models.taxonomy import CustomSubcategory


class ExportedInventoryItem(InventoryItem):
    """Inventory item enriched with its resolved category name for readability."""

    category: Optional[str] = Field(default=None)


class ExportPayload(BaseModel):
    """Portable snapshot of user data; the hidden built-in set is intentionally absent."""

    inventory_items: list[ExportedInventoryItem] = Field(default_factory=list)
    custom_subcategories: list[CustomSubcategory] = Field(default_factory=list)
    shopping_list: list[ShoppingListItem] = Field(default_factory=list)
    subcategory_order: dict[str, list[str]] = Field(default_factory=dict)

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class ImportPayload(BaseModel):
    """Import document; ``None`` means the section was absent from the source."""

    inventory_items: Optional[list[InventoryItem]] = Field(default=None)
    custom_subcategories: Optional[list[CustomSubcategory]] = Field(default=None)
    hidden_builtin_subcategories: Optional[list[str]] = Field(default=None)
    shopping_list: Optional[list[ShoppingListItem]] = Field(default=None)
    subcategory_order: Optional[dict[str, list[str]]] = Field(default=None)

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


__all__ = ["ExportPayload", "ExportedInventoryItem", "ImportPayload"]
