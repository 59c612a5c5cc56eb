"""Shopping list models."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class ShoppingState(str, Enum):
    """Phase of the shopping workflow."""

    EMPTY = "empty"
    GENERATING = "generating"
    LIST_READY = "listReady"
    SHOPPING = "shopping"


class ShoppingListItem(BaseModel):
    """Single entry on the shopping list."""

    id: str
    name: str
    is_checked: bool = Field(default=False)
    is_temporary: bool = Field(default=False)
    inventory_item_id: Optional[str] = Field(default=None)

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    @model_validator(mode="after")
    def _check_backing_item(self) -> "ShoppingListItem":
        if self.is_temporary and self.inventory_item_id is not None:
            raise ValueError("temporary shopping items cannot reference an inventory item")
        if not self.is_temporary and self.inventory_item_id is None:
            raise ValueError("inventory_item_id is required for non-temporary shopping items")
        return self


__all__ = ["ShoppingListItem", "ShoppingState"]
