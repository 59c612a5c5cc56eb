"""Activity ledger models."""

from __future__ import annotations

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from larder.models.inventory import InventoryItem, UtcDatetime, utcnow

ActivityValue = Union[bool, float, str, None]


class ActivityAction(str, Enum):
    """Mutations recorded in the activity ledger."""

    ADD_ITEM = "addItem"
    REMOVE_ITEM = "removeItem"
    UPDATE_QUANTITY = "updateQuantity"
    UPDATE_NAME = "updateName"
    RESTOCK = "restock"
    TOGGLE_IGNORE = "toggleIgnore"


class ActivityDetails(BaseModel):
    """Before/after values plus the item as it was immediately before the mutation."""

    previous_value: ActivityValue = Field(default=None)
    new_value: ActivityValue = Field(default=None)
    item_snapshot: Optional[InventoryItem] = Field(default=None)

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class ActivityLogEntry(BaseModel):
    """Single ledger entry; only ``is_undone`` ever changes after creation."""

    id: str
    action: ActivityAction
    item_id: str
    item_name: str
    timestamp: UtcDatetime = Field(default_factory=utcnow)
    details: ActivityDetails = Field(default_factory=ActivityDetails)
    is_undone: bool = Field(default=False)

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


__all__ = ["ActivityAction", "ActivityDetails", "ActivityLogEntry", "ActivityValue"]
