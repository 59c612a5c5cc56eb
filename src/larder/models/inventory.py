"""Inventory item models."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""

    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


class InventoryCategory(str, Enum):
    """Top-level storage areas that group subcategories."""

    FRIDGE = "Fridge"
    GROCERY = "Grocery"
    HYGIENE = "Hygiene"
    PERSONAL_CARE = "Personal Care"


class InventoryItem(BaseModel):
    """
    Household item tracked by stock level.

    Instances are frozen: every mutation produces a new object, so any captured instance
    doubles as an immutable snapshot of the item at that moment.
    """

    id: str
    name: str = Field(min_length=1)
    quantity: float = Field(default=0.0, ge=0.0, le=1.0)
    subcategory: str
    is_custom: bool = Field(default=False)
    is_ignored: bool = Field(default=False)
    purchase_history: tuple[UtcDatetime, ...] = Field(default_factory=tuple)
    last_updated: UtcDatetime = Field(default_factory=utcnow)
    order: Optional[int] = Field(default=None)

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    @field_validator("quantity", mode="before")
    @classmethod
    def _clamp_quantity(cls, value: object) -> object:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return max(0.0, min(1.0, float(value)))
        return value

    @property
    def percent(self) -> int:
        return round(self.quantity * 100)


__all__ = ["InventoryCategory", "InventoryItem", "UtcDatetime", "utcnow"]
