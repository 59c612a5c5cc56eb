"""Subcategory taxonomy models."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from larder.models.inventory import InventoryCategory


class BuiltinSubcategory(BaseModel):
    """Statically shipped subcategory; never created or deleted at runtime."""

    name: str
    icon: str
    color: str
    category: InventoryCategory
    sample_items: tuple[str, ...] = Field(default_factory=tuple)

    model_config = ConfigDict(frozen=True)


class CustomSubcategory(BaseModel):
    """User-owned subcategory."""

    id: str
    name: str = Field(min_length=1)
    icon: str
    color: str
    category: InventoryCategory

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class ResolvedSubcategory(BaseModel):
    """Display configuration for a subcategory reference, tagged by where it came from."""

    kind: Literal["builtin", "custom"]
    name: str
    icon: str
    color: str
    category: InventoryCategory
    hidden: bool = Field(default=False)
    custom_id: Optional[str] = Field(default=None)

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    @property
    def location(self) -> str:
        return f"{self.category.value} > {self.name}"


__all__ = ["BuiltinSubcategory", "CustomSubcategory", "ResolvedSubcategory"]
