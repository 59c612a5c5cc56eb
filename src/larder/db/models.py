"""SQLAlchemy models representing Larder persistence tables."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Boolean, Float, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base class for Larder ORM models."""


class InventoryItemORM(Base):
    """Inventory item; timestamps are ISO-8601 strings, history a JSON array of them."""

    __tablename__ = "inventory_items"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    subcategory: Mapped[str] = mapped_column(String(255), nullable=False)
    is_custom: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_ignored: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    purchase_history: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    last_updated: Mapped[str] = mapped_column(String(40), nullable=False)
    sort_order: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


class ShoppingListItemORM(Base):
    """Entry on the current shopping list."""

    __tablename__ = "shopping_list_items"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_checked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_temporary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    inventory_item_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)


class EngineStateORM(Base):
    """Key/value storage for scalar engine state (shopping workflow state)."""

    __tablename__ = "engine_state"

    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)


class CustomSubcategoryORM(Base):
    """User-defined subcategory."""

    __tablename__ = "custom_subcategories"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    icon: Mapped[str] = mapped_column(String(128), nullable=False)
    color: Mapped[str] = mapped_column(String(32), nullable=False)
    category: Mapped[str] = mapped_column(String(64), nullable=False)


class HiddenBuiltinORM(Base):
    """Name of a built-in subcategory the user has hidden."""

    __tablename__ = "hidden_builtin_subcategories"

    name: Mapped[str] = mapped_column(String(255), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class SubcategoryOrderORM(Base):
    """One slot of the manual subcategory order within a category."""

    __tablename__ = "subcategory_order"

    category: Mapped[str] = mapped_column(String(64), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)


class ActivityLogORM(Base):
    """Activity ledger entry; values and the item snapshot are stored as JSON text."""

    __tablename__ = "activity_log"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    action: Mapped[str] = mapped_column(String(32), nullable=False)
    item_id: Mapped[str] = mapped_column(String(64), nullable=False)
    item_name: Mapped[str] = mapped_column(String(255), nullable=False)
    timestamp: Mapped[str] = mapped_column(String(40), nullable=False)
    previous_value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    new_value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    item_snapshot: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_undone: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


__all__ = [
    "Base",
    "InventoryItemORM",
    "ShoppingListItemORM",
    "EngineStateORM",
    "CustomSubcategoryORM",
    "HiddenBuiltinORM",
    "SubcategoryOrderORM",
    "ActivityLogORM",
]
