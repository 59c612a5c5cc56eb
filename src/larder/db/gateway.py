"""Persistence gateway contract and an in-memory implementation."""

from __future__ import annotations

import copy
import logging
from typing import Dict, List, Protocol, Sequence, runtime_checkable

from larder.models.activity import ActivityLogEntry
from larder.models.inventory import InventoryItem
from larder.models.shopping import ShoppingListItem, ShoppingState
from larder.models.taxonomy import CustomSubcategory

logger = logging.getLogger(__name__)

TABLES = (
    "inventory_items",
    "shopping_list",
    "shopping_state",
    "custom_subcategories",
    "hidden_builtin_subcategories",
    "subcategory_order",
    "activity_log",
)

SubcategoryOrder = Dict[str, List[str]]


@runtime_checkable
class PersistenceGateway(Protocol):
    """
    Load/save primitives, one pair per logical table.

    Every save receives the complete collection and overwrites what was stored before.
    Loads of a table that was never written return its empty default.
    """

    async def load_inventory_items(self) -> List[InventoryItem]: ...

    async def save_inventory_items(self, items: Sequence[InventoryItem]) -> None: ...

    async def load_shopping_list(self) -> List[ShoppingListItem]: ...

    async def save_shopping_list(self, items: Sequence[ShoppingListItem]) -> None: ...

    async def load_shopping_state(self) -> ShoppingState: ...

    async def save_shopping_state(self, state: ShoppingState) -> None: ...

    async def load_custom_subcategories(self) -> List[CustomSubcategory]: ...

    async def save_custom_subcategories(self, customs: Sequence[CustomSubcategory]) -> None: ...

    async def load_hidden_builtin_subcategories(self) -> List[str]: ...

    async def save_hidden_builtin_subcategories(self, names: Sequence[str]) -> None: ...

    async def load_subcategory_order(self) -> SubcategoryOrder: ...

    async def save_subcategory_order(self, order: SubcategoryOrder) -> None: ...

    async def load_activity_log(self) -> List[ActivityLogEntry]: ...

    async def save_activity_log(self, entries: Sequence[ActivityLogEntry]) -> None: ...


class InMemoryGateway:
    """Gateway that keeps everything in process memory (tests and embedding)."""

    def __init__(self) -> None:
        self.inventory_items: List[InventoryItem] = []
        self.shopping_list: List[ShoppingListItem] = []
        self.shopping_state: ShoppingState = ShoppingState.EMPTY
        self.custom_subcategories: List[CustomSubcategory] = []
        self.hidden_builtin_subcategories: List[str] = []
        self.subcategory_order: SubcategoryOrder = {}
        self.activity_log: List[ActivityLogEntry] = []
        self.fail_tables: set[str] = set()
        self.save_counts: Dict[str, int] = {table: 0 for table in TABLES}

    def _check(self, table: str) -> None:
        if table in self.fail_tables:
            raise OSError(f"simulated write failure for {table}")
        self.save_counts[table] += 1

    async def load_inventory_items(self) -> List[InventoryItem]:
        return list(self.inventory_items)

    async def save_inventory_items(self, items: Sequence[InventoryItem]) -> None:
        self._check("inventory_items")
        self.inventory_items = list(items)

    async def load_shopping_list(self) -> List[ShoppingListItem]:
        return list(self.shopping_list)

    async def save_shopping_list(self, items: Sequence[ShoppingListItem]) -> None:
        self._check("shopping_list")
        self.shopping_list = list(items)

    async def load_shopping_state(self) -> ShoppingState:
        return self.shopping_state

    async def save_shopping_state(self, state: ShoppingState) -> None:
        self._check("shopping_state")
        self.shopping_state = state

    async def load_custom_subcategories(self) -> List[CustomSubcategory]:
        return list(self.custom_subcategories)

    async def save_custom_subcategories(self, customs: Sequence[CustomSubcategory]) -> None:
        self._check("custom_subcategories")
        self.custom_subcategories = list(customs)

    async def load_hidden_builtin_subcategories(self) -> List[str]:
        return list(self.hidden_builtin_subcategories)

    async def save_hidden_builtin_subcategories(self, names: Sequence[str]) -> None:
        self._check("hidden_builtin_subcategories")
        self.hidden_builtin_subcategories = list(names)

    async def load_subcategory_order(self) -> SubcategoryOrder:
        return copy.deepcopy(self.subcategory_order)

    async def save_subcategory_order(self, order: SubcategoryOrder) -> None:
        self._check("subcategory_order")
        self.subcategory_order = copy.deepcopy(dict(order))

    async def load_activity_log(self) -> List[ActivityLogEntry]:
        return list(self.activity_log)

    async def save_activity_log(self, entries: Sequence[ActivityLogEntry]) -> None:
        self._check("activity_log")
        self.activity_log = list(entries)


__all__ = ["InMemoryGateway", "PersistenceGateway", "SubcategoryOrder", "TABLES"]
