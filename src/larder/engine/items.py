"""Inventory item store."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, List, Mapping, Optional, Protocol
from uuid import uuid4

from larder.errors import EmptyNameError, ItemNameConflictError
from larder.models.inventory import InventoryItem, utcnow

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def new_id() -> str:
    return str(uuid4())


def normalize_name(name: str) -> str:
    """Key used for case-insensitive, whitespace-insensitive name comparison."""

    return name.strip().lower()


class ItemObserver(Protocol):
    """Collaborator that mirrors inventory data and must follow removals and renames."""

    def item_removed(self, item: InventoryItem) -> None: ...

    def item_renamed(self, item: InventoryItem) -> None: ...


@dataclass(frozen=True)
class ItemChange:
    """Before/after pair produced by a successful item mutation."""

    before: InventoryItem
    after: InventoryItem


class ItemStore:
    """
    Own the collection of inventory items.

    Mutators raise only for validation failures (blank or duplicate names). An unknown item
    id is logged and reported by returning ``None``.
    """

    def __init__(
        self,
        *,
        clock: Clock = utcnow,
        id_factory: Callable[[], str] = new_id,
    ) -> None:
        self._items: dict[str, InventoryItem] = {}
        self._observers: List[ItemObserver] = []
        self._clock = clock
        self._id_factory = id_factory
        self.locator: Callable[[str], str] = lambda subcategory: subcategory

    def attach(self, observer: ItemObserver) -> None:
        if observer not in self._observers:
            self._observers.append(observer)

    # Queries -----------------------------------------------------------------

    def all(self) -> List[InventoryItem]:
        return list(self._items.values())

    def get(self, item_id: str) -> Optional[InventoryItem]:
        return self._items.get(item_id)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __len__(self) -> int:
        return len(self._items)

    def find_by_name(self, name: str, *, exclude_id: Optional[str] = None) -> Optional[InventoryItem]:
        target = normalize_name(name)
        for item in self._items.values():
            if item.id != exclude_id and normalize_name(item.name) == target:
                return item
        return None

    def by_subcategory(self, subcategory: str) -> List[InventoryItem]:
        """Items of one subcategory sorted by their manual order (unordered items last)."""

        members = [item for item in self._items.values() if item.subcategory == subcategory]
        return sorted(members, key=lambda item: item.order if item.order is not None else 999_999)

    # Loading -----------------------------------------------------------------

    def load(self, items: Iterable[InventoryItem]) -> None:
        self._items = {item.id: item for item in items}

    def clear(self) -> None:
        self._items = {}

    def assign_missing_order(self) -> int:
        """
        Give every item without an ``order`` a stable position inside its subcategory.

        Items that already carry an order keep it and sort first; the rest follow by name.
        Returns the number of items that received an order.
        """

        groups: dict[str, List[InventoryItem]] = {}
        for item in self._items.values():
            groups.setdefault(item.subcategory, []).append(item)

        assigned = 0
        for members in groups.values():
            members.sort(
                key=lambda item: (
                    item.order is None,
                    item.order if item.order is not None else 0,
                    item.name.lower(),
                )
            )
            for index, item in enumerate(members):
                if item.order is None:
                    self._items[item.id] = item.model_copy(update={"order": index})
                    assigned += 1
        return assigned

    # Validation --------------------------------------------------------------

    def _validated_name(self, name: str, *, exclude_id: Optional[str] = None) -> str:
        trimmed = name.strip()
        if not trimmed:
            raise EmptyNameError("Item name")
        existing = self.find_by_name(trimmed, exclude_id=exclude_id)
        if existing is not None:
            raise ItemNameConflictError(trimmed, self.locator(existing.subcategory))
        return trimmed

    def _lookup(self, item_id: str, operation: str) -> Optional[InventoryItem]:
        item = self._items.get(item_id)
        if item is None:
            logger.warning("%s ignored: item not found id=%s", operation, item_id)
        return item

    def _next_order(self, subcategory: str) -> int:
        orders = [
            item.order
            for item in self._items.values()
            if item.subcategory == subcategory and item.order is not None
        ]
        return max(orders) + 1 if orders else 0

    # Mutations ---------------------------------------------------------------

    def add(
        self,
        name: str,
        subcategory: str,
        *,
        quantity: float = 0.0,
        is_custom: bool = True,
    ) -> InventoryItem:
        trimmed = self._validated_name(name)
        item = InventoryItem(
            id=self._id_factory(),
            name=trimmed,
            quantity=quantity,
            subcategory=subcategory,
            is_custom=is_custom,
            last_updated=self._clock(),
            order=self._next_order(subcategory),
        )
        self._items[item.id] = item
        logger.info("Added item %s to %s", item.name, subcategory)
        return item

    def remove(self, item_id: str) -> Optional[InventoryItem]:
        item = self._lookup(item_id, "remove")
        if item is None:
            return None
        del self._items[item_id]
        for observer in self._observers:
            observer.item_removed(item)
        logger.info("Removed item %s", item.name)
        return item

    def _apply(self, item: InventoryItem, **changes: object) -> ItemChange:
        changes["last_updated"] = self._clock()
        updated = item.model_copy(update=changes)
        self._items[item.id] = updated
        return ItemChange(before=item, after=updated)

    def update_quantity(self, item_id: str, quantity: float) -> Optional[ItemChange]:
        item = self._lookup(item_id, "update_quantity")
        if item is None:
            return None
        value = float(quantity)
        if math.isnan(value):
            value = 0.0
        clamped = max(0.0, min(1.0, value))
        change = self._apply(item, quantity=clamped)
        logger.debug("Updated %s quantity to %d%%", item.name, change.after.percent)
        return change

    def rename(self, item_id: str, new_name: str) -> Optional[ItemChange]:
        item = self._lookup(item_id, "rename")
        if item is None:
            return None
        trimmed = self._validated_name(new_name, exclude_id=item_id)
        change = self._apply(item, name=trimmed)
        for observer in self._observers:
            observer.item_renamed(change.after)
        logger.info("Renamed item %s -> %s", item.name, trimmed)
        return change

    def restock(self, item_id: str, *, clear_ignore: bool = False) -> Optional[ItemChange]:
        """Fill the item to 100% and append a purchase timestamp."""

        item = self._lookup(item_id, "restock")
        if item is None:
            return None
        now = self._clock()
        changes: dict[str, object] = {
            "quantity": 1.0,
            "purchase_history": item.purchase_history + (now,),
        }
        if clear_ignore and item.is_ignored:
            changes["is_ignored"] = False
            logger.info("Un-ignored %s as it was restocked", item.name)
        return self._apply(item, **changes)

    def toggle_ignore(self, item_id: str) -> Optional[ItemChange]:
        item = self._lookup(item_id, "toggle_ignore")
        if item is None:
            return None
        return self._apply(item, is_ignored=not item.is_ignored)

    def update_order(self, updates: Mapping[str, int]) -> bool:
        """Apply manual ordering; returns True when at least one item moved."""

        changed = False
        for item_id, order in updates.items():
            item = self._items.get(item_id)
            if item is not None and item.order != order:
                self._items[item_id] = item.model_copy(update={"order": order})
                changed = True
        return changed

    def migrate_subcategory(self, old: str, new: str) -> int:
        moved = 0
        for item in list(self._items.values()):
            if item.subcategory == old:
                self._items[item.id] = item.model_copy(update={"subcategory": new})
                moved += 1
        return moved

    def replace(self, snapshot: InventoryItem) -> InventoryItem:
        """
        Overwrite the item with ``snapshot`` verbatim, or re-insert it when missing.

        Raises ItemNameConflictError if another item has since taken the snapshot's name.
        """

        clash = self.find_by_name(snapshot.name, exclude_id=snapshot.id)
        if clash is not None:
            raise ItemNameConflictError(snapshot.name, self.locator(clash.subcategory))

        current = self._items.get(snapshot.id)
        self._items[snapshot.id] = snapshot
        if current is None:
            logger.info("Re-inserted item %s", snapshot.name)
        elif current.name != snapshot.name:
            for observer in self._observers:
                observer.item_renamed(snapshot)
        return snapshot


__all__ = ["ItemChange", "ItemObserver", "ItemStore", "new_id", "normalize_name"]
