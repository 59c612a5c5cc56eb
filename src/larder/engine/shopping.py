"""Shopping list workflow modeled as a finite state machine."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Iterable, List, Optional

from larder import metrics
from larder.engine.items import ItemStore, new_id
from larder.models.inventory import InventoryItem
from larder.models.shopping import ShoppingListItem, ShoppingState

logger = logging.getLogger(__name__)

DEFAULT_LOW_STOCK_THRESHOLD = 0.25


class ShoppingEvent(str, Enum):
    GENERATE = "generate"
    ADD = "add"
    REMOVE = "remove"
    FINALIZE = "finalize"
    START = "start_shopping"
    TOGGLE = "toggle_checked"
    COMPLETE = "complete"
    CANCEL = "cancel"


_EMPTY = ShoppingState.EMPTY
_GENERATING = ShoppingState.GENERATING
_READY = ShoppingState.LIST_READY
_SHOPPING = ShoppingState.SHOPPING

# (state, event) -> next state. Anything absent is rejected.
TRANSITIONS: dict[tuple[ShoppingState, ShoppingEvent], ShoppingState] = {
    (_EMPTY, ShoppingEvent.GENERATE): _GENERATING,
    (_EMPTY, ShoppingEvent.ADD): _GENERATING,
    (_GENERATING, ShoppingEvent.ADD): _GENERATING,
    (_SHOPPING, ShoppingEvent.ADD): _SHOPPING,
    (_GENERATING, ShoppingEvent.REMOVE): _GENERATING,
    (_GENERATING, ShoppingEvent.FINALIZE): _READY,
    (_READY, ShoppingEvent.START): _SHOPPING,
    (_SHOPPING, ShoppingEvent.TOGGLE): _SHOPPING,
    (_SHOPPING, ShoppingEvent.COMPLETE): _EMPTY,
    (_GENERATING, ShoppingEvent.CANCEL): _EMPTY,
    (_READY, ShoppingEvent.CANCEL): _EMPTY,
    (_SHOPPING, ShoppingEvent.CANCEL): _EMPTY,
}


def is_low_stock(item: InventoryItem, threshold: float = DEFAULT_LOW_STOCK_THRESHOLD) -> bool:
    return item.quantity < threshold


class ShoppingListEngine:
    """
    Own the shopping list and its workflow state.

    Every operation returns ``True`` when it changed something. Events that are not allowed
    in the current state, or whose guard fails, are logged and return ``False``.
    """

    def __init__(
        self,
        items: ItemStore,
        *,
        low_stock_threshold: float = DEFAULT_LOW_STOCK_THRESHOLD,
        id_factory: Callable[[], str] = new_id,
    ) -> None:
        self._items = items
        self._threshold = low_stock_threshold
        self._id_factory = id_factory
        self._list: List[ShoppingListItem] = []
        self._state = ShoppingState.EMPTY
        items.attach(self)

    @property
    def state(self) -> ShoppingState:
        return self._state

    @property
    def low_stock_threshold(self) -> float:
        return self._threshold

    def items(self) -> List[ShoppingListItem]:
        return list(self._list)

    def find(self, shopping_item_id: str) -> Optional[ShoppingListItem]:
        return next((entry for entry in self._list if entry.id == shopping_item_id), None)

    def is_listed(self, inventory_item_id: str) -> bool:
        return any(entry.inventory_item_id == inventory_item_id for entry in self._list)

    # State handling ----------------------------------------------------------

    def load(self, entries: Iterable[ShoppingListItem], state: ShoppingState) -> None:
        """Restore persisted state, dropping dangling references and repairing empty lists."""

        kept: List[ShoppingListItem] = []
        seen: set[str] = set()
        for entry in entries:
            ref = entry.inventory_item_id
            if ref is not None:
                if ref not in self._items or ref in seen:
                    logger.warning("Dropping shopping entry %s with stale reference %s", entry.name, ref)
                    continue
                seen.add(ref)
            kept.append(entry)
        self._list = kept
        self._state = state
        if not self._list and self._state in (_READY, _SHOPPING):
            logger.warning("Shopping state %s with empty list; resetting to empty", state.value)
            self._state = _EMPTY

    def clear(self) -> None:
        self._list = []
        self._state = _EMPTY

    def _fire(self, event: ShoppingEvent) -> Optional[ShoppingState]:
        target = TRANSITIONS.get((self._state, event))
        if target is None:
            logger.warning(
                "Shopping event %s rejected in state %s", event.value, self._state.value
            )
            metrics.SHOPPING_TRANSITIONS.labels(event=event.value, result="rejected").inc()
        return target

    def _enter(self, event: ShoppingEvent, target: ShoppingState) -> None:
        if target != self._state:
            logger.info("Shopping state %s -> %s", self._state.value, target.value)
        self._state = target
        metrics.SHOPPING_TRANSITIONS.labels(event=event.value, result="accepted").inc()

    def _reject(self, event: ShoppingEvent, reason: str, *args: object) -> bool:
        logger.warning("Shopping event %s rejected: " + reason, event.value, *args)
        metrics.SHOPPING_TRANSITIONS.labels(event=event.value, result="rejected").inc()
        return False

    def _entry_for(self, item: InventoryItem) -> ShoppingListItem:
        return ShoppingListItem(
            id=self._id_factory(),
            name=item.name,
            is_temporary=False,
            inventory_item_id=item.id,
        )

    # Events ------------------------------------------------------------------

    def generate(self) -> bool:
        """Start a new list seeded with every low-stock, non-ignored item, most urgent first."""

        target = self._fire(ShoppingEvent.GENERATE)
        if target is None:
            return False
        urgent = sorted(
            (
                item
                for item in self._items.all()
                if is_low_stock(item, self._threshold) and not item.is_ignored
            ),
            key=lambda item: item.quantity,
        )
        self._list = [self._entry_for(item) for item in urgent]
        logger.info("Generated shopping list with %d items needing attention", len(self._list))
        self._enter(ShoppingEvent.GENERATE, target)
        return True

    def add_misc(self, name: str) -> bool:
        trimmed = name.strip()
        if not trimmed:
            return self._reject(ShoppingEvent.ADD, "blank misc item name")
        target = self._fire(ShoppingEvent.ADD)
        if target is None:
            return False
        self._list.append(ShoppingListItem(id=self._id_factory(), name=trimmed, is_temporary=True))
        self._enter(ShoppingEvent.ADD, target)
        return True

    def add_inventory_item(self, item_id: str) -> bool:
        item = self._items.get(item_id)
        if item is None:
            return self._reject(ShoppingEvent.ADD, "inventory item %s not found", item_id)
        if self.is_listed(item_id):
            return self._reject(ShoppingEvent.ADD, "%s already on the list", item.name)
        target = self._fire(ShoppingEvent.ADD)
        if target is None:
            return False
        self._list.append(self._entry_for(item))
        self._enter(ShoppingEvent.ADD, target)
        return True

    def add_inventory_items(self, item_ids: Iterable[str]) -> int:
        """Bulk add (e.g. ignored items); unknown or already listed ids are skipped."""

        candidates = []
        for item_id in dict.fromkeys(item_ids):
            item = self._items.get(item_id)
            if item is not None and not self.is_listed(item_id):
                candidates.append(item)
        if not candidates:
            return 0
        target = self._fire(ShoppingEvent.ADD)
        if target is None:
            return 0
        if self._state == _EMPTY:
            self._list = []
        self._list.extend(self._entry_for(item) for item in candidates)
        self._enter(ShoppingEvent.ADD, target)
        return len(candidates)

    def remove_item(self, shopping_item_id: str) -> bool:
        target = self._fire(ShoppingEvent.REMOVE)
        if target is None:
            return False
        entry = self.find(shopping_item_id)
        if entry is None:
            return self._reject(ShoppingEvent.REMOVE, "shopping item %s not found", shopping_item_id)
        self._list.remove(entry)
        self._enter(ShoppingEvent.REMOVE, target)
        return True

    def finalize(self) -> bool:
        target = self._fire(ShoppingEvent.FINALIZE)
        if target is None:
            return False
        if not self._list:
            return self._reject(ShoppingEvent.FINALIZE, "list is empty")
        self._enter(ShoppingEvent.FINALIZE, target)
        return True

    def start_shopping(self) -> bool:
        target = self._fire(ShoppingEvent.START)
        if target is None:
            return False
        self._enter(ShoppingEvent.START, target)
        return True

    def toggle_checked(self, shopping_item_id: str) -> bool:
        target = self._fire(ShoppingEvent.TOGGLE)
        if target is None:
            return False
        for index, entry in enumerate(self._list):
            if entry.id == shopping_item_id:
                self._list[index] = entry.model_copy(update={"is_checked": not entry.is_checked})
                self._enter(ShoppingEvent.TOGGLE, target)
                return True
        return self._reject(ShoppingEvent.TOGGLE, "shopping item %s not found", shopping_item_id)

    def complete(self) -> List[InventoryItem]:
        """
        Finish the trip: every checked, non-temporary entry restocks its item.

        Returns the restocked items; an empty list also results when the event is rejected.
        """

        target = self._fire(ShoppingEvent.COMPLETE)
        if target is None:
            return []
        restocked: List[InventoryItem] = []
        for entry in self._list:
            if not entry.is_checked or entry.is_temporary or entry.inventory_item_id is None:
                continue
            change = self._items.restock(entry.inventory_item_id, clear_ignore=True)
            if change is not None:
                restocked.append(change.after)
        self._list = []
        logger.info("Shopping completed; %d items restored to 100%%", len(restocked))
        self._enter(ShoppingEvent.COMPLETE, target)
        return restocked

    def cancel(self) -> bool:
        target = self._fire(ShoppingEvent.CANCEL)
        if target is None:
            return False
        self._list = []
        self._enter(ShoppingEvent.CANCEL, target)
        return True

    # Item store observer -----------------------------------------------------

    def item_removed(self, item: InventoryItem) -> None:
        before = len(self._list)
        self._list = [entry for entry in self._list if entry.inventory_item_id != item.id]
        if len(self._list) == before:
            return
        if not self._list and self._state != _EMPTY:
            logger.info("Shopping list emptied by removal of %s; stopping shopping flow", item.name)
            self._state = _EMPTY

    def item_renamed(self, item: InventoryItem) -> None:
        self._list = [
            entry.model_copy(update={"name": item.name})
            if entry.inventory_item_id == item.id
            else entry
            for entry in self._list
        ]


__all__ = [
    "DEFAULT_LOW_STOCK_THRESHOLD",
    "ShoppingEvent",
    "ShoppingListEngine",
    "TRANSITIONS",
    "is_low_stock",
]
