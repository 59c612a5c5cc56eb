"""Single entry point composing the inventory engine and its persistence."""

from __future__ import annotations

import asyncio
import functools
import logging
import random
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from larder import metrics
from larder.catalog import BUILTIN_SUBCATEGORIES, CATEGORY_STYLE
from larder.config import Settings, get_settings
from larder.db.gateway import TABLES, PersistenceGateway
from larder.engine.activity import ActivityLedger
from larder.engine.insights import InventoryInsights
from larder.engine.items import Clock, ItemStore, new_id
from larder.engine.listeners import Listener, ListenerRegistry, Unsubscribe
from larder.engine.shopping import ShoppingListEngine
from larder.engine.taxonomy import TaxonomyResolver
from larder.errors import ValidationError
from larder.models.activity import ActivityAction, ActivityLogEntry
from larder.models.exchange import ExportedInventoryItem, ExportPayload, ImportPayload
from larder.models.inventory import InventoryCategory, InventoryItem, utcnow
from larder.models.shopping import ShoppingListItem, ShoppingState
from larder.models.taxonomy import CustomSubcategory, ResolvedSubcategory

logger = logging.getLogger(__name__)

_LOAD_DEFAULTS: Dict[str, Callable[[], Any]] = {
    "inventory_items": list,
    "shopping_list": list,
    "shopping_state": lambda: ShoppingState.EMPTY,
    "custom_subcategories": list,
    "hidden_builtin_subcategories": list,
    "subcategory_order": dict,
    "activity_log": list,
}

_SHOPPING_TABLES = ("shopping_list", "shopping_state")


def _mutation(operation: str) -> Callable[[Callable[..., Awaitable[Any]]], Callable[..., Awaitable[Any]]]:
    """Run the wrapped coroutine under the engine lock and count its outcome."""

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @functools.wraps(func)
        async def wrapper(self: "LarderEngine", *args: Any, **kwargs: Any) -> Any:
            async with self._lock:
                try:
                    result = await func(self, *args, **kwargs)
                except ValidationError as exc:
                    logger.info("%s rejected: %s", operation, exc)
                    metrics.ENGINE_OPERATIONS.labels(operation=operation, result="invalid").inc()
                    raise
            outcome = "noop" if result is None or result is False else "ok"
            metrics.ENGINE_OPERATIONS.labels(operation=operation, result=outcome).inc()
            return result

        return wrapper

    return decorator


class LarderEngine:
    """
    Household inventory engine.

    Every mutating coroutine runs under one ``asyncio.Lock``: it validates, updates the
    in-memory state, writes the affected tables through the gateway, records activity where
    applicable, and finally notifies subscribers. A failed write never rolls back memory; the
    table is remembered and rewritten on the next save or by :meth:`resync`.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        settings: Optional[Settings] = None,
        *,
        clock: Clock = utcnow,
        id_factory: Callable[[], str] = new_id,
    ) -> None:
        self.settings = settings or get_settings()
        self._gateway = gateway
        self._clock = clock
        self._id_factory = id_factory
        self._items = ItemStore(clock=clock, id_factory=id_factory)
        self._taxonomy = TaxonomyResolver(self._items, id_factory=id_factory)
        self._items.locator = self._taxonomy.location_of
        self._shopping = ShoppingListEngine(
            self._items,
            low_stock_threshold=self.settings.low_stock_threshold,
            id_factory=id_factory,
        )
        self._ledger = ActivityLedger(
            self._items,
            retention_days=self.settings.activity_retention_days,
            max_entries=self.settings.activity_max_entries,
            clock=clock,
            id_factory=id_factory,
        )
        self._insights = InventoryInsights(
            self._items,
            self._taxonomy,
            low_stock_threshold=self.settings.low_stock_threshold,
            clock=clock,
        )
        self._listeners = ListenerRegistry()
        self._lock = asyncio.Lock()
        self._dirty: set[str] = set()
        self._loaded = False
        self._writers: Dict[str, Callable[[], Awaitable[None]]] = {
            "inventory_items": lambda: gateway.save_inventory_items(self._items.all()),
            "shopping_list": lambda: gateway.save_shopping_list(self._shopping.items()),
            "shopping_state": lambda: gateway.save_shopping_state(self._shopping.state),
            "custom_subcategories": lambda: gateway.save_custom_subcategories(
                self._taxonomy.custom_subcategories()
            ),
            "hidden_builtin_subcategories": lambda: gateway.save_hidden_builtin_subcategories(
                self._taxonomy.hidden_builtins()
            ),
            "subcategory_order": lambda: gateway.save_subcategory_order(
                self._taxonomy.subcategory_order()
            ),
            "activity_log": lambda: gateway.save_activity_log(self._ledger.entries()),
        }

    # Lifecycle ---------------------------------------------------------------

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def pending_tables(self) -> List[str]:
        """Tables whose last write failed and still await a retry."""

        return sorted(self._dirty)

    async def load(self) -> None:
        """Pull every table from the gateway; a table that fails to load starts empty."""

        async with self._lock:
            loaders = {
                "inventory_items": self._gateway.load_inventory_items,
                "shopping_list": self._gateway.load_shopping_list,
                "shopping_state": self._gateway.load_shopping_state,
                "custom_subcategories": self._gateway.load_custom_subcategories,
                "hidden_builtin_subcategories": self._gateway.load_hidden_builtin_subcategories,
                "subcategory_order": self._gateway.load_subcategory_order,
                "activity_log": self._gateway.load_activity_log,
            }
            results = await asyncio.gather(
                *(loader() for loader in loaders.values()), return_exceptions=True
            )
            data: Dict[str, Any] = {}
            for table, result in zip(loaders, results):
                if isinstance(result, Exception):
                    logger.error("Failed to load %s; starting empty", table, exc_info=result)
                    data[table] = _LOAD_DEFAULTS[table]()
                else:
                    data[table] = result

            self._items.load(data["inventory_items"])
            assigned = self._items.assign_missing_order()
            self._taxonomy.load(
                data["custom_subcategories"],
                data["hidden_builtin_subcategories"],
                data["subcategory_order"],
            )
            stored_list: List[ShoppingListItem] = data["shopping_list"]
            stored_state: ShoppingState = data["shopping_state"]
            self._shopping.load(stored_list, stored_state)
            self._ledger.load(data["activity_log"])
            self._loaded = True

            repairs: List[str] = []
            if assigned:
                logger.info("Assigned order to %d items on load", assigned)
                repairs.append("inventory_items")
            if len(self._shopping.items()) != len(stored_list) or self._shopping.state != stored_state:
                repairs.extend(_SHOPPING_TABLES)
            if repairs:
                await self._persist(*repairs)
            logger.info(
                "Loaded %d items, %d custom subcategories, shopping state %s",
                len(self._items),
                len(self._taxonomy.custom_subcategories()),
                self._shopping.state.value,
            )
        self._listeners.notify()

    async def resync(self) -> bool:
        """Retry writes that failed earlier; returns True when nothing is pending anymore."""

        async with self._lock:
            if not self._dirty:
                return True
            logger.info("Resyncing tables: %s", ", ".join(sorted(self._dirty)))
            return await self._persist()

    async def _persist(self, *tables: str) -> bool:
        pending = list(dict.fromkeys([*tables, *sorted(self._dirty)]))
        if not pending:
            return True
        results = await asyncio.gather(
            *(self._writers[table]() for table in pending), return_exceptions=True
        )
        clean = True
        for table, result in zip(pending, results):
            if isinstance(result, Exception):
                logger.error("Failed to persist %s; will retry", table, exc_info=result)
                metrics.PERSISTENCE_FAILURES.labels(table=table).inc()
                self._dirty.add(table)
                clean = False
            else:
                self._dirty.discard(table)
        return clean

    async def _persist_all(self) -> bool:
        return await self._persist(*TABLES)

    # Listeners ---------------------------------------------------------------

    def subscribe(self, callback: Listener) -> Unsubscribe:
        return self._listeners.subscribe(callback)

    def _notify(self) -> None:
        self._listeners.notify()

    # Getters -----------------------------------------------------------------

    def items(self) -> List[InventoryItem]:
        return self._items.all()

    def get_item(self, item_id: str) -> Optional[InventoryItem]:
        return self._items.get(item_id)

    def visible_items(self) -> List[InventoryItem]:
        return [item for item in self._items.all() if self._taxonomy.is_visible(item.subcategory)]

    def items_for_category(self, category: InventoryCategory) -> List[InventoryItem]:
        return [
            item
            for item in self.visible_items()
            if self._taxonomy.category_of(item.subcategory) == category
        ]

    def items_for_subcategory(self, subcategory: str) -> List[InventoryItem]:
        return self._items.by_subcategory(subcategory)

    def custom_subcategories(self) -> List[CustomSubcategory]:
        return self._taxonomy.custom_subcategories()

    def hidden_builtin_subcategories(self) -> List[str]:
        return self._taxonomy.hidden_builtins()

    def subcategories_for_category(self, category: InventoryCategory) -> List[str]:
        return self._taxonomy.ordered_subcategories(category)

    def subcategory_config(self, ref: str) -> Optional[ResolvedSubcategory]:
        return self._taxonomy.resolve(ref)

    def subcategory_order(self) -> Dict[str, List[str]]:
        return self._taxonomy.subcategory_order()

    def categories(self) -> List[InventoryCategory]:
        return self._taxonomy.categories()

    def shopping_list(self) -> List[ShoppingListItem]:
        return self._shopping.items()

    @property
    def shopping_state(self) -> ShoppingState:
        return self._shopping.state

    def activity_log(self) -> List[ActivityLogEntry]:
        return self._ledger.entries()

    @property
    def insights(self) -> InventoryInsights:
        return self._insights

    # Inventory items ---------------------------------------------------------

    @_mutation("add_item")
    async def add_item(
        self, name: str, subcategory: str, *, quantity: float = 0.0, is_custom: bool = True
    ) -> InventoryItem:
        if self._taxonomy.resolve(subcategory) is None:
            logger.warning("Adding %s to unknown subcategory %s", name.strip(), subcategory)
        item = self._items.add(name, subcategory, quantity=quantity, is_custom=is_custom)
        await self._persist("inventory_items")
        self._ledger.record(
            ActivityAction.ADD_ITEM, item.id, item.name, new_value=subcategory, snapshot=item
        )
        await self._persist("activity_log")
        self._notify()
        return item

    @_mutation("remove_item")
    async def remove_item(self, item_id: str) -> bool:
        removed = self._items.remove(item_id)
        if removed is None:
            return False
        await self._persist("inventory_items", *_SHOPPING_TABLES)
        self._ledger.record(ActivityAction.REMOVE_ITEM, removed.id, removed.name, snapshot=removed)
        await self._persist("activity_log")
        self._notify()
        return True

    @_mutation("update_quantity")
    async def update_quantity(self, item_id: str, quantity: float) -> Optional[InventoryItem]:
        change = self._items.update_quantity(item_id, quantity)
        if change is None:
            return None
        await self._persist("inventory_items")
        self._ledger.record(
            ActivityAction.UPDATE_QUANTITY,
            item_id,
            change.after.name,
            previous_value=change.before.quantity,
            new_value=change.after.quantity,
            snapshot=change.before,
        )
        await self._persist("activity_log")
        self._notify()
        return change.after

    @_mutation("rename_item")
    async def rename_item(self, item_id: str, new_name: str) -> Optional[InventoryItem]:
        change = self._items.rename(item_id, new_name)
        if change is None:
            return None
        await self._persist("inventory_items", "shopping_list")
        self._ledger.record(
            ActivityAction.UPDATE_NAME,
            item_id,
            change.before.name,
            previous_value=change.before.name,
            new_value=change.after.name,
            snapshot=change.before,
        )
        await self._persist("activity_log")
        self._notify()
        return change.after

    @_mutation("restock_item")
    async def restock_item(self, item_id: str) -> Optional[InventoryItem]:
        change = self._items.restock(item_id)
        if change is None:
            return None
        await self._persist("inventory_items")
        self._ledger.record(
            ActivityAction.RESTOCK,
            item_id,
            change.after.name,
            previous_value=change.before.quantity,
            new_value=1.0,
            snapshot=change.before,
        )
        await self._persist("activity_log")
        self._notify()
        return change.after

    @_mutation("toggle_ignore")
    async def toggle_ignore(self, item_id: str) -> Optional[InventoryItem]:
        change = self._items.toggle_ignore(item_id)
        if change is None:
            return None
        await self._persist("inventory_items")
        self._ledger.record(
            ActivityAction.TOGGLE_IGNORE,
            item_id,
            change.after.name,
            previous_value=change.before.is_ignored,
            new_value=change.after.is_ignored,
            snapshot=change.before,
        )
        await self._persist("activity_log")
        self._notify()
        return change.after

    @_mutation("update_item_order")
    async def update_item_order(self, updates: Mapping[str, int]) -> bool:
        if not self._items.update_order(updates):
            return False
        self._notify()
        await self._persist("inventory_items")
        return True

    # Subcategories -----------------------------------------------------------

    @_mutation("update_subcategory_order")
    async def update_subcategory_order(
        self, category: InventoryCategory, names: Sequence[str]
    ) -> bool:
        self._taxonomy.set_order(category.value, names)
        self._notify()
        await self._persist("subcategory_order")
        return True

    @_mutation("add_custom_subcategory")
    async def add_custom_subcategory(
        self,
        name: str,
        category: InventoryCategory,
        *,
        icon: Optional[str] = None,
        color: Optional[str] = None,
    ) -> CustomSubcategory:
        default_icon, default_color = CATEGORY_STYLE[category]
        custom = self._taxonomy.add_custom(name, icon or default_icon, color or default_color, category)
        await self._persist("custom_subcategories")
        self._notify()
        return custom

    @_mutation("update_subcategory")
    async def update_subcategory(
        self, custom_id: str, name: str, icon: str, color: str
    ) -> Optional[CustomSubcategory]:
        updated = self._taxonomy.update_custom(custom_id, name, icon, color)
        if updated is None:
            return None
        await self._persist("custom_subcategories", "inventory_items", "subcategory_order")
        self._notify()
        return updated

    @_mutation("promote_subcategory")
    async def promote_subcategory(
        self,
        builtin_name: str,
        new_name: str,
        icon: str,
        color: str,
        category: InventoryCategory,
    ) -> Optional[CustomSubcategory]:
        custom = self._taxonomy.promote(builtin_name, new_name, icon, color, category)
        if custom is None:
            return None
        await self._persist(
            "hidden_builtin_subcategories",
            "custom_subcategories",
            "inventory_items",
            "subcategory_order",
        )
        self._notify()
        return custom

    @_mutation("remove_subcategory")
    async def remove_subcategory(self, id_or_name: str) -> List[InventoryItem]:
        """Remove a subcategory with all of its items; each item gets a RemoveItem entry."""

        customs_before = len(self._taxonomy.custom_subcategories())
        hidden_before = len(self._taxonomy.hidden_builtins())
        removed = self._taxonomy.remove_subcategory(id_or_name)
        structural = (
            len(self._taxonomy.custom_subcategories()) != customs_before
            or len(self._taxonomy.hidden_builtins()) != hidden_before
        )
        if not structural and not removed:
            return removed
        await self._persist(
            "inventory_items",
            *_SHOPPING_TABLES,
            "custom_subcategories",
            "hidden_builtin_subcategories",
        )
        for item in removed:
            self._ledger.record(ActivityAction.REMOVE_ITEM, item.id, item.name, snapshot=item)
        if removed:
            await self._persist("activity_log")
        self._notify()
        return removed

    # Shopping ----------------------------------------------------------------

    async def _shopping_step(self, changed: bool, *extra_tables: str) -> bool:
        if changed:
            await self._persist(*_SHOPPING_TABLES, *extra_tables)
            self._notify()
        return changed

    @_mutation("generate_shopping_list")
    async def generate_shopping_list(self) -> bool:
        return await self._shopping_step(self._shopping.generate())

    @_mutation("add_misc_to_shopping_list")
    async def add_misc_to_shopping_list(self, name: str) -> bool:
        return await self._shopping_step(self._shopping.add_misc(name))

    @_mutation("add_item_to_shopping_list")
    async def add_item_to_shopping_list(self, item_id: str) -> bool:
        return await self._shopping_step(self._shopping.add_inventory_item(item_id))

    @_mutation("add_items_to_shopping_list")
    async def add_items_to_shopping_list(self, item_ids: Iterable[str]) -> int:
        added = self._shopping.add_inventory_items(item_ids)
        await self._shopping_step(added > 0)
        return added

    async def add_ignored_items_to_shopping_list(self) -> int:
        ignored = [item.id for item in self._items.all() if item.is_ignored]
        return await self.add_items_to_shopping_list(ignored)

    @_mutation("remove_from_shopping_list")
    async def remove_from_shopping_list(self, shopping_item_id: str) -> bool:
        return await self._shopping_step(self._shopping.remove_item(shopping_item_id))

    @_mutation("finalize_shopping_list")
    async def finalize_shopping_list(self) -> bool:
        return await self._shopping_step(self._shopping.finalize())

    @_mutation("start_shopping")
    async def start_shopping(self) -> bool:
        return await self._shopping_step(self._shopping.start_shopping())

    @_mutation("toggle_shopping_item")
    async def toggle_shopping_item(self, shopping_item_id: str) -> bool:
        return await self._shopping_step(self._shopping.toggle_checked(shopping_item_id))

    @_mutation("complete_shopping")
    async def complete_shopping(self) -> Optional[List[InventoryItem]]:
        """Finish the trip; returns the restocked items, or ``None`` when not shopping."""

        was_shopping = self._shopping.state == ShoppingState.SHOPPING
        restocked = self._shopping.complete()
        if not was_shopping:
            return None
        await self._shopping_step(True, "inventory_items")
        return restocked

    @_mutation("cancel_shopping")
    async def cancel_shopping(self) -> bool:
        return await self._shopping_step(self._shopping.cancel())

    # Activity ----------------------------------------------------------------

    @_mutation("undo")
    async def undo(self, log_id: str) -> bool:
        entry = self._ledger.get(log_id)
        try:
            undone = self._ledger.undo(log_id)
        except ValidationError:
            if entry is not None:
                metrics.UNDO_OPERATIONS.labels(action=entry.action.value, result="conflict").inc()
            raise
        if undone is None:
            return False
        metrics.UNDO_OPERATIONS.labels(action=undone.action.value, result="ok").inc()
        await self._persist("inventory_items", *_SHOPPING_TABLES, "activity_log")
        self._notify()
        return True

    @_mutation("clear_activity")
    async def clear_activity(self) -> bool:
        self._ledger.clear()
        await self._persist("activity_log")
        self._notify()
        return True

    # Bulk data ---------------------------------------------------------------

    def _clear_state(self) -> None:
        self._items.clear()
        self._shopping.clear()
        self._taxonomy.clear()
        self._ledger.clear()

    @_mutation("clear_all_data")
    async def clear_all_data(self) -> bool:
        """Drop every record and hide all built-ins so the inventory starts blank."""

        self._clear_state()
        self._taxonomy.hide_all_builtins()
        await self._persist_all()
        logger.info("All data cleared; built-in subcategories hidden")
        self._notify()
        return True

    @_mutation("reset_to_defaults")
    async def reset_to_defaults(self, rng: Optional[random.Random] = None) -> int:
        """Replace everything with the sample inventory of every built-in subcategory."""

        rng = rng or random.Random()
        self._clear_state()
        now = self._clock()
        samples: List[InventoryItem] = []
        for builtin in BUILTIN_SUBCATEGORIES.values():
            for index, name in enumerate(builtin.sample_items):
                samples.append(
                    InventoryItem(
                        id=self._id_factory(),
                        name=name,
                        quantity=rng.random() * 0.8 + 0.2,
                        subcategory=builtin.name,
                        is_custom=False,
                        last_updated=now,
                        order=index,
                    )
                )
        self._items.load(samples)
        await self._persist_all()
        logger.info("Reset to defaults with %d sample items", len(samples))
        self._notify()
        return len(samples)

    def export_data(self) -> ExportPayload:
        enriched = []
        for item in self._items.all():
            category = self._taxonomy.category_of(item.subcategory)
            enriched.append(
                ExportedInventoryItem(
                    **item.model_dump(),
                    category=category.value if category is not None else "Unknown",
                )
            )
        return ExportPayload(
            inventory_items=enriched,
            custom_subcategories=self._taxonomy.custom_subcategories(),
            shopping_list=self._shopping.items(),
            subcategory_order=self._taxonomy.subcategory_order(),
        )

    @_mutation("import_data")
    async def import_data(self, payload: Union[ImportPayload, Mapping[str, Any]]) -> bool:
        """
        Replace user data with an exported document.

        Sections missing from ``payload`` keep their current value, except custom
        subcategories (reset to none) and the hidden built-in set: without one, every
        built-in is hidden except those used by an imported item and not overridden by a
        custom subcategory of the same name.
        """

        data = payload if isinstance(payload, ImportPayload) else ImportPayload.model_validate(payload)

        if data.inventory_items is not None:
            self._items.load(data.inventory_items)
            self._items.assign_missing_order()
        customs = data.custom_subcategories or []
        if data.hidden_builtin_subcategories is not None:
            hidden = list(data.hidden_builtin_subcategories)
        else:
            used = {item.subcategory for item in self._items.all()}
            overridden = {custom.name for custom in customs}
            hidden = [
                name for name in BUILTIN_SUBCATEGORIES if name not in used or name in overridden
            ]
        order = (
            data.subcategory_order
            if data.subcategory_order is not None
            else self._taxonomy.subcategory_order()
        )
        self._taxonomy.load(customs, hidden, order)

        entries = data.shopping_list if data.shopping_list is not None else self._shopping.items()
        state = self._shopping.state
        if entries and state == ShoppingState.EMPTY:
            state = ShoppingState.GENERATING
        self._shopping.load(entries, state)

        await self._persist(
            "inventory_items",
            *_SHOPPING_TABLES,
            "custom_subcategories",
            "hidden_builtin_subcategories",
            "subcategory_order",
        )
        logger.info(
            "Imported %d items and %d custom subcategories", len(self._items), len(customs)
        )
        self._notify()
        return True


__all__ = ["LarderEngine"]
