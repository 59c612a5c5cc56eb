"""SQLite implementation of the persistence gateway."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Dict, List, Sequence

from sqlalchemy import delete, select

from larder.db.codec import (
    decode_history,
    decode_snapshot,
    decode_timestamp,
    decode_value,
    encode_history,
    encode_snapshot,
    encode_timestamp,
    encode_value,
)
from larder.db.models import (
    ActivityLogORM,
    CustomSubcategoryORM,
    EngineStateORM,
    HiddenBuiltinORM,
    InventoryItemORM,
    ShoppingListItemORM,
    SubcategoryOrderORM,
)
from larder.db.repository import session_scope
from larder.models.activity import ActivityLogEntry
from larder.models.inventory import InventoryItem
from larder.models.shopping import ShoppingListItem, ShoppingState
from larder.models.taxonomy import CustomSubcategory

logger = logging.getLogger(__name__)

_SHOPPING_STATE_KEY = "shopping_state"


def _item_to_model(row: InventoryItemORM) -> InventoryItem:
    return InventoryItem.model_validate(
        {
            "id": row.id,
            "name": row.name,
            "quantity": row.quantity,
            "subcategory": row.subcategory,
            "is_custom": row.is_custom,
            "is_ignored": row.is_ignored,
            "purchase_history": decode_history(row.purchase_history),
            "last_updated": decode_timestamp(row.last_updated),
            "order": row.sort_order,
        }
    )


def _item_to_row(item: InventoryItem, position: int) -> InventoryItemORM:
    return InventoryItemORM(
        id=item.id,
        position=position,
        name=item.name,
        quantity=item.quantity,
        subcategory=item.subcategory,
        is_custom=item.is_custom,
        is_ignored=item.is_ignored,
        purchase_history=encode_history(item.purchase_history),
        last_updated=encode_timestamp(item.last_updated),
        sort_order=item.order,
    )


def _entry_to_model(row: ActivityLogORM) -> ActivityLogEntry:
    return ActivityLogEntry.model_validate(
        {
            "id": row.id,
            "action": row.action,
            "item_id": row.item_id,
            "item_name": row.item_name,
            "timestamp": decode_timestamp(row.timestamp),
            "details": {
                "previous_value": decode_value(row.previous_value),
                "new_value": decode_value(row.new_value),
                "item_snapshot": decode_snapshot(row.item_snapshot),
            },
            "is_undone": row.is_undone,
        }
    )


def _entry_to_row(entry: ActivityLogEntry, position: int) -> ActivityLogORM:
    return ActivityLogORM(
        id=entry.id,
        position=position,
        action=entry.action.value,
        item_id=entry.item_id,
        item_name=entry.item_name,
        timestamp=encode_timestamp(entry.timestamp),
        previous_value=encode_value(entry.details.previous_value),
        new_value=encode_value(entry.details.new_value),
        item_snapshot=encode_snapshot(entry.details.item_snapshot),
        is_undone=entry.is_undone,
    )


class SqlPersistenceGateway:
    """
    Gateway backed by the shared SQLAlchemy engine from :mod:`larder.db.repository`.

    Blocking database work runs in a worker thread. Writes are serialized with a thread lock
    since SQLite allows a single writer at a time; each save replaces the table content
    inside one transaction.
    """

    def __init__(self) -> None:
        self._write_lock = threading.Lock()

    # Sync helpers ------------------------------------------------------------

    def _replace(self, model: type, rows: Sequence[object]) -> None:
        with self._write_lock, session_scope() as session:
            session.execute(delete(model))
            session.add_all(rows)
        logger.debug("Wrote %d rows to %s", len(rows), model.__tablename__)  # type: ignore[attr-defined]

    def _select_ordered(self, model: type) -> list:
        with session_scope() as session:
            rows = session.execute(select(model).order_by(model.position)).scalars().all()  # type: ignore[attr-defined]
            session.expunge_all()
            return list(rows)

    def _read_inventory(self) -> List[InventoryItem]:
        return [_item_to_model(row) for row in self._select_ordered(InventoryItemORM)]

    def _read_shopping_list(self) -> List[ShoppingListItem]:
        return [
            ShoppingListItem(
                id=row.id,
                name=row.name,
                is_checked=row.is_checked,
                is_temporary=row.is_temporary,
                inventory_item_id=row.inventory_item_id,
            )
            for row in self._select_ordered(ShoppingListItemORM)
        ]

    def _read_shopping_state(self) -> ShoppingState:
        with session_scope() as session:
            row = session.get(EngineStateORM, _SHOPPING_STATE_KEY)
            if row is None:
                return ShoppingState.EMPTY
            try:
                return ShoppingState(row.value)
            except ValueError:
                logger.warning("Unknown stored shopping state %r; using empty", row.value)
                return ShoppingState.EMPTY

    def _write_shopping_state(self, state: ShoppingState) -> None:
        with self._write_lock, session_scope() as session:
            session.merge(EngineStateORM(key=_SHOPPING_STATE_KEY, value=state.value))

    def _read_customs(self) -> List[CustomSubcategory]:
        return [
            CustomSubcategory(
                id=row.id, name=row.name, icon=row.icon, color=row.color, category=row.category
            )
            for row in self._select_ordered(CustomSubcategoryORM)
        ]

    def _read_hidden(self) -> List[str]:
        return [row.name for row in self._select_ordered(HiddenBuiltinORM)]

    def _read_order(self) -> Dict[str, List[str]]:
        with session_scope() as session:
            rows = session.execute(
                select(SubcategoryOrderORM).order_by(
                    SubcategoryOrderORM.category, SubcategoryOrderORM.position
                )
            ).scalars()
            order: Dict[str, List[str]] = {}
            for row in rows:
                order.setdefault(row.category, []).append(row.name)
            return order

    def _read_activity(self) -> List[ActivityLogEntry]:
        return [_entry_to_model(row) for row in self._select_ordered(ActivityLogORM)]

    # Gateway protocol --------------------------------------------------------

    async def load_inventory_items(self) -> List[InventoryItem]:
        return await asyncio.to_thread(self._read_inventory)

    async def save_inventory_items(self, items: Sequence[InventoryItem]) -> None:
        rows = [_item_to_row(item, position) for position, item in enumerate(items)]
        await asyncio.to_thread(self._replace, InventoryItemORM, rows)

    async def load_shopping_list(self) -> List[ShoppingListItem]:
        return await asyncio.to_thread(self._read_shopping_list)

    async def save_shopping_list(self, items: Sequence[ShoppingListItem]) -> None:
        rows = [
            ShoppingListItemORM(
                id=entry.id,
                position=position,
                name=entry.name,
                is_checked=entry.is_checked,
                is_temporary=entry.is_temporary,
                inventory_item_id=entry.inventory_item_id,
            )
            for position, entry in enumerate(items)
        ]
        await asyncio.to_thread(self._replace, ShoppingListItemORM, rows)

    async def load_shopping_state(self) -> ShoppingState:
        return await asyncio.to_thread(self._read_shopping_state)

    async def save_shopping_state(self, state: ShoppingState) -> None:
        await asyncio.to_thread(self._write_shopping_state, state)

    async def load_custom_subcategories(self) -> List[CustomSubcategory]:
        return await asyncio.to_thread(self._read_customs)

    async def save_custom_subcategories(self, customs: Sequence[CustomSubcategory]) -> None:
        rows = [
            CustomSubcategoryORM(
                id=custom.id,
                position=position,
                name=custom.name,
                icon=custom.icon,
                color=custom.color,
                category=custom.category.value,
            )
            for position, custom in enumerate(customs)
        ]
        await asyncio.to_thread(self._replace, CustomSubcategoryORM, rows)

    async def load_hidden_builtin_subcategories(self) -> List[str]:
        return await asyncio.to_thread(self._read_hidden)

    async def save_hidden_builtin_subcategories(self, names: Sequence[str]) -> None:
        rows = [
            HiddenBuiltinORM(name=name, position=position)
            for position, name in enumerate(dict.fromkeys(names))
        ]
        await asyncio.to_thread(self._replace, HiddenBuiltinORM, rows)

    async def load_subcategory_order(self) -> Dict[str, List[str]]:
        return await asyncio.to_thread(self._read_order)

    async def save_subcategory_order(self, order: Dict[str, List[str]]) -> None:
        rows = [
            SubcategoryOrderORM(category=category, position=position, name=name)
            for category, names in order.items()
            for position, name in enumerate(names)
        ]
        await asyncio.to_thread(self._replace, SubcategoryOrderORM, rows)

    async def load_activity_log(self) -> List[ActivityLogEntry]:
        return await asyncio.to_thread(self._read_activity)

    async def save_activity_log(self, entries: Sequence[ActivityLogEntry]) -> None:
        rows = [_entry_to_row(entry, position) for position, entry in enumerate(entries)]
        await asyncio.to_thread(self._replace, ActivityLogORM, rows)


__all__ = ["SqlPersistenceGateway"]
