"""Bounded activity ledger with snapshot-based undo."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Callable, Iterable, List, Optional

from larder.engine.items import Clock, ItemStore, new_id
from larder.models.activity import ActivityAction, ActivityDetails, ActivityLogEntry, ActivityValue
from larder.models.inventory import InventoryItem, utcnow

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 28
DEFAULT_MAX_ENTRIES = 100


class ActivityLedger:
    """
    Newest-first log of item mutations.

    Each record keeps at most one live entry per item (the newest), drops entries older than
    the retention window, and caps the total. Entries are never edited except to flag them
    as undone.
    """

    def __init__(
        self,
        items: ItemStore,
        *,
        retention_days: int = DEFAULT_RETENTION_DAYS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Clock = utcnow,
        id_factory: Callable[[], str] = new_id,
    ) -> None:
        self._items = items
        self._retention = timedelta(days=retention_days)
        self._max_entries = max_entries
        self._clock = clock
        self._id_factory = id_factory
        self._entries: List[ActivityLogEntry] = []

    def load(self, entries: Iterable[ActivityLogEntry]) -> None:
        self._entries = sorted(entries, key=lambda entry: entry.timestamp, reverse=True)

    def entries(self) -> List[ActivityLogEntry]:
        return list(self._entries)

    def get(self, log_id: str) -> Optional[ActivityLogEntry]:
        return next((entry for entry in self._entries if entry.id == log_id), None)

    def clear(self) -> None:
        self._entries = []

    def record(
        self,
        action: ActivityAction,
        item_id: str,
        item_name: str,
        *,
        previous_value: ActivityValue = None,
        new_value: ActivityValue = None,
        snapshot: Optional[InventoryItem] = None,
    ) -> ActivityLogEntry:
        now = self._clock()
        entry = ActivityLogEntry(
            id=self._id_factory(),
            action=action,
            item_id=item_id,
            item_name=item_name,
            timestamp=now,
            details=ActivityDetails(
                previous_value=previous_value,
                new_value=new_value,
                item_snapshot=snapshot,
            ),
        )
        cutoff = now - self._retention
        retained = [
            prior
            for prior in self._entries
            if prior.item_id != item_id and prior.timestamp > cutoff
        ]
        self._entries = [entry, *retained][: self._max_entries]
        logger.debug("Recorded %s for %s (%d entries)", action.value, item_name, len(self._entries))
        return entry

    def undo(self, log_id: str) -> Optional[ActivityLogEntry]:
        """
        Reverse the mutation behind ``log_id`` and flag the entry as undone.

        Returns the updated entry, or ``None`` when the entry is unknown or already undone.
        A snapshot whose name is now taken by another item raises ItemNameConflictError and
        leaves everything untouched.
        """

        index = next((i for i, entry in enumerate(self._entries) if entry.id == log_id), None)
        if index is None:
            logger.warning("undo ignored: activity %s not found", log_id)
            return None
        entry = self._entries[index]
        if entry.is_undone:
            logger.info("undo ignored: activity %s already undone", log_id)
            return None

        if entry.action == ActivityAction.ADD_ITEM:
            if self._items.remove(entry.item_id) is None:
                logger.info("Undo of add: item %s already gone", entry.item_name)
        elif entry.details.item_snapshot is not None:
            self._items.replace(entry.details.item_snapshot)
        else:
            logger.warning("Activity %s has no snapshot; marking undone without changes", log_id)

        undone = entry.model_copy(update={"is_undone": True})
        self._entries[index] = undone
        logger.info("Undid %s for %s", entry.action.value, entry.item_name)
        return undone


__all__ = ["ActivityLedger", "DEFAULT_MAX_ENTRIES", "DEFAULT_RETENTION_DAYS"]
