"""Subcategory taxonomy: built-ins, custom overlays and the hidden-builtins mask."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Mapping, Optional, Sequence

from larder.catalog import BUILTIN_SUBCATEGORIES, get_builtin
from larder.engine.items import ItemStore, new_id, normalize_name
from larder.errors import EmptyNameError, SubcategoryNameConflictError
from larder.models.inventory import InventoryCategory, InventoryItem
from larder.models.taxonomy import BuiltinSubcategory, CustomSubcategory, ResolvedSubcategory

logger = logging.getLogger(__name__)


def _from_builtin(builtin: BuiltinSubcategory, *, hidden: bool) -> ResolvedSubcategory:
    return ResolvedSubcategory(
        kind="builtin",
        name=builtin.name,
        icon=builtin.icon,
        color=builtin.color,
        category=builtin.category,
        hidden=hidden,
    )


def _from_custom(custom: CustomSubcategory) -> ResolvedSubcategory:
    return ResolvedSubcategory(
        kind="custom",
        name=custom.name,
        icon=custom.icon,
        color=custom.color,
        category=custom.category,
        custom_id=custom.id,
    )


class TaxonomyResolver:
    """
    Merge the static built-in catalog with user-defined subcategories.

    A built-in is visible unless it is in the hidden set; customs are always visible. No two
    visible subcategories may share a trimmed, case-insensitive name, and every create,
    rename and promotion checks that before touching any state.
    """

    def __init__(self, items: ItemStore, *, id_factory: Callable[[], str] = new_id) -> None:
        self._items = items
        self._id_factory = id_factory
        self._customs: List[CustomSubcategory] = []
        self._hidden: List[str] = []
        self._order: dict[str, List[str]] = {}

    # State -------------------------------------------------------------------

    def load(
        self,
        customs: Iterable[CustomSubcategory],
        hidden: Iterable[str],
        order: Mapping[str, Sequence[str]],
    ) -> None:
        self._customs = list(customs)
        self._hidden = list(dict.fromkeys(hidden))
        self._order = {category: list(names) for category, names in order.items()}

    def custom_subcategories(self) -> List[CustomSubcategory]:
        return list(self._customs)

    def hidden_builtins(self) -> List[str]:
        return list(self._hidden)

    def subcategory_order(self) -> dict[str, List[str]]:
        return {category: list(names) for category, names in self._order.items()}

    def is_hidden(self, name: str) -> bool:
        return name in self._hidden

    def hide(self, name: str) -> bool:
        if name in self._hidden:
            return False
        self._hidden.append(name)
        return True

    def hide_all_builtins(self) -> None:
        self._hidden = list(BUILTIN_SUBCATEGORIES)

    def unhide_all_builtins(self) -> None:
        self._hidden = []

    def set_order(self, category: str, names: Sequence[str]) -> None:
        self._order[category] = list(dict.fromkeys(names))

    def _rename_in_order(self, old: str, new: str) -> None:
        for category, names in self._order.items():
            self._order[category] = [new if name == old else name for name in names]

    def clear(self) -> None:
        self._customs = []
        self._hidden = []
        self._order = {}

    def _find_custom(self, id_or_name: str) -> Optional[CustomSubcategory]:
        for custom in self._customs:
            if custom.id == id_or_name or custom.name == id_or_name:
                return custom
        return None

    # Resolution --------------------------------------------------------------

    def resolve(self, ref: str) -> Optional[ResolvedSubcategory]:
        """
        Resolve a subcategory reference to its display configuration.

        Order: visible built-in, custom by id or name, hidden built-in (so stale data still
        renders), otherwise ``None``.
        """

        builtin = get_builtin(ref)
        if builtin is not None and not self.is_hidden(ref):
            return _from_builtin(builtin, hidden=False)
        custom = self._find_custom(ref)
        if custom is not None:
            return _from_custom(custom)
        if builtin is not None:
            return _from_builtin(builtin, hidden=True)
        return None

    def location_of(self, ref: str) -> str:
        resolved = self.resolve(ref)
        return resolved.location if resolved is not None else ref

    def is_visible(self, ref: str) -> bool:
        if self._find_custom(ref) is not None:
            return True
        if get_builtin(ref) is not None:
            return not self.is_hidden(ref)
        # Unknown references stay visible so legacy data is never silently lost.
        return True

    def find_name_conflict(
        self,
        name: str,
        exclude_custom_id: Optional[str] = None,
        exclude_builtin_name: Optional[str] = None,
    ) -> Optional[str]:
        """Return ``"<category> > <name>"`` of a visible subcategory already using ``name``."""

        target = normalize_name(name)
        for custom in self._customs:
            if custom.id != exclude_custom_id and normalize_name(custom.name) == target:
                return f"{custom.category.value} > {custom.name}"
        for builtin in BUILTIN_SUBCATEGORIES.values():
            if builtin.name == exclude_builtin_name or self.is_hidden(builtin.name):
                continue
            if normalize_name(builtin.name) == target:
                return f"{builtin.category.value} > {builtin.name}"
        return None

    def _checked_name(
        self,
        name: str,
        *,
        exclude_custom_id: Optional[str] = None,
        exclude_builtin_name: Optional[str] = None,
    ) -> str:
        trimmed = name.strip()
        if not trimmed:
            raise EmptyNameError("Subcategory name")
        conflict = self.find_name_conflict(
            trimmed,
            exclude_custom_id=exclude_custom_id,
            exclude_builtin_name=exclude_builtin_name,
        )
        if conflict is not None:
            raise SubcategoryNameConflictError(trimmed, conflict)
        return trimmed

    # Custom subcategories ----------------------------------------------------

    def add_custom(
        self, name: str, icon: str, color: str, category: InventoryCategory
    ) -> CustomSubcategory:
        custom = CustomSubcategory(
            id=self._id_factory(),
            name=self._checked_name(name),
            icon=icon,
            color=color,
            category=category,
        )
        self._customs.append(custom)
        logger.info("Added custom subcategory %s", custom.name)
        return custom

    def update_custom(
        self, custom_id: str, name: str, icon: str, color: str
    ) -> Optional[CustomSubcategory]:
        """Edit a custom subcategory; a rename carries its member items along."""

        new_name = self._checked_name(name, exclude_custom_id=custom_id)
        index = next((i for i, c in enumerate(self._customs) if c.id == custom_id), None)
        if index is None:
            logger.warning("update_custom ignored: subcategory not found id=%s", custom_id)
            return None

        current = self._customs[index]
        updated = current.model_copy(update={"name": new_name, "icon": icon, "color": color})
        self._customs[index] = updated
        if current.name != new_name:
            self._rename_in_order(current.name, new_name)
            moved = self._items.migrate_subcategory(current.name, new_name)
            logger.info(
                "Renamed subcategory %s -> %s (%d items moved)", current.name, new_name, moved
            )
        return updated

    def promote(
        self,
        builtin_name: str,
        new_name: str,
        icon: str,
        color: str,
        category: InventoryCategory,
    ) -> Optional[CustomSubcategory]:
        """
        Convert a built-in into a custom subcategory.

        The built-in is hidden, a custom entry is created, and member items follow the new
        name when it differs. A promotion that keeps the name is purely cosmetic.
        """

        if get_builtin(builtin_name) is None:
            logger.warning("promote ignored: %s is not a built-in subcategory", builtin_name)
            return None
        checked = self._checked_name(new_name, exclude_builtin_name=builtin_name)

        self.hide(builtin_name)
        custom = CustomSubcategory(
            id=self._id_factory(),
            name=checked,
            icon=icon,
            color=color,
            category=category,
        )
        self._customs.append(custom)

        if checked != builtin_name:
            self._rename_in_order(builtin_name, checked)
            moved = self._items.migrate_subcategory(builtin_name, checked)
            logger.info("Promoted %s to %s (%d items migrated)", builtin_name, checked, moved)
        else:
            logger.info("Promoted %s in place; no item migration needed", builtin_name)
        return custom

    def remove_subcategory(self, id_or_name: str) -> List[InventoryItem]:
        """
        Remove a subcategory and every item in it.

        A visible built-in is hidden; a custom record is deleted. Items are removed through
        the item store so the shopping list follows. Returns the removed items.
        """

        if get_builtin(id_or_name) is not None and not self.is_hidden(id_or_name):
            self.hide(id_or_name)
            removed = self._remove_members({id_or_name})
            logger.info("Hid built-in %s and removed %d items", id_or_name, len(removed))
            return removed

        custom = self._find_custom(id_or_name)
        if custom is None:
            logger.warning("remove_subcategory ignored: %s not found", id_or_name)
            return []

        removed = self._remove_members({custom.name, custom.id})
        self._customs = [c for c in self._customs if c.id != custom.id]
        logger.info("Deleted custom subcategory %s and %d items", custom.name, len(removed))
        return removed

    def _remove_members(self, refs: set[str]) -> List[InventoryItem]:
        members = [item for item in self._items.all() if item.subcategory in refs]
        removed: List[InventoryItem] = []
        for item in members:
            gone = self._items.remove(item.id)
            if gone is not None:
                removed.append(gone)
        return removed

    # Listing -----------------------------------------------------------------

    def categories(self) -> List[InventoryCategory]:
        return list(InventoryCategory)

    def visible_names(self, category: InventoryCategory) -> List[str]:
        """Visible built-ins then customs of ``category``, in discovery order."""

        names = [
            builtin.name
            for builtin in BUILTIN_SUBCATEGORIES.values()
            if builtin.category == category and not self.is_hidden(builtin.name)
        ]
        names.extend(custom.name for custom in self._customs if custom.category == category)
        return list(dict.fromkeys(names))

    def ordered_subcategories(
        self, category: InventoryCategory, explicit_order: Optional[Sequence[str]] = None
    ) -> List[str]:
        names = self.visible_names(category)
        if explicit_order is None:
            explicit_order = self._order.get(category.value, [])
        available = set(names)
        ordered = [name for name in dict.fromkeys(explicit_order) if name in available]
        placed = set(ordered)
        return ordered + [name for name in names if name not in placed]

    def category_of(self, ref: str) -> Optional[InventoryCategory]:
        resolved = self.resolve(ref)
        return resolved.category if resolved is not None else None


__all__ = ["TaxonomyResolver"]
