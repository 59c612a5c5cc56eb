"""Read-only health metrics over the inventory."""

from __future__ import annotations

from typing import List, Mapping, Optional

from larder.catalog import DEFAULT_STALE_THRESHOLDS
from larder.engine.items import Clock, ItemStore
from larder.engine.shopping import DEFAULT_LOW_STOCK_THRESHOLD, is_low_stock
from larder.engine.taxonomy import TaxonomyResolver
from larder.models.inventory import InventoryCategory, InventoryItem, utcnow


class InventoryInsights:
    """Aggregate figures for dashboards. Ignored items never count towards health metrics."""

    def __init__(
        self,
        items: ItemStore,
        taxonomy: TaxonomyResolver,
        *,
        low_stock_threshold: float = DEFAULT_LOW_STOCK_THRESHOLD,
        clock: Clock = utcnow,
    ) -> None:
        self._items = items
        self._taxonomy = taxonomy
        self._threshold = low_stock_threshold
        self._clock = clock

    def _tracked(self) -> List[InventoryItem]:
        return [
            item
            for item in self._items.all()
            if self._taxonomy.is_visible(item.subcategory) and not item.is_ignored
        ]

    def total_items(self) -> int:
        return len(self._items)

    def items_needing_attention(self) -> List[InventoryItem]:
        low = [item for item in self._tracked() if is_low_stock(item, self._threshold)]
        return sorted(low, key=lambda item: item.quantity)

    def low_stock_count(self) -> int:
        return len(self.items_needing_attention())

    def average_stock_level(self) -> float:
        tracked = self._tracked()
        if not tracked:
            return 0.0
        return sum(item.quantity for item in tracked) / len(tracked)

    def ignored_items(self) -> List[InventoryItem]:
        return [item for item in self._items.all() if item.is_ignored]

    def active_categories_count(self) -> int:
        categories = {self._taxonomy.category_of(item.subcategory) for item in self._items.all()}
        categories.discard(None)
        return len(categories)

    def most_frequently_restocked(self) -> Optional[InventoryItem]:
        best: Optional[InventoryItem] = None
        for item in self._items.all():
            if best is None or len(item.purchase_history) > len(best.purchase_history):
                best = item
        return best

    def stale_items(
        self, thresholds: Optional[Mapping[InventoryCategory, int]] = None
    ) -> List[InventoryItem]:
        """Items untouched for at least their category's threshold in whole days."""

        limits = thresholds if thresholds is not None else DEFAULT_STALE_THRESHOLDS
        now = self._clock()
        stale: List[InventoryItem] = []
        for item in self._items.all():
            category = self._taxonomy.category_of(item.subcategory)
            if category is None or category not in limits:
                continue
            if abs(now - item.last_updated).days >= limits[category]:
                stale.append(item)
        return stale

    def summary(self) -> dict[str, object]:
        busiest = self.most_frequently_restocked()
        return {
            "total_items": self.total_items(),
            "low_stock_count": self.low_stock_count(),
            "average_stock_level": round(self.average_stock_level(), 4),
            "ignored_count": len(self.ignored_items()),
            "active_categories": self.active_categories_count(),
            "most_restocked_item": busiest.name if busiest is not None else None,
            "stale_count": len(self.stale_items()),
        }


__all__ = ["InventoryInsights"]
