"""Built-in categories and subcategories shipped with Larder."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from larder.models.inventory import InventoryCategory
from larder.models.taxonomy import BuiltinSubcategory

CATEGORY_STYLE: Mapping[InventoryCategory, tuple[str, str]] = MappingProxyType(
    {
        InventoryCategory.FRIDGE: ("fridge", "#007AFF"),
        InventoryCategory.GROCERY: ("basket", "#34C759"),
        InventoryCategory.HYGIENE: ("water", "#32D74B"),
        InventoryCategory.PERSONAL_CARE: ("account-heart", "#FF2D92"),
    }
)

# Activity thresholds in days before an untouched item counts as stale.
DEFAULT_STALE_THRESHOLDS: Mapping[InventoryCategory, int] = MappingProxyType(
    {
        InventoryCategory.FRIDGE: 3,
        InventoryCategory.GROCERY: 7,
        InventoryCategory.HYGIENE: 15,
        InventoryCategory.PERSONAL_CARE: 30,
    }
)


def _builtin(
    name: str, icon: str, color: str, category: InventoryCategory, *samples: str
) -> BuiltinSubcategory:
    return BuiltinSubcategory(
        name=name, icon=icon, color=color, category=category, sample_items=samples
    )


_FRIDGE = InventoryCategory.FRIDGE
_GROCERY = InventoryCategory.GROCERY
_HYGIENE = InventoryCategory.HYGIENE
_PERSONAL = InventoryCategory.PERSONAL_CARE

_BUILTINS = (
    _builtin("Door Bottles", "bottle-wine-outline", "#007AFF", _FRIDGE,
             "Water Bottles", "Juice", "Milk", "Soft Drinks"),
    _builtin("Tray Section", "tray", "#FF9500", _FRIDGE, "Eggs", "Butter", "Cheese", "Yogurt"),
    _builtin("Main Section", "fridge", "#34C759", _FRIDGE,
             "Leftovers", "Cooked Food", "Fruits", "Vegetables"),
    _builtin("Vegetable Section", "carrot", "#30D158", _FRIDGE,
             "Onions", "Tomatoes", "Potatoes", "Leafy Greens"),
    _builtin("Freezer", "snowflake", "#64D2FF", _FRIDGE,
             "Ice Cream", "Frozen Vegetables", "Meat", "Ice Cubes"),
    _builtin("Mini Cooler", "cube-outline", "#BF5AF2", _FRIDGE,
             "Cold Drinks", "Snacks", "Chocolates"),
    _builtin("Rice Items", "rice", "#8E4EC6", _GROCERY,
             "Basmati Rice", "Brown Rice", "Jasmine Rice", "Wild Rice"),
    _builtin("Pulses", "circle", "#FFD60A", _GROCERY,
             "Lentils", "Chickpeas", "Black Beans", "Kidney Beans"),
    _builtin("Cereals", "bowl", "#FF9500", _GROCERY, "Oats", "Cornflakes", "Wheat Flakes", "Muesli"),
    _builtin("Condiments", "bottle-soda", "#FF3B30", _GROCERY, "Salt", "Sugar", "Spices", "Sauces"),
    _builtin("Oils", "oil", "#FFD60A", _GROCERY, "Cooking Oil", "Olive Oil", "Coconut Oil", "Ghee"),
    _builtin("Washing", "tshirt-crew", "#007AFF", _HYGIENE,
             "Detergent", "Fabric Softener", "Stain Remover"),
    _builtin("Dishwashing", "silverware-fork-knife", "#34C759", _HYGIENE,
             "Dish Soap", "Dishwasher Tablets", "Sponges"),
    _builtin("Toilet Cleaning", "toilet", "#64D2FF", _HYGIENE,
             "Toilet Cleaner", "Toilet Paper", "Air Freshener"),
    _builtin("Kids", "baby-face", "#FF2D92", _HYGIENE, "Diapers", "Baby Wipes", "Baby Shampoo"),
    _builtin("General Cleaning", "spray", "#BF5AF2", _HYGIENE,
             "All-Purpose Cleaner", "Floor Cleaner", "Glass Cleaner"),
    _builtin("Face", "face-woman", "#FF2D92", _PERSONAL, "CC Cream", "Powder", "Face Wash", "Moisturizer"),
    _builtin("Body", "human", "#30D158", _PERSONAL, "Lotion", "Deodorant", "Bathing Soap", "Body Wash"),
    _builtin("Head", "head-outline", "#5856D6", _PERSONAL, "Shampoo", "Conditioner", "Hair Oil", "Hair Gel"),
)

BUILTIN_SUBCATEGORIES: Mapping[str, BuiltinSubcategory] = MappingProxyType(
    {builtin.name: builtin for builtin in _BUILTINS}
)


def get_builtin(name: str) -> BuiltinSubcategory | None:
    """Return the built-in subcategory with exactly this name, if any."""

    return BUILTIN_SUBCATEGORIES.get(name)


__all__ = [
    "BUILTIN_SUBCATEGORIES",
    "CATEGORY_STYLE",
    "DEFAULT_STALE_THRESHOLDS",
    "get_builtin",
]
