"""Unit tests for the shopping list state machine."""

from __future__ import annotations

import pytest

from larder.engine.shopping import TRANSITIONS, ShoppingEvent, ShoppingListEngine
from larder.models.shopping import ShoppingListItem, ShoppingState


def _stock(store, **levels):
    return {name: store.add(name, "Main Section", quantity=level) for name, level in levels.items()}


def _to_shopping(shopping):
    assert shopping.finalize()
    assert shopping.start_shopping()


def test_generate_selects_low_stock_not_ignored_ascending(store, shopping):
    items = _stock(store, Fruits=0.2, Leftovers=0.05, Vegetables=0.25, Cheese=0.9, Yogurt=0.1)
    store.toggle_ignore(items["Yogurt"].id)

    assert shopping.generate() is True

    assert shopping.state is ShoppingState.GENERATING
    assert [entry.name for entry in shopping.items()] == ["Leftovers", "Fruits"]
    assert all(not entry.is_temporary for entry in shopping.items())


def test_generate_only_from_empty(store, shopping):
    _stock(store, Fruits=0.1)
    assert shopping.generate()

    assert shopping.generate() is False
    assert len(shopping.items()) == 1


def test_add_promotes_empty_to_generating(store, shopping):
    assert shopping.add_misc("Birthday candles") is True

    assert shopping.state is ShoppingState.GENERATING
    entry = shopping.items()[0]
    assert (entry.name, entry.is_temporary, entry.inventory_item_id) == (
        "Birthday candles",
        True,
        None,
    )


def test_add_rejections(store, shopping):
    items = _stock(store, Fruits=0.9)

    assert shopping.add_misc("   ") is False
    assert shopping.add_inventory_item("missing") is False
    assert shopping.add_inventory_item(items["Fruits"].id) is True
    assert shopping.add_inventory_item(items["Fruits"].id) is False
    assert len(shopping.items()) == 1


def test_add_rejected_in_list_ready_but_allowed_while_shopping(store, shopping):
    items = _stock(store, Fruits=0.1, Cheese=0.9)
    shopping.generate()
    shopping.finalize()

    assert shopping.add_inventory_item(items["Cheese"].id) is False
    assert shopping.state is ShoppingState.LIST_READY

    shopping.start_shopping()
    assert shopping.add_misc("Bread") is True
    assert shopping.state is ShoppingState.SHOPPING


def test_finalize_requires_non_empty_list(shopping):
    shopping.add_misc("Bread")
    entry = shopping.items()[0]
    shopping.remove_item(entry.id)

    assert shopping.finalize() is False
    assert shopping.state is ShoppingState.GENERATING


def test_remove_only_while_generating(store, shopping):
    _stock(store, Fruits=0.1)
    shopping.generate()
    _to_shopping(shopping)

    assert shopping.remove_item(shopping.items()[0].id) is False
    assert len(shopping.items()) == 1


def test_toggle_only_while_shopping(store, shopping):
    _stock(store, Fruits=0.1)
    shopping.generate()
    entry_id = shopping.items()[0].id

    assert shopping.toggle_checked(entry_id) is False
    _to_shopping(shopping)
    assert shopping.toggle_checked(entry_id) is True
    assert shopping.items()[0].is_checked is True
    assert shopping.toggle_checked("missing") is False


def test_complete_restocks_checked_items_and_clears_ignore(store, shopping, clock):
    items = _stock(store, Fruits=0.1, Leftovers=0.2)
    shopping.generate()
    store.toggle_ignore(items["Fruits"].id)
    shopping.add_misc("Bread")
    _to_shopping(shopping)
    for entry in shopping.items():
        if entry.name in ("Fruits", "Bread"):
            shopping.toggle_checked(entry.id)

    restocked = shopping.complete()

    assert [item.name for item in restocked] == ["Fruits"]
    fruits = store.get(items["Fruits"].id)
    assert (fruits.quantity, fruits.is_ignored) == (1.0, False)
    assert fruits.purchase_history == (clock.now,)
    assert store.get(items["Leftovers"].id).quantity == pytest.approx(0.2)
    assert shopping.items() == []
    assert shopping.state is ShoppingState.EMPTY


def test_complete_rejected_outside_shopping(store, shopping):
    _stock(store, Fruits=0.1)
    shopping.generate()

    assert shopping.complete() == []
    assert shopping.state is ShoppingState.GENERATING


@pytest.mark.parametrize("stage", ["generating", "listReady", "shopping"])
def test_cancel_from_any_active_state(store, shopping, stage):
    _stock(store, Fruits=0.1)
    shopping.generate()
    if stage in ("listReady", "shopping"):
        shopping.finalize()
    if stage == "shopping":
        shopping.start_shopping()

    assert shopping.cancel() is True
    assert shopping.state is ShoppingState.EMPTY
    assert shopping.items() == []


def test_cancel_from_empty_is_rejected(shopping):
    assert shopping.cancel() is False


def test_removing_last_referenced_item_forces_empty(store, shopping):
    items = _stock(store, Fruits=0.1)
    shopping.generate()
    _to_shopping(shopping)

    store.remove(items["Fruits"].id)

    assert shopping.items() == []
    assert shopping.state is ShoppingState.EMPTY


def test_rename_resyncs_list_names(store, shopping):
    items = _stock(store, Fruits=0.1)
    shopping.generate()

    store.rename(items["Fruits"].id, "Fresh Fruit")

    assert shopping.items()[0].name == "Fresh Fruit"


def test_bulk_add_skips_unknown_and_listed(store, shopping):
    items = _stock(store, Fruits=0.9, Cheese=0.9)
    shopping.add_inventory_item(items["Fruits"].id)

    added = shopping.add_inventory_items([items["Fruits"].id, items["Cheese"].id, "missing"])

    assert added == 1
    assert [entry.name for entry in shopping.items()] == ["Fruits", "Cheese"]


def test_load_drops_stale_refs_and_repairs_state(store, shopping):
    items = _stock(store, Fruits=0.1)
    stale = ShoppingListItem(id="s1", name="Ghost", inventory_item_id="gone")
    live = ShoppingListItem(id="s2", name="Fruits", inventory_item_id=items["Fruits"].id)

    shopping.load([stale, live], ShoppingState.SHOPPING)
    assert [entry.id for entry in shopping.items()] == ["s2"]
    assert shopping.state is ShoppingState.SHOPPING

    shopping.load([stale], ShoppingState.LIST_READY)
    assert shopping.items() == []
    assert shopping.state is ShoppingState.EMPTY


def test_threshold_is_strictly_below(store):
    engine = ShoppingListEngine(store, low_stock_threshold=0.5)
    _stock(store, Fruits=0.5, Cheese=0.49)

    engine.generate()

    assert [entry.name for entry in engine.items()] == ["Cheese"]


def test_transition_table_never_leaves_list_ready_by_adding():
    assert (ShoppingState.LIST_READY, ShoppingEvent.ADD) not in TRANSITIONS
    assert TRANSITIONS[(ShoppingState.SHOPPING, ShoppingEvent.COMPLETE)] is ShoppingState.EMPTY
