"""Integration tests for export/import and the insights summary."""

from __future__ import annotations


def test_export_payload_shape(client, auth_headers):
    client.post(
        "/inventory",
        json={"name": "Milk", "subcategory": "Door Bottles", "quantity": 0.1},
        headers=auth_headers,
    )

    payload = client.get("/export", headers=auth_headers).json()

    assert set(payload) == {"inventoryItems", "customSubcategories", "shoppingList", "subcategoryOrder"}
    assert payload["inventoryItems"][0]["category"] == "Fridge"


def test_import_replaces_data_and_hides_unused_builtins(client, auth_headers):
    client.post("/inventory", json={"name": "Tea", "subcategory": "Cereals"}, headers=auth_headers)
    document = {
        "inventoryItems": [
            {
                "id": "1",
                "name": "Milk",
                "quantity": 0.1,
                "subcategory": "Door Bottles",
                "category": "Fridge",
                "lastUpdated": "2025-01-01T10:00:00.000Z",
            }
        ],
        "shoppingList": [{"id": "s1", "name": "Milk", "inventoryItemId": "1"}],
    }

    view = client.post("/import", json=document, headers=auth_headers).json()

    assert view["state"] == "generating"
    assert [item["name"] for item in client.get("/inventory").json()] == ["Milk"]
    visible = [entry["name"] for entry in client.get("/subcategories").json()]
    assert visible == ["Door Bottles"]


def test_export_then_import_restores_state(client, auth_headers):
    client.post("/subcategories", json={"name": "Snacks", "category": "Grocery"}, headers=auth_headers)
    client.post("/inventory", json={"name": "Crisps", "subcategory": "Snacks"}, headers=auth_headers)
    exported = client.get("/export", headers=auth_headers).json()

    client.delete("/subcategories/Snacks", headers=auth_headers)
    client.post("/import", json=exported, headers=auth_headers)

    assert [item["name"] for item in client.get("/inventory").json()] == ["Crisps"]
    assert [entry["name"] for entry in client.get("/subcategories").json()] == ["Snacks"]


def test_insights_summary(client, auth_headers):
    client.post(
        "/inventory",
        json={"name": "Milk", "subcategory": "Door Bottles", "quantity": 0.1},
        headers=auth_headers,
    )

    summary = client.get("/insights").json()

    assert summary["total_items"] == 1
    assert summary["low_stock_count"] == 1
    assert summary["items_needing_attention"] == ["Milk"]
