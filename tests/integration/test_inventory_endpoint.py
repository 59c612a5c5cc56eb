"""Integration tests for the inventory endpoints."""

from __future__ import annotations

from fastapi import status
from fastapi.testclient import TestClient

from larder.server.app import create_app


def _create(client, auth_headers, name, subcategory="Door Bottles", quantity=0.5):
    response = client.post(
        "/inventory",
        json={"name": name, "subcategory": subcategory, "quantity": quantity},
        headers=auth_headers,
    )
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()


def test_inventory_starts_empty(client):
    response = client.get("/inventory")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == []


def test_inventory_create_update_delete_flow(client, auth_headers):
    created = _create(client, auth_headers, "  Milk ")
    item_id = created["id"]
    assert created["name"] == "Milk"
    assert {"isIgnored", "isCustom", "lastUpdated", "purchaseHistory", "order"}.issubset(created)

    response = client.patch(
        f"/inventory/{item_id}",
        json={"name": "Oat Milk", "quantity": 0.2},
        headers=auth_headers,
    )
    assert response.status_code == status.HTTP_200_OK
    assert (response.json()["name"], response.json()["quantity"]) == ("Oat Milk", 0.2)

    response = client.post(f"/inventory/{item_id}/restock", headers=auth_headers)
    assert response.json()["quantity"] == 1.0
    assert len(response.json()["purchaseHistory"]) == 1

    response = client.post(f"/inventory/{item_id}/toggle-ignore", headers=auth_headers)
    assert response.json()["isIgnored"] is True

    response = client.delete(f"/inventory/{item_id}", headers=auth_headers)
    assert response.status_code == status.HTTP_204_NO_CONTENT

    assert client.get("/inventory").json() == []
    response = client.delete(f"/inventory/{item_id}", headers=auth_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_duplicate_name_reports_existing_location(client, auth_headers):
    _create(client, auth_headers, "Milk")

    response = client.post(
        "/inventory",
        json={"name": "milk", "subcategory": "Freezer"},
        headers=auth_headers,
    )

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["location"] == "Fridge > Door Bottles"


def test_invalid_payload_is_rejected(client, auth_headers):
    response = client.post(
        "/inventory",
        json={"name": "Milk", "quantity": 0.5},
        headers=auth_headers,
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["detail"][0]["loc"][-1] == "subcategory"


def test_out_of_range_quantities_are_clamped(client, auth_headers):
    created = _create(client, auth_headers, "Milk", quantity=2)
    assert created["quantity"] == 1.0

    response = client.patch(f"/inventory/{created['id']}", json={"quantity": 1.7}, headers=auth_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["quantity"] == 1.0

    response = client.patch(f"/inventory/{created['id']}", json={"quantity": -0.4}, headers=auth_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["quantity"] == 0.0


def test_unknown_item_returns_404(client, auth_headers):
    assert client.patch("/inventory/nope", json={"quantity": 0.1}, headers=auth_headers).status_code == 404
    assert client.post("/inventory/nope/restock", headers=auth_headers).status_code == 404


def test_filters_and_manual_order(client, auth_headers):
    milk = _create(client, auth_headers, "Milk")
    juice = _create(client, auth_headers, "Juice")
    _create(client, auth_headers, "Basmati", subcategory="Rice Items")

    fridge = client.get("/inventory", params={"category": "Fridge"}).json()
    assert {item["name"] for item in fridge} == {"Milk", "Juice"}

    response = client.post(
        "/inventory/order",
        json={"updates": {milk["id"]: 1, juice["id"]: 0}},
        headers=auth_headers,
    )
    assert response.json() == {"changed": True}

    listed = client.get("/inventory", params={"subcategory": "Door Bottles"}).json()
    assert [item["name"] for item in listed] == ["Juice", "Milk"]


def test_hidden_subcategory_items_need_include_hidden(client, auth_headers):
    document = {
        "inventoryItems": [{"id": "1", "name": "Shampoo", "subcategory": "Head"}],
        "hiddenBuiltinSubcategories": ["Head"],
    }
    client.post("/import", json=document, headers=auth_headers)

    assert client.get("/inventory").json() == []
    listed = client.get("/inventory", params={"include_hidden": True}).json()
    assert [item["name"] for item in listed] == ["Shampoo"]


def test_state_survives_application_restart(client, auth_headers):
    _create(client, auth_headers, "Milk")

    restarted = TestClient(create_app())

    assert [item["name"] for item in restarted.get("/inventory").json()] == ["Milk"]
