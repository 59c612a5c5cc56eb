"""Integration tests for the activity log and undo."""

from __future__ import annotations

from fastapi import status


def test_undo_quantity_change(client, auth_headers):
    item = client.post(
        "/inventory",
        json={"name": "Milk", "subcategory": "Door Bottles", "quantity": 0.8},
        headers=auth_headers,
    ).json()
    client.patch(f"/inventory/{item['id']}", json={"quantity": 0.1}, headers=auth_headers)

    entries = client.get("/activity").json()
    assert len(entries) == 1
    entry = entries[0]
    assert entry["action"] == "updateQuantity"
    assert (entry["details"]["previousValue"], entry["details"]["newValue"]) == (0.8, 0.1)

    response = client.post(f"/activity/{entry['id']}/undo", headers=auth_headers)
    assert response.json() == {"undone": True}
    assert client.get("/inventory").json()[0]["quantity"] == 0.8
    assert client.get("/activity").json()[0]["isUndone"] is True

    response = client.post(f"/activity/{entry['id']}/undo", headers=auth_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_undo_removal_conflict(client, auth_headers):
    item = client.post(
        "/inventory",
        json={"name": "Milk", "subcategory": "Door Bottles"},
        headers=auth_headers,
    ).json()
    client.delete(f"/inventory/{item['id']}", headers=auth_headers)
    removal = client.get("/activity").json()[0]
    client.post("/inventory", json={"name": "MILK", "subcategory": "Freezer"}, headers=auth_headers)

    response = client.post(f"/activity/{removal['id']}/undo", headers=auth_headers)

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["location"] == "Fridge > Freezer"


def test_clear_activity(client, auth_headers):
    client.post("/inventory", json={"name": "Milk", "subcategory": "Door Bottles"}, headers=auth_headers)

    response = client.delete("/activity", headers=auth_headers)

    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert client.get("/activity").json() == []
