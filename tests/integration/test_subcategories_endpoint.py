"""Integration tests for subcategory management."""

from __future__ import annotations

from fastapi import status


def _names(client, category):
    return [entry["name"] for entry in client.get("/subcategories", params={"category": category}).json()]


def test_builtins_listed_by_category(client):
    response = client.get("/subcategories")

    assert response.status_code == status.HTTP_200_OK
    assert len(response.json()) == 19
    assert _names(client, "Personal Care") == ["Face", "Body", "Head"]


def test_custom_subcategory_lifecycle(client, auth_headers):
    response = client.post(
        "/subcategories",
        json={"name": "Snacks", "category": "Grocery"},
        headers=auth_headers,
    )
    assert response.status_code == status.HTTP_201_CREATED
    custom = response.json()
    assert (custom["icon"], custom["color"]) == ("basket", "#34C759")

    client.post(
        "/inventory",
        json={"name": "Crisps", "subcategory": "Snacks"},
        headers=auth_headers,
    )

    response = client.put(
        f"/subcategories/{custom['id']}",
        json={"name": "Treats", "icon": "cookie", "color": "#AA0000"},
        headers=auth_headers,
    )
    assert response.json()["name"] == "Treats"
    assert client.get("/inventory").json()[0]["subcategory"] == "Treats"

    response = client.delete(f"/subcategories/{custom['id']}", headers=auth_headers)
    assert response.json() == {"removedItems": 1}
    assert "Treats" not in _names(client, "Grocery")
    assert client.get("/inventory").json() == []


def test_conflicting_name_is_rejected(client, auth_headers):
    response = client.post(
        "/subcategories",
        json={"name": " freezer ", "category": "Grocery"},
        headers=auth_headers,
    )

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["location"] == "Fridge > Freezer"


def test_promote_and_remove_builtin(client, auth_headers):
    client.post("/inventory", json={"name": "Ice", "subcategory": "Freezer"}, headers=auth_headers)

    response = client.post(
        "/subcategories/promote",
        json={
            "builtinName": "Freezer",
            "newName": "Deep Freeze",
            "icon": "ice",
            "color": "#00FFFF",
            "category": "Fridge",
        },
        headers=auth_headers,
    )
    assert response.status_code == status.HTTP_201_CREATED
    assert "Freezer" not in _names(client, "Fridge")
    assert "Deep Freeze" in _names(client, "Fridge")
    assert client.get("/inventory").json()[0]["subcategory"] == "Deep Freeze"

    response = client.delete("/subcategories/Tray Section", headers=auth_headers)
    assert response.json() == {"removedItems": 0}
    assert "Tray Section" not in _names(client, "Fridge")


def test_unknown_subcategory_returns_404(client, auth_headers):
    assert client.delete("/subcategories/Attic", headers=auth_headers).status_code == 404
    response = client.post(
        "/subcategories/promote",
        json={"builtinName": "Attic", "newName": "Loft", "icon": "x", "color": "#000", "category": "Grocery"},
        headers=auth_headers,
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_subcategory_order(client, auth_headers):
    response = client.put(
        "/subcategories/order/Personal Care",
        json={"names": ["Head", "Face"]},
        headers=auth_headers,
    )

    assert response.json() == ["Head", "Face", "Body"]
    assert _names(client, "Personal Care") == ["Head", "Face", "Body"]
