"""Integration tests covering request ID propagation and middleware."""

from __future__ import annotations


def test_request_id_echoed_when_provided(client):
    request_id = "test-request-123"
    response = client.get("/inventory", headers={"X-Request-ID": request_id})
    assert response.status_code == 200
    assert response.headers["X-Request-ID"] == request_id


def test_request_id_generated_when_missing(client):
    response = client.get("/inventory")
    assert response.status_code == 200
    generated = response.headers.get("X-Request-ID")
    assert generated
    assert len(generated) >= 8


def test_request_id_echoed_on_engine_errors(client, auth_headers):
    payload = {"name": "Milk", "subcategory": "Door Bottles"}
    assert client.post("/inventory", json=payload, headers=auth_headers).status_code == 201

    conflict = client.post(
        "/inventory", json=payload, headers={**auth_headers, "X-Request-ID": "trace-409"}
    )
    assert conflict.status_code == 409
    assert conflict.headers["X-Request-ID"] == "trace-409"
    assert conflict.json()["location"] == "Fridge > Door Bottles"

    missing = client.delete("/inventory/missing", headers={**auth_headers, "X-Request-ID": "trace-404"})
    assert missing.status_code == 404
    assert missing.headers["X-Request-ID"] == "trace-404"
