"""Integration tests for metrics and health endpoints."""

from __future__ import annotations


def test_metrics_endpoint_available(client):
    client.get("/inventory")

    response = client.get("/metrics")
    assert response.status_code == 200
    body = response.content.decode()
    assert "larder_http_requests_total" in body


def test_engine_operations_are_counted(client, auth_headers):
    client.post("/inventory", json={"name": "Milk", "subcategory": "Door Bottles"}, headers=auth_headers)

    body = client.get("/metrics").content.decode()

    assert 'larder_engine_operations_total{operation="add_item",result="ok"}' in body


def test_healthz_reports_pending_tables(client):
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "version": "0.1.0", "pendingTables": []}
