"""Security-related integration tests."""

from __future__ import annotations

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from larder.config import get_settings
from larder.db.repository import reset_repository_state
from larder.server.app import create_app


@pytest.fixture()
def secure_client(tmp_path, monkeypatch) -> TestClient:
    db_path = tmp_path / "secure.db"
    monkeypatch.setenv("LARDER_DATABASE_PATH", str(db_path))
    monkeypatch.setenv("LARDER_API_TOKEN", "secret-token")
    get_settings.cache_clear()
    reset_repository_state()
    app = create_app()
    client = TestClient(app)
    yield client
    monkeypatch.delenv("LARDER_API_TOKEN", raising=False)
    reset_repository_state()
    get_settings.cache_clear()


def test_mutations_require_api_token(secure_client):
    payload = {"name": "Lentils", "subcategory": "Pulses"}
    response = secure_client.post("/inventory", json=payload)
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

    headers = {"Authorization": "Bearer secret-token"}
    response = secure_client.post("/inventory", json=payload, headers=headers)
    assert response.status_code == status.HTTP_201_CREATED


def test_api_key_header_is_accepted(secure_client):
    response = secure_client.post("/shopping/generate", headers={"X-API-Key": "wrong"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

    response = secure_client.post("/shopping/misc", json={"name": "Eggs"}, headers={"X-API-Key": "secret-token"})
    assert response.status_code == status.HTTP_200_OK


def test_export_requires_token_but_reads_do_not(secure_client):
    assert secure_client.get("/export").status_code == status.HTTP_401_UNAUTHORIZED
    assert secure_client.get("/inventory").status_code == status.HTTP_200_OK
