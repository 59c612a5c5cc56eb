"""Shared pytest fixtures for the Larder test suite."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from itertools import count
from typing import Callable, Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from larder.config import Settings, get_settings
from larder.db.gateway import InMemoryGateway
from larder.db.repository import reset_repository_state
from larder.engine.activity import ActivityLedger
from larder.engine.facade import LarderEngine
from larder.engine.items import ItemStore
from larder.engine.shopping import ShoppingListEngine
from larder.engine.taxonomy import TaxonomyResolver
from larder.server.app import create_app


class FakeClock:
    """Deterministic clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now += timedelta(**delta)
        return self.now


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Ensure each test uses an isolated SQLite database location."""

    db_path = tmp_path / "test_larder.db"
    monkeypatch.setenv("LARDER_DATABASE_PATH", str(db_path))
    monkeypatch.delenv("LARDER_API_TOKEN", raising=False)
    get_settings.cache_clear()
    reset_repository_state()
    yield
    reset_repository_state()
    monkeypatch.delenv("LARDER_DATABASE_PATH", raising=False)
    get_settings.cache_clear()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture()
def id_factory() -> Callable[[], str]:
    counter = count(1)
    return lambda: f"id-{next(counter)}"


@pytest.fixture()
def store(clock, id_factory) -> ItemStore:
    return ItemStore(clock=clock, id_factory=id_factory)


@pytest.fixture()
def taxonomy(store, id_factory) -> TaxonomyResolver:
    resolver = TaxonomyResolver(store, id_factory=id_factory)
    store.locator = resolver.location_of
    return resolver


@pytest.fixture()
def shopping(store, taxonomy, id_factory) -> ShoppingListEngine:
    return ShoppingListEngine(store, id_factory=id_factory)


@pytest.fixture()
def ledger(store, clock, id_factory) -> ActivityLedger:
    return ActivityLedger(store, clock=clock, id_factory=id_factory)


@pytest.fixture()
def gateway() -> InMemoryGateway:
    return InMemoryGateway()


@pytest.fixture()
def engine(gateway, clock) -> LarderEngine:
    return LarderEngine(gateway, Settings(), clock=clock)


@pytest.fixture()
def app() -> Generator[FastAPI, None, None]:
    """Create a new FastAPI app backed by the per-test SQLite database."""

    application = create_app()
    yield application
    application.dependency_overrides.clear()


@pytest.fixture()
def client(app) -> TestClient:
    """Return a test client bound to the FastAPI app."""

    return TestClient(app)


@pytest.fixture()
def auth_headers() -> dict[str, str]:
    token = get_settings().api_token
    if not token:
        return {}
    return {"Authorization": f"Bearer {token}"}
