from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from main import create_app
from podio.core.config import Settings
from podio.db import collections
from podio.db.memory_store import MemoryStore, MemoryWriteBatch
from podio.db.sql_store import SqlStore
from podio.db.store import StoreError
from podio.schemas.race import Prediction
from podio.scripts.create_admin import create_admin_user

FIXED_NOW = datetime(2026, 3, 15, 16, 0, tzinfo=timezone.utc)

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin123"


class ExplodingBatch(MemoryWriteBatch):
    def _apply(self, ops):
        raise StoreError("commit rechazado")


class FailingBatchStore(MemoryStore):
    """MemoryStore cuyos batches nunca llegan a confirmarse."""

    def batch(self):
        return ExplodingBatch(self)


def add_prediction(store, uid, race_id, positions, submitted_at=None, key=None):
    prediction = Prediction(
        uid=uid,
        race_id=race_id,
        positions=positions,
        submitted_at=submitted_at or FIXED_NOW,
    )
    store.set(
        collections.PREDICTIONS,
        key or collections.prediction_key(race_id, uid),
        prediction.model_dump(mode="json"),
    )
    return prediction


def add_user(store, uid, username):
    store.set(collections.USERS, uid, {"uid": uid, "username": username})


@pytest.fixture()
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def sql_store(tmp_path) -> SqlStore:
    store = SqlStore(f"sqlite:///{tmp_path / 'podio_test.db'}")
    store.create_tables()
    yield store
    store.close()


@pytest.fixture(params=["memory", "sql"])
def any_store(request, tmp_path):
    if request.param == "memory":
        yield MemoryStore()
        return
    store = SqlStore(f"sqlite:///{tmp_path / 'podio_any.db'}")
    store.create_tables()
    yield store
    store.close()


@pytest.fixture()
def failing_store() -> FailingBatchStore:
    return FailingBatchStore()


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'podio_app.db'}",
        secret_key="test-secret",
        log_level="DEBUG",
    )


def _client(settings, store):
    app = create_app(settings, store=store)
    return TestClient(app)


@pytest.fixture()
def client(settings, memory_store):
    with _client(settings, memory_store) as c:
        yield c


@pytest.fixture()
def admin_headers(client, memory_store) -> dict[str, str]:
    create_admin_user(memory_store, ADMIN_EMAIL, "ADMIN", ADMIN_PASSWORD)
    response = client.post("/auth/login", json={"identifier": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def register_and_login(client, email, username, password="secreto") -> dict[str, str]:
    response = client.post("/auth/register", json={"email": email, "username": username, "password": password})
    assert response.status_code == 201
    response = client.post("/auth/login", json={"identifier": username, "password": password})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture()
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture()
def later():
    return FIXED_NOW + timedelta(minutes=5)
