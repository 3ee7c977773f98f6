"""Shared fixtures: key-value backends, store, service and an HTTP client."""

import pytest
from fastapi.testclient import TestClient
from sqlmodel import create_engine
from sqlmodel.pool import StaticPool

from taskboard.backends import MemoryKeyValueStore, get_kv_store
from taskboard.database import SqlKeyValueStore
from taskboard.main import app
from taskboard.service import TaskService
from taskboard.store import TaskStore


@pytest.fixture(name="memory_kv")
def memory_kv_fixture():
    return MemoryKeyValueStore()


@pytest.fixture(name="sqlite_kv")
def sqlite_kv_fixture():
    """Create a fresh in-memory SQLite backend for each test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    kv = SqlKeyValueStore(engine)
    yield kv
    kv.close()


@pytest.fixture(name="kv", params=["memory", "sqlite"])
def kv_fixture(request):
    """Run the test once per backend."""
    return request.getfixturevalue(f"{request.param}_kv")


@pytest.fixture(name="store")
def store_fixture(kv):
    return TaskStore(kv)


@pytest.fixture(name="service")
def service_fixture(memory_kv):
    return TaskService(TaskStore(memory_kv))


@pytest.fixture(name="client")
def client_fixture(sqlite_kv):
    """Create a test client whose store is the in-memory SQLite backend."""
    app.dependency_overrides[get_kv_store] = lambda: sqlite_kv
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
