"""Pytest fixtures for backend tests."""

from __future__ import annotations

import os
from collections.abc import Iterator
from typing import Any

import pytest
from fastapi.testclient import TestClient


def _set_default_env() -> None:
    os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
    os.environ.setdefault("SUPABASE_ANON_KEY", "anon-key")
    os.environ.setdefault("SUPABASE_SERVICE_KEY", "service-key")
    os.environ.setdefault("STORE_BACKEND", "memory")
    os.environ.setdefault("ENABLE_SCHEDULER", "false")
    os.environ.setdefault("PHONE_COUNTRY_CODE", "92")
    os.environ.setdefault("PHONE_TRUNK_PREFIX", "0")


_set_default_env()

from ballot.store.memory import MemoryStore  # noqa: E402

START_MS = 1_767_225_600_000  # 2026-01-01T00:00:00Z

AMIR_PHONE = "03001234567"
ZARA_PHONE = "+92 333 7654321"


class FrozenClock:
    """Deterministic epoch-millisecond clock."""

    def __init__(self, start_ms: int = START_MS) -> None:
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


def seed_election(store: MemoryStore) -> None:
    """Write a small election: two categories, three candidates, three voters."""
    records: dict[str, Any] = {
        "categories/president": {"name": "President", "active": True},
        "categories/treasurer": {"name": "Treasurer", "active": True},
        "candidates/alice": {"name": "Alice", "category_id": "president", "active": True},
        "candidates/bob": {"name": "Bob", "category_id": "president", "active": False},
        "candidates/carol": {"name": "Carol", "category_id": "treasurer", "active": True},
        "voters/amir": {
            "username": "Amir",
            "phone": AMIR_PHONE,
            "active": True,
            "has_voted": False,
        },
        "voters/zara": {
            "username": "Zara",
            "phone": ZARA_PHONE,
            "active": True,
            "has_voted": False,
        },
        "voters/sam": {
            "username": "Sam",
            "phone": "03110000000",
            "active": False,
            "has_voted": False,
        },
        "voters-by-phone/03001234567": "amir",
        "voters-by-phone/923337654321": "zara",
        "voters-by-phone/03110000000": "sam",
    }
    for path, value in records.items():
        store.set(path, value)


@pytest.fixture
def clock() -> FrozenClock:
    """Clock pinned to 2026-01-01 that tests can advance."""
    return FrozenClock()


@pytest.fixture
def store() -> MemoryStore:
    """In-memory store seeded with the sample election."""
    memory = MemoryStore()
    seed_election(memory)
    return memory


@pytest.fixture
def client(store: MemoryStore) -> Iterator[TestClient]:
    """Create a FastAPI test client bound to the seeded store."""
    from ballot.dependencies import OperatorSession, get_operator, get_store_dependency
    from ballot.main import app

    app.dependency_overrides[get_store_dependency] = lambda: store
    app.dependency_overrides[get_operator] = lambda: OperatorSession(
        user_id="operator-1", email="ops@example.com"
    )
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
