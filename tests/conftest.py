from __future__ import annotations

from datetime import datetime

import pytest

from src.rfid_timeclock.rfid_timeclock.container import build_container
from src.rfid_timeclock.rfid_timeclock.store.memory_store import InMemoryTimeclockStore


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 2, 2, 9, 0, 0)


@pytest.fixture
def store() -> InMemoryTimeclockStore:
    return InMemoryTimeclockStore(lock_timeout_seconds=5)


@pytest.fixture
def container(store):
    return build_container(store=store, debounce_seconds=1.0)


@pytest.fixture
def alice(container):
    return container.employee_service.enroll("Alice", "AB12")
