"""
Pytest configuration and shared fixtures.

This file adds the project root to the Python path so that tests can import
the domain, repositories, services and api modules, and provides a wired
Engine over the in-memory store with controllable clocks.
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Set, Tuple

import pytest

# Add the project root to the Python path so tests can import domain, services, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from domain.errors import StoreError  # noqa: E402
from repositories.memory_store import InMemoryRecordStore  # noqa: E402
from repositories.schema import UNIQUE_CONSTRAINTS  # noqa: E402
from repositories.store import RangeFilter  # noqa: E402
from services.engine import Engine  # noqa: E402
from services.identity import FixedIdentityProvider  # noqa: E402
from services.settings import EngineSettings  # noqa: E402

T0 = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """UTC clock that only moves when told to."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FakeMillis:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class FlakyStore:
    """Wraps a store and raises StoreError for selected (operation, table) pairs."""

    def __init__(self, inner: InMemoryRecordStore) -> None:
        self.inner = inner
        self.failing: Set[Tuple[str, str]] = set()
        self.calls: list = []

    def fail(self, operation: str, table: str) -> None:
        self.failing.add((operation, table))

    def heal(self) -> None:
        self.failing.clear()

    def _check(self, operation: str, table: str) -> None:
        self.calls.append((operation, table))
        if (operation, table) in self.failing:
            raise StoreError(f"simulated {operation} failure on {table}")

    def rows(self, table: str):
        return self.inner.rows(table)

    def find(
        self,
        table: str,
        equals: Mapping[str, Any],
        *,
        ranges: Sequence[RangeFilter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ):
        self._check("find", table)
        return self.inner.find(table, equals, ranges=ranges, order_by=order_by, descending=descending, limit=limit)

    def insert(self, table: str, record: Mapping[str, Any]):
        self._check("insert", table)
        return self.inner.insert(table, record)

    def update(self, table: str, record_id: str, patch: Mapping[str, Any]) -> None:
        self._check("update", table)
        self.inner.update(table, record_id, patch)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def millis() -> FakeMillis:
    return FakeMillis(start=1_000_000.0)


@pytest.fixture
def memory_store() -> InMemoryRecordStore:
    return InMemoryRecordStore(UNIQUE_CONSTRAINTS)


@pytest.fixture
def store(memory_store: InMemoryRecordStore) -> FlakyStore:
    return FlakyStore(memory_store)


@pytest.fixture
def engine(store: FlakyStore, clock: FakeClock, millis: FakeMillis) -> Engine:
    return Engine(
        store=store,
        settings=EngineSettings(store_backend="memory"),
        clock=clock,
        millis_clock=millis,
    )


@pytest.fixture
def u1() -> FixedIdentityProvider:
    return FixedIdentityProvider("u1")
