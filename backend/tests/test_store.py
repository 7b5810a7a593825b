"""
Test Dataset Store

Storage, ownership filtering and time-to-live expiry.
"""

import pytest

from core import store as store_module
from core.dataset import Dataset
from core.store import DatasetStore


class FakeClock:
    """Stands in for the time module inside the store."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now
        self.ticks = 0

    def time(self) -> float:
        return self.now

    def perf_counter_ns(self) -> int:
        self.ticks += 1
        return self.ticks

    def advance(self, hours: float):
        self.now += hours * 3600


@pytest.fixture
def clock(monkeypatch):
    fake = FakeClock()
    monkeypatch.setattr(store_module, "time", fake)
    return fake


@pytest.fixture
def store(clock):
    return DatasetStore(ttl_hours=1)


def make_dataset(name: str = "data.csv") -> Dataset:
    return Dataset.from_records(name, [{"a": 1}, {"a": 2}])


class TestDatasetStore:
    def test_create_and_get(self, store):
        dataset = make_dataset()

        dataset_id = store.create(dataset, user_id="u1")
        stored = store.get(dataset_id)

        assert stored.dataset is dataset
        assert stored.user_id == "u1"
        assert store.get_dataset(dataset_id) is dataset

    def test_ids_are_unique(self, store):
        ids = {store.create(make_dataset()) for _ in range(5)}

        assert len(ids) == 5

    def test_missing_id(self, store):
        assert store.get("nope") is None
        assert store.get_dataset("nope") is None

    def test_expiry(self, store, clock):
        dataset_id = store.create(make_dataset())

        clock.advance(0.5)
        assert store.get(dataset_id) is not None

        clock.advance(1)
        assert store.get(dataset_id) is None

    def test_list_filters_by_user_newest_first(self, store, clock):
        first = store.create(make_dataset("a.csv"), user_id="u1")
        clock.advance(0.1)
        store.create(make_dataset("b.csv"), user_id="u2")
        clock.advance(0.1)
        third = store.create(make_dataset("c.csv"), user_id="u1")

        listed = store.list_datasets("u1")

        assert [s.dataset_id for s in listed] == [third, first]
        assert len(store.list_datasets()) == 3

    def test_list_drops_expired(self, store, clock):
        store.create(make_dataset("old.csv"))
        clock.advance(2)
        fresh = store.create(make_dataset("new.csv"))

        assert [s.dataset_id for s in store.list_datasets()] == [fresh]

    def test_delete(self, store):
        dataset_id = store.create(make_dataset())

        assert store.delete(dataset_id)
        assert not store.delete(dataset_id)
        assert store.get(dataset_id) is None

    def test_clear(self, store):
        store.create(make_dataset())
        store.create(make_dataset())

        assert store.clear() == 2
        assert store.list_datasets() == []
