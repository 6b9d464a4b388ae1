"""Tests for the visited-region state machine."""

from __future__ import annotations

import logging
import random

import pytest

from lga_tracker.errors import PersistenceWriteError
from lga_tracker.persistence import MemoryStore, SQLiteStore
from lga_tracker.visit_store import VisitStore


class FailingWriteStore(MemoryStore):
    def save(self, ids):
        raise PersistenceWriteError("disk full")


@pytest.fixture
def store(memory_store) -> VisitStore:
    s = VisitStore(memory_store)
    s.load()
    return s


class TestToggle:
    def test_toggle_adds_then_removes(self, store):
        assert store.toggle(5) is True
        assert store.is_visited(5)
        assert store.toggle(5) is False
        assert not store.is_visited(5)

    @pytest.mark.parametrize("region_id", [0, 1, 42, 2**40])
    def test_double_toggle_is_identity(self, store, region_id):
        store.toggle(7)
        before = store.visited_ids()
        store.toggle(region_id)
        store.toggle(region_id)
        assert store.visited_ids() == before

    def test_odd_toggle_count_consistency(self, store):
        rng = random.Random(1234)
        counts = {}
        for _ in range(500):
            rid = rng.randint(1, 25)
            store.toggle(rid)
            counts[rid] = counts.get(rid, 0) + 1

        odd = {rid for rid, n in counts.items() if n % 2 == 1}
        assert store.visited_ids() == odd
        assert store.size() == len(odd)
        assert len(store) == len(odd)

    def test_every_toggle_writes_full_snapshot(self, memory_store):
        store = VisitStore(memory_store)
        store.toggle(2)
        store.toggle(1)
        assert memory_store.raw == "[1, 2]"
        store.toggle(2)
        assert memory_store.raw == "[1]"
        assert memory_store.writes == 3

    def test_clear(self, store, memory_store):
        store.toggle(1)
        store.toggle(2)
        store.clear()
        assert store.size() == 0
        assert memory_store.raw == "[]"


class TestLoad:
    def test_round_trip_in_fresh_store(self, tmp_path):
        db = tmp_path / "visits.db"
        first = VisitStore(SQLiteStore(db))
        first.load()
        for rid in (3, 1, 4, 1, 5):
            first.toggle(rid)

        second = VisitStore(SQLiteStore(db))
        second.load()
        assert second.visited_ids() == first.visited_ids() == frozenset({3, 4, 5})

    def test_toggle_then_reload_observes_toggle(self, memory_store):
        VisitStore(memory_store).toggle(9)
        fresh = VisitStore(memory_store)
        fresh.load()
        assert fresh.is_visited(9)

    @pytest.mark.parametrize("raw", [None, "", "not json", "{}", '{"ids": [1]}', "7", "null"])
    def test_malformed_data_is_empty(self, raw):
        store = VisitStore(MemoryStore(raw))
        store.load()
        assert store.size() == 0

    def test_duplicates_and_junk_dropped(self):
        store = VisitStore(MemoryStore('[1, 1, "2", "x", null, true, 3.0, 3.5, {"a": 1}, 2]'))
        store.load()
        assert store.visited_ids() == frozenset({1, 2, 3})
        assert store.size() == 3

    def test_load_replaces_state(self, memory_store):
        store = VisitStore(memory_store)
        store.toggle(1)
        memory_store.raw = "[8]"
        store.load()
        assert store.visited_ids() == frozenset({8})


class TestWriteFailure:
    def test_toggle_kept_and_warning_logged(self, caplog):
        store = VisitStore(FailingWriteStore())
        with caplog.at_level(logging.WARNING, logger="lga_tracker.visit_store"):
            assert store.toggle(3) is True

        assert store.is_visited(3)
        assert isinstance(store.last_write_error, PersistenceWriteError)
        assert any(r.levelno == logging.WARNING for r in caplog.records)

    def test_save_reports_success(self, memory_store):
        store = VisitStore(memory_store)
        assert store.save() is True
        assert store.last_write_error is None


class TestObservers:
    def test_listener_sees_saved_state(self, memory_store):
        store = VisitStore(memory_store)
        seen = []
        store.subscribe(lambda s: seen.append((s.visited_ids(), memory_store.raw)))

        store.toggle(4)

        assert seen == [(frozenset({4}), "[4]")]

    def test_unsubscribe(self, store):
        seen = []
        unsubscribe = store.subscribe(lambda s: seen.append(s.size()))
        store.toggle(1)
        unsubscribe()
        store.toggle(2)
        assert seen == [1]

    def test_load_notifies(self, memory_store):
        store = VisitStore(memory_store)
        seen = []
        store.subscribe(lambda s: seen.append(s.size()))
        store.load()
        assert seen == [0]


def test_stale_ids(store):
    store.toggle(1)
    store.toggle(99)
    assert store.stale_ids({1, 2}) == frozenset({99})
