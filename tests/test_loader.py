"""Tests for background registry loading and supersession."""

from __future__ import annotations

import threading

import pytest

from conftest import StaticProvider, payload, relation, square_elements, square_way_ids
from lga_tracker.errors import FetchError
from lga_tracker.loader import RegistryLoader


def single_region_payload(rid: int, name: str):
    return payload(relation(rid, square_way_ids(0), name=name), *square_elements(0, 0.0, 0.0))


class FailingProvider:
    def fetch(self):
        raise FetchError("provider down")


class ScriptedProvider:
    """Returns (or raises) one scripted result per call; the first call waits on `gate`."""

    def __init__(self, *results):
        self.results = list(results)
        self.gate = threading.Event()
        self.calls = 0

    def fetch(self):
        self.calls += 1
        n = self.calls
        if n == 1:
            self.gate.wait(timeout=5)
        result = self.results[n - 1]
        if isinstance(result, Exception):
            raise result
        return result


class TestLoad:
    def test_starts_unloaded(self, ab_payload):
        loader = RegistryLoader(StaticProvider(ab_payload))
        assert not loader.loaded
        assert loader.registry is None

    def test_load_commits(self, ab_payload):
        loader = RegistryLoader(StaticProvider(ab_payload))
        registry = loader.load()
        assert loader.loaded
        assert loader.registry is registry
        assert registry.count() == 2
        assert loader.error is None

    def test_loaded_with_zero_regions_is_still_loaded(self):
        loader = RegistryLoader(StaticProvider({"elements": []}))
        loader.load()
        assert loader.loaded
        assert loader.registry.count() == 0

    def test_fetch_error_leaves_unloaded(self):
        loader = RegistryLoader(FailingProvider())
        with pytest.raises(FetchError):
            loader.load()
        assert not loader.loaded
        assert loader.registry is None
        assert isinstance(loader.error, FetchError)

    def test_malformed_payload_leaves_unloaded(self):
        loader = RegistryLoader(StaticProvider({"oops": True}))
        with pytest.raises(FetchError):
            loader.load()
        assert not loader.loaded

    def test_failed_retry_keeps_previous_registry(self, ab_payload):
        provider = StaticProvider(ab_payload)
        loader = RegistryLoader(provider)
        first = loader.load()

        provider.data = {"remark": "runtime error"}
        with pytest.raises(FetchError):
            loader.load()

        assert loader.registry is first
        assert loader.error is not None

    def test_reload_replaces_wholesale(self, ab_payload):
        provider = StaticProvider(ab_payload)
        loader = RegistryLoader(provider)
        loader.load()

        provider.data = single_region_payload(9, "Solo")
        loader.load()

        assert loader.registry.ids() == frozenset({9})

    def test_listener_notified_on_commit(self, ab_payload):
        loader = RegistryLoader(StaticProvider(ab_payload))
        seen = []
        loader.subscribe(lambda registry: seen.append(registry.count()))
        loader.load()
        assert seen == [2]

    @pytest.mark.parametrize(
        "field, value",
        [("tags", "boundary"), ("members", ["x"]), ("role", ["outer"])],
    )
    def test_malformed_relation_does_not_break_load(self, field, value):
        bad = relation(2, square_way_ids(0), name="Bad")
        if field == "role":
            for member in bad["members"]:
                member["role"] = value
        else:
            bad[field] = value
        data = payload(relation(1, square_way_ids(0), name="Good"), bad, *square_elements(0, 0.0, 0.0))

        loader = RegistryLoader(StaticProvider(data))
        try:
            registry = loader.load_async().result(timeout=5)
        finally:
            loader.shutdown()

        assert loader.loaded
        assert loader.error is None
        assert registry.ids() == frozenset({1})

    def test_unexpected_parse_failure_becomes_fetch_error(self, ab_payload, monkeypatch):
        def broken(payload, admin_level=None):
            raise AttributeError("'str' object has no attribute 'get'")

        monkeypatch.setattr("lga_tracker.loader.build_registry", broken)
        loader = RegistryLoader(StaticProvider(ab_payload))

        with pytest.raises(FetchError, match="Malformed boundary payload"):
            loader.load()
        assert not loader.loaded
        assert isinstance(loader.error, FetchError)


class TestLoadAsync:
    def test_background_load(self, ab_payload):
        loader = RegistryLoader(StaticProvider(ab_payload))
        try:
            registry = loader.load_async().result(timeout=5)
        finally:
            loader.shutdown()
        assert loader.registry is registry
        assert registry.count() == 2

    def test_background_failure_surfaces(self):
        loader = RegistryLoader(FailingProvider())
        try:
            future = loader.load_async()
            with pytest.raises(FetchError):
                future.result(timeout=5)
        finally:
            loader.shutdown()
        assert not loader.loaded
        assert loader.error is not None

    def test_superseded_result_discarded(self):
        provider = ScriptedProvider(single_region_payload(1, "Old"), single_region_payload(2, "New"))
        loader = RegistryLoader(provider)
        try:
            stale = loader.load_async()
            latest = loader.load_async()
            provider.gate.set()

            assert stale.result(timeout=5) is None
            registry = latest.result(timeout=5)
        finally:
            loader.shutdown()

        assert loader.registry is registry
        assert registry.ids() == frozenset({2})

    def test_superseded_failure_ignored(self):
        provider = ScriptedProvider(FetchError("late failure"), single_region_payload(2, "New"))
        loader = RegistryLoader(provider)
        try:
            stale = loader.load_async()
            latest = loader.load_async()
            provider.gate.set()

            assert stale.result(timeout=5) is None
            latest.result(timeout=5)
        finally:
            loader.shutdown()

        assert loader.loaded
        assert loader.error is None
