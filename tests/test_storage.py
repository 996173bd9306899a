"""Key-value stores and the typed snapshot/settings/error accessors."""

import asyncio

import pytest

from marketpulse.models import EquityMetric, ErrorState, Settings, Snapshot
from marketpulse.storage import DuckDBStore, MemoryStore
from marketpulse.storage.metrics import (
    METRICS_KEY,
    clear_all_storage,
    clear_errors,
    get_errors,
    get_metrics,
    get_settings,
    has_settings,
    initialize_storage,
    save_error,
    save_metrics,
    save_settings,
)


@pytest.fixture(params=["memory", "duckdb"])
def any_store(request, tmp_path):
    if request.param == "memory":
        return MemoryStore()
    return DuckDBStore(tmp_path / "kv.duckdb")


def test_get_set_clear(any_store):
    async def scenario():
        await any_store.set({"a": {"x": [1, 2]}, "b": 3})
        got = await any_store.get(["a", "b", "missing"])
        await any_store.set({"b": 4})
        updated = await any_store.get(["b"])
        await any_store.clear()
        return got, updated, await any_store.get(["a", "b"])

    got, updated, cleared = asyncio.run(scenario())
    assert got == {"a": {"x": [1, 2]}, "b": 3}
    assert updated == {"b": 4}
    assert cleared == {}


def test_memory_store_copies_values():
    store = MemoryStore()
    value = {"items": [1]}
    asyncio.run(store.set({"k": value}))
    value["items"].append(2)
    got = asyncio.run(store.get(["k"]))
    got["k"]["items"].append(3)
    assert asyncio.run(store.get(["k"])) == {"k": {"items": [1]}}


def test_duckdb_store_persists_across_instances(tmp_path):
    path = tmp_path / "kv.duckdb"
    asyncio.run(DuckDBStore(path).set({"settings": {"update_frequency": 7}}))
    assert asyncio.run(DuckDBStore(path).get(["settings"])) == {"settings": {"update_frequency": 7}}


def test_snapshot_round_trip(any_store):
    snapshot = Snapshot(stocks=[EquityMetric(id="AAPL", name="Apple Inc", value=190.5, change=1.2, timestamp=5)])
    errors = ErrorState(forex="No forex data retrieved")
    last_update = asyncio.run(save_metrics(any_store, snapshot, errors))

    stored = asyncio.run(get_metrics(any_store))
    assert stored.last_update == last_update
    assert stored.stocks[0].name == "Apple Inc"
    assert stored.polymarket == []
    assert asyncio.run(get_errors(any_store)).forex == "No forex data retrieved"


def test_empty_store_reads_defaults(store):
    assert asyncio.run(get_metrics(store)) == Snapshot()
    assert asyncio.run(get_errors(store)) == ErrorState()
    assert asyncio.run(get_settings(store)) == Settings()
    assert not asyncio.run(has_settings(store))


def test_unreadable_snapshot_is_empty(store):
    asyncio.run(store.set({METRICS_KEY: {"stocks": [{"id": "AAPL"}]}}))
    assert asyncio.run(get_metrics(store)).stocks == []


def test_initialize_storage_only_once(store):
    assert asyncio.run(initialize_storage(store))
    asyncio.run(save_settings(store, Settings(update_frequency=20)))
    assert not asyncio.run(initialize_storage(store))
    assert asyncio.run(get_settings(store)).update_frequency == 20


def test_save_error_keeps_other_entries(store):
    asyncio.run(save_error(store, "stocks", "Finnhub API key not configured"))
    asyncio.run(save_error(store, "system", "disk full"))
    errors = asyncio.run(get_errors(store))
    assert errors.stocks == "Finnhub API key not configured"
    assert errors.system == "disk full"
    asyncio.run(clear_errors(store))
    assert not asyncio.run(get_errors(store)).has_errors()


def test_clear_all_storage(store):
    asyncio.run(initialize_storage(store))
    asyncio.run(clear_all_storage(store))
    assert not asyncio.run(has_settings(store))
