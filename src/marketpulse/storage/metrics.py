"""Typed access to settings, metrics snapshot and error state in the key-value store."""

from __future__ import annotations

import time

import structlog
from pydantic import ValidationError

from marketpulse.models import ErrorState, Settings, Snapshot
from marketpulse.models.settings import default_settings
from marketpulse.storage.kv import KeyValueStore

log = structlog.get_logger(__name__)

METRICS_KEY = "metrics"
SETTINGS_KEY = "settings"
ERRORS_KEY = "errors"
LAST_UPDATE_KEY = "lastUpdate"


async def save_metrics(store: KeyValueStore, snapshot: Snapshot, errors: ErrorState | None = None) -> int:
    """Replace the stored snapshot (and optionally errors) in one write. Returns last_update ms."""
    now_ms = int(time.time() * 1000)
    items = {
        METRICS_KEY: snapshot.model_dump(mode="json", exclude={"last_update"}),
        LAST_UPDATE_KEY: now_ms,
    }
    if errors is not None:
        items[ERRORS_KEY] = errors.model_dump(mode="json")
    await store.set(items)
    return now_ms


async def get_metrics(store: KeyValueStore) -> Snapshot:
    """Return the stored snapshot, or an empty one when absent or unreadable."""
    raw = await store.get([METRICS_KEY, LAST_UPDATE_KEY])
    data = dict(raw.get(METRICS_KEY) or {})
    data["last_update"] = raw.get(LAST_UPDATE_KEY)
    try:
        return Snapshot.model_validate(data)
    except ValidationError as e:
        log.warning("stored_snapshot_invalid", error=str(e))
        return Snapshot(last_update=raw.get(LAST_UPDATE_KEY))


async def get_errors(store: KeyValueStore) -> ErrorState:
    raw = await store.get([ERRORS_KEY])
    return ErrorState.model_validate(raw.get(ERRORS_KEY) or {})


async def save_errors(store: KeyValueStore, errors: ErrorState) -> None:
    await store.set({ERRORS_KEY: errors.model_dump(mode="json")})


async def save_error(store: KeyValueStore, key: str, message: str | None) -> None:
    """Read-modify-write a single error entry."""
    errors = await get_errors(store)
    setattr(errors, key, message)
    await save_errors(store, errors)


async def clear_errors(store: KeyValueStore) -> None:
    await save_errors(store, ErrorState())


async def get_settings(store: KeyValueStore) -> Settings:
    """Stored settings, or defaults when none have been saved yet."""
    raw = await store.get([SETTINGS_KEY])
    stored = raw.get(SETTINGS_KEY)
    if stored is None:
        return default_settings()
    return Settings.model_validate(stored)


async def save_settings(store: KeyValueStore, settings: Settings) -> None:
    await store.set({SETTINGS_KEY: settings.model_dump(mode="json")})


async def has_settings(store: KeyValueStore) -> bool:
    raw = await store.get([SETTINGS_KEY])
    return raw.get(SETTINGS_KEY) is not None


async def initialize_storage(store: KeyValueStore) -> bool:
    """Write default settings if none exist. Returns True when defaults were written."""
    if await has_settings(store):
        return False
    await save_settings(store, default_settings())
    log.info("settings_initialized")
    return True


async def clear_all_storage(store: KeyValueStore) -> None:
    await store.clear()
