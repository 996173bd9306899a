"""Shared fixtures: in-memory store, mock transports, adapter runner."""

import asyncio
import json

import httpx
import pytest

from marketpulse.ingestion.http import make_client
from marketpulse.storage import MemoryStore


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def run_adapter():
    """Run one adapter's fetch_metrics against a mock upstream."""

    def _run(adapter_cls, handler, settings, previous=(), **kwargs):
        async def _go():
            async with make_client(httpx.MockTransport(handler)) as client:
                return await adapter_cls(client, **kwargs).fetch_metrics(settings, list(previous))

        return asyncio.run(_go())

    return _run


@pytest.fixture
def config_dir(tmp_path):
    """A config directory whose database lives under tmp_path."""
    db_path = json.dumps(str(tmp_path / "test.duckdb"))
    (tmp_path / "default.toml").write_text(f"[storage]\ndb_path = {db_path}\n")
    return tmp_path
