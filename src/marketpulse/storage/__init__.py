"""Storage port, stores, and typed accessors."""

from marketpulse.storage.db import DuckDBStore
from marketpulse.storage.kv import KeyValueStore, MemoryStore

__all__ = ["DuckDBStore", "KeyValueStore", "MemoryStore"]
