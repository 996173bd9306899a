"""Key-value storage port and the in-memory implementation."""

from __future__ import annotations

import copy
from typing import Any, Iterable, Mapping, Protocol


class KeyValueStore(Protocol):
    """Durable get/set/clear store. No transactions, no schema."""

    async def get(self, keys: Iterable[str]) -> dict[str, Any]: ...
    async def set(self, items: Mapping[str, Any]) -> None: ...
    async def clear(self) -> None: ...


class MemoryStore:
    """Process-local store. Values are deep-copied in and out, like a serializing store."""

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(dict(initial or {}))

    async def get(self, keys: Iterable[str]) -> dict[str, Any]:
        return {k: copy.deepcopy(self._data[k]) for k in keys if k in self._data}

    async def set(self, items: Mapping[str, Any]) -> None:
        for key, value in items.items():
            self._data[key] = copy.deepcopy(value)

    async def clear(self) -> None:
        self._data.clear()
