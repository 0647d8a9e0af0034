"""In-memory key-value store."""

from __future__ import annotations

import copy
from typing import Any


class MemoryStore:
    def __init__(self):
        self._data: dict[str, Any] = {}

    async def get(self, key: str) -> Any | None:
        val = self._data.get(key)
        if val is None:
            return None
        return copy.deepcopy(val)

    async def put(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def __len__(self) -> int:
        return len(self._data)

    def close(self) -> None:
        self._data.clear()
