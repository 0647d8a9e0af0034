"""Store interface shared by the backends."""

from __future__ import annotations

from typing import Any, Protocol


class StorageError(Exception):
    pass


class Store(Protocol):
    async def get(self, key: str) -> Any | None: ...

    async def put(self, key: str, value: Any) -> None: ...
