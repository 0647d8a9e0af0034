import asyncio

import pytest

from scoreboard.app import create_app
from scoreboard.game.board import Leaderboard
from scoreboard.game.config import ServerConfig
from scoreboard.storage.base import StorageError
from scoreboard.storage.memory import MemoryStore


class FakeClock:
    """Millisecond clock the tests move by hand."""

    def __init__(self, start_ms: float = 1_700_000_000_000.0):
        self.now_ms = start_ms

    def __call__(self) -> float:
        return self.now_ms

    def advance(self, seconds: float) -> None:
        self.now_ms += seconds * 1000.0


class YieldingStore(MemoryStore):
    """Memory store that gives up the loop on every call, like a real backend."""

    async def get(self, key):
        await asyncio.sleep(0)
        return await super().get(key)

    async def put(self, key, value):
        await asyncio.sleep(0)
        await super().put(key, value)


class FlakyStore(MemoryStore):
    def __init__(self):
        super().__init__()
        self.fail_put_keys: set[str] = set()
        self.fail_all = False

    async def get(self, key):
        if self.fail_all:
            raise StorageError("store offline")
        return await super().get(key)

    async def put(self, key, value):
        if self.fail_all or key in self.fail_put_keys:
            raise StorageError(f"put {key} failed")
        await super().put(key, value)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def config(tmp_path):
    return ServerConfig(
        sqlite_enabled=False,
        throttle_enabled=False,
        static_dir=str(tmp_path / "static"),
    )


@pytest.fixture()
def store():
    return YieldingStore()


@pytest.fixture()
async def board(store, config, clock):
    lb = Leaderboard(store, config, clock=clock)
    await lb.start()
    yield lb
    await lb.stop()


@pytest.fixture()
async def client(aiohttp_client, config, store, clock):
    app = create_app(config, store=store, clock=clock)
    return await aiohttp_client(app)
