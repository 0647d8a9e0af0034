import json
import os
import runpy

import pytest

from scoreboard.game.board import Leaderboard
from scoreboard.game.config import ServerConfig
from scoreboard.game.protocol import SubmitRequest, Viewport
from scoreboard.storage.base import StorageError
from scoreboard.storage.memory import MemoryStore
from scoreboard.storage.sqlite import SqliteStore


async def test_memory_store_copies_values():
    store = MemoryStore()
    value = {"scores": [1, 2]}
    await store.put("k", value)
    value["scores"].append(3)

    got = await store.get("k")
    assert got == {"scores": [1, 2]}
    got["scores"].clear()
    assert await store.get("k") == {"scores": [1, 2]}
    assert await store.get("missing") is None


async def test_sqlite_store_round_trips_and_overwrites(tmp_path):
    store = SqliteStore(str(tmp_path / "kv.sqlite3"))
    store.init()
    try:
        assert await store.get("session:x") is None
        await store.put("session:x", {"used": False, "start_ts": 1.5})
        await store.put("session:x", {"used": True, "start_ts": 1.5})
        assert await store.get("session:x") == {"used": True, "start_ts": 1.5}
    finally:
        store.close()


async def test_sqlite_store_requires_init(tmp_path):
    store = SqliteStore(str(tmp_path / "kv.sqlite3"))
    with pytest.raises(StorageError):
        await store.get("scores")


async def test_leaderboard_survives_restart(tmp_path, clock):
    path = str(tmp_path / "board.sqlite3")
    config = ServerConfig(sqlite_path=path)

    store = SqliteStore(path)
    store.init()
    lb = Leaderboard(store, config, clock=clock)
    await lb.start()
    token = await lb.open_session(Viewport(width=1000, height=800))
    clock.advance(10)
    req = SubmitRequest(session_id=token, name="alice", score=600, viewport=Viewport())
    assert (await lb.submit_score(req)).accepted
    await lb.stop()
    store.close()

    store = SqliteStore(path)
    store.init()
    lb = Leaderboard(store, config, clock=clock)
    await lb.start()
    try:
        assert await lb.top_scores() == [("alice", 600)]
        again = await lb.submit_score(req)
        assert again.rejection.code == "session_already_used"
    finally:
        await lb.stop()
        store.close()


def test_export_tool_writes_ranked_list(tmp_path):
    db = str(tmp_path / "board.sqlite3")
    store = SqliteStore(db)
    store.init()
    store._put("scores", [{"name": "a", "score": 700, "ts": 1.0}, {"name": "b", "score": 600, "ts": 2.0}])
    store.close()

    tool = os.path.join(os.path.dirname(__file__), "..", "tools", "export_scores.py")
    main = runpy.run_path(tool, run_name="export_scores")["main"]
    out = tmp_path / "out" / "scores.json"
    assert main(["--db", db, "--out", str(out), "--limit", "1"]) == 0
    assert json.loads(out.read_text()) == {"scores": [{"name": "a", "score": 700, "ts": 1.0}]}
