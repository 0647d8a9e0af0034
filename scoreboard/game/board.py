"""Leaderboard actor: session lifecycle, validation and the ranked list.

Every operation is queued to a single worker task, so reads and writes of
the session table and the ranked list never interleave. Storage awaits are
the only suspension points inside an operation.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from typing import Any, Awaitable, Callable

from scoreboard.game.config import ServerConfig
from scoreboard.game.models import INVALID_SESSION, SESSION_ALREADY_USED, ScoreEntry, Session, SubmitResult
from scoreboard.game.protocol import SubmitRequest, Viewport
from scoreboard.game.validation import check_score_time, check_viewport
from scoreboard.storage.base import StorageError, Store

logger = logging.getLogger(__name__)

SCORES_KEY = "scores"


def session_key(token: str) -> str:
    return f"session:{token}"


def _wall_ms() -> float:
    return time.time() * 1000.0


class Leaderboard:
    def __init__(self, store: Store, config: ServerConfig, clock: Callable[[], float] | None = None):
        self.store = store
        self.config = config
        self.clock = clock or _wall_ms

        self._queue: asyncio.Queue | None = None
        self._worker: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    async def start(self) -> None:
        if self.running:
            return
        self._queue = asyncio.Queue()
        self._worker = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if not self.running:
            return
        # Queued commands ahead of the sentinel still run.
        await self._queue.put(None)
        await self._worker
        self._worker = None
        self._queue = None

    async def _run(self) -> None:
        fut = None
        try:
            while True:
                cmd = await self._queue.get()
                if cmd is None:
                    return
                fn, args, fut = cmd
                if fut.cancelled():
                    continue
                try:
                    result = await fn(*args)
                except Exception as e:
                    if not fut.cancelled():
                        fut.set_exception(e)
                else:
                    if not fut.cancelled():
                        fut.set_result(result)
        finally:
            # Callers must not wait forever on a worker that died mid-command.
            self._fail_pending(fut)

    def _fail_pending(self, current: asyncio.Future | None) -> None:
        pending = [current] if current is not None else []
        while not self._queue.empty():
            cmd = self._queue.get_nowait()
            if cmd is not None:
                pending.append(cmd[2])
        for fut in pending:
            if not fut.done():
                fut.set_exception(RuntimeError("leaderboard worker stopped"))

    async def _call(self, fn: Callable[..., Awaitable[Any]], *args: Any) -> Any:
        if not self.running:
            raise RuntimeError("leaderboard is not running")
        fut = asyncio.get_running_loop().create_future()
        await self._queue.put((fn, args, fut))
        return await fut

    # Public operations.

    async def open_session(self, viewport: Viewport | None = None) -> str:
        return await self._call(self._open_session, viewport or Viewport())

    async def submit_score(self, req: SubmitRequest) -> SubmitResult:
        return await self._call(self._submit_score, req)

    async def top_scores(self, limit: int | None = None) -> list[tuple[str, int]]:
        return await self._call(self._top_scores, self.config.top_n if limit is None else limit)

    async def ranked(self) -> list[ScoreEntry]:
        return await self._call(self._load_scores)

    # Worker-side implementations.

    async def _open_session(self, viewport: Viewport) -> str:
        now_ms = self.clock()
        token = f"sess_{int(now_ms)}_{uuid.uuid4().hex[:12]}"
        session = Session(
            token=token,
            start_ts=now_ms,
            start_width=viewport.width,
            start_height=viewport.height,
            start_dpr=viewport.dpr,
        )
        await self.store.put(session_key(token), session.to_dict())
        logger.info("Opened session %s", token)
        return token

    async def _load_session(self, token: str) -> Session | None:
        data = await self.store.get(session_key(token))
        if data is None:
            return None
        return Session.from_dict(token, data)

    async def _load_scores(self) -> list[ScoreEntry]:
        data = await self.store.get(SCORES_KEY)
        return [ScoreEntry.from_dict(d) for d in data or []]

    async def _submit_score(self, req: SubmitRequest) -> SubmitResult:
        if not req.session_id:
            return SubmitResult.reject(INVALID_SESSION, "missing session_id")

        session = await self._load_session(req.session_id)
        if session is None:
            logger.info("Rejected score for unknown session %s", req.session_id)
            return SubmitResult.reject(INVALID_SESSION, "invalid session")
        if session.used:
            logger.info("Rejected score for used session %s", session.token)
            return SubmitResult.reject(SESSION_ALREADY_USED, "session already used")

        now_ms = self.clock()
        rejected = check_viewport(session, req.viewport, self.config.shrink_threshold) or check_score_time(
            session,
            req.score,
            now_ms,
            score_rate=self.config.score_rate_per_sec,
            tolerance_sec=self.config.tolerance_sec,
        )
        if rejected is not None:
            logger.info(
                "Rejected score %d for session %s: %s", req.score, session.token, rejected.rejection.code
            )
            return rejected

        session.used = True
        await self.store.put(session_key(session.token), session.to_dict())

        entry = ScoreEntry(name=req.name, score=req.score, ts=now_ms)
        try:
            scores = await self._load_scores()
            scores.append(entry)
            # list.sort is stable with reverse=True, so ties keep insertion order.
            scores.sort(key=lambda e: e.score, reverse=True)
            del scores[self.config.max_entries :]
            await self.store.put(SCORES_KEY, [e.to_dict() for e in scores])
        except StorageError:
            logger.exception("Ranked list write failed; releasing session %s", session.token)
            await self._release(session)
            raise

        rank = next((i + 1 for i, e in enumerate(scores) if e is entry), None)
        logger.info("Accepted score %d for %r (rank %s)", entry.score, entry.name, rank)
        return SubmitResult.ok(rank)

    async def _release(self, session: Session) -> None:
        session.used = False
        try:
            await self.store.put(session_key(session.token), session.to_dict())
        except StorageError:
            logger.exception("Could not release session %s", session.token)

    async def _top_scores(self, limit: int) -> list[tuple[str, int]]:
        scores = await self._load_scores()
        return [(e.name, e.score) for e in scores[: max(0, int(limit))]]
