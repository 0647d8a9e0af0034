"""HTTP entrypoint: score API, text-generation proxy and static assets."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

from aiohttp import web

from scoreboard.game import protocol
from scoreboard.game.board import Leaderboard
from scoreboard.game.config import ServerConfig
from scoreboard.log import setup_logging
from scoreboard.net import static
from scoreboard.net.ai import AiClient, AiError
from scoreboard.net.rate_limit import ClientThrottle
from scoreboard.storage.base import StorageError
from scoreboard.storage.memory import MemoryStore
from scoreboard.storage.sqlite import SqliteStore

logger = logging.getLogger(__name__)


class ScoreService:
    def __init__(self, config: ServerConfig, store=None, clock=None):
        self.config = config
        self.server_id = str(uuid.uuid4())
        self.start_time = time.time()

        self.sqlite = None
        if store is None:
            if self.config.sqlite_enabled:
                self.sqlite = SqliteStore(self.config.sqlite_path)
                store = self.sqlite
            else:
                store = MemoryStore()
        self.store = store

        self.board = Leaderboard(self.store, self.config, clock=clock)
        self.ai = AiClient(self.config)
        self.throttle = (
            ClientThrottle(self.config.throttle_rate_per_sec, self.config.throttle_burst)
            if self.config.throttle_enabled
            else None
        )

        self.sessions_opened = 0
        self.scores_accepted = 0
        self.scores_rejected = 0

    async def start(self) -> None:
        if self.sqlite:
            self.sqlite.init()
        await self.board.start()
        await self.ai.start()
        logger.info("Score service %s started (store=%s)", self.server_id, type(self.store).__name__)

    async def stop(self) -> None:
        await self.board.stop()
        await self.ai.close()
        if self.sqlite:
            self.sqlite.close()

    def allow(self, request: web.Request) -> bool:
        if self.throttle is None:
            return True
        return self.throttle.allow(request.remote or "unknown")

    def version_payload(self) -> dict[str, Any]:
        return {
            "serverId": self.server_id,
            "serverVersion": self.config.server_version,
        }


def _cors_headers(config: ServerConfig, origin: str | None) -> dict[str, str]:
    if not origin:
        return {}
    if config.cors_allow_all:
        return {"Access-Control-Allow-Origin": origin, "Vary": "Origin"}
    if origin in config.cors_allowed_origins:
        return {"Access-Control-Allow-Origin": origin, "Vary": "Origin"}
    return {}


@web.middleware
async def cors_middleware(request: web.Request, handler):
    if request.method == "OPTIONS":
        origin = request.headers.get("Origin")
        headers = {
            **_cors_headers(request.app["config"], origin),
            "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
            "Access-Control-Allow-Headers": "Content-Type",
            "Access-Control-Max-Age": "86400",
        }
        return web.Response(status=204, headers=headers)

    resp = await handler(request)

    origin = request.headers.get("Origin")
    if not resp.prepared:
        resp.headers.update(_cors_headers(request.app["config"], origin))
    return resp


@web.middleware
async def error_middleware(request: web.Request, handler):
    try:
        return await handler(request)
    except protocol.ProtocolError as e:
        return web.json_response({"error": str(e)}, status=400)
    except StorageError:
        logger.exception("Storage failure on %s %s", request.method, request.path)
        return web.json_response({"error": "storage unavailable"}, status=503)
    except AiError as e:
        return web.json_response({"error": str(e)}, status=e.status)


async def _read_body(request: web.Request, *, allow_empty: bool) -> dict[str, Any]:
    raw = await request.read() if request.can_read_body else b""
    return protocol.loads(raw, allow_empty=allow_empty)


def create_app(config: ServerConfig, *, store=None, clock=None) -> web.Application:
    app = web.Application(middlewares=[cors_middleware, error_middleware])
    svc = ScoreService(config, store=store, clock=clock)

    app["config"] = config
    app["svc"] = svc

    async def on_startup(_: web.Application):
        await svc.start()

    async def on_cleanup(_: web.Application):
        await svc.stop()

    app.on_startup.append(on_startup)
    app.on_cleanup.append(on_cleanup)

    def too_many() -> web.Response:
        return web.json_response({"error": "too many requests"}, status=429)

    async def health(_: web.Request):
        return web.json_response(
            {
                "ok": True,
                "uptimeSec": time.time() - svc.start_time,
                "sessionsOpened": svc.sessions_opened,
                "scoresAccepted": svc.scores_accepted,
                "scoresRejected": svc.scores_rejected,
                **svc.version_payload(),
            }
        )

    async def version(_: web.Request):
        return web.json_response(svc.version_payload())

    async def start_session(request: web.Request):
        if not svc.allow(request):
            return too_many()
        # Clients without viewport data may send no body or junk.
        try:
            body = await _read_body(request, allow_empty=True)
        except protocol.ProtocolError:
            body = {}
        req = protocol.StartRequest.parse(body)
        session_id = await svc.board.open_session(req.viewport)
        svc.sessions_opened += 1
        return web.json_response({"session_id": session_id})

    async def submit_score(request: web.Request):
        if not svc.allow(request):
            return too_many()
        body = await _read_body(request, allow_empty=False)
        req = protocol.SubmitRequest.parse(body, max_name_len=config.max_name_len)
        result = await svc.board.submit_score(req)
        if result.accepted:
            svc.scores_accepted += 1
            return web.json_response(result.to_payload())
        svc.scores_rejected += 1
        return web.json_response(result.to_payload(), status=400)

    async def leaderboard(_: web.Request):
        top = await svc.board.top_scores()
        return web.json_response([{"name": name, "score": score} for name, score in top])

    async def ai(request: web.Request):
        body = await _read_body(request, allow_empty=False)
        req = protocol.PromptRequest.parse(body)
        result = await svc.ai.generate(req.prompt)
        return web.json_response({"result": result})

    async def preflight(_: web.Request):
        return web.Response(status=204)

    async def index(_: web.Request):
        return static.file_response(config.static_dir, "index.html")

    async def static_file(request: web.Request):
        return static.file_response(config.static_dir, request.match_info["path"])

    app.router.add_get("/", index)
    app.router.add_get("/health", health)
    app.router.add_get("/version", version)
    app.router.add_post("/api/start", start_session)
    app.router.add_post("/api/score", submit_score)
    app.router.add_get("/api/leaderboard", leaderboard)
    app.router.add_post("/api/ai", ai)
    app.router.add_get("/static/{path:.+}", static_file)
    app.router.add_route("OPTIONS", "/{tail:.*}", preflight)

    return app


def main() -> None:
    config = ServerConfig.from_env()
    setup_logging(config.log_level)
    app = create_app(config)
    web.run_app(app, host=config.host, port=config.port)


if __name__ == "__main__":
    main()
