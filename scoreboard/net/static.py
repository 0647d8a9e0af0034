"""Static asset handlers."""

from __future__ import annotations

import os

from aiohttp import web

NO_STORE = {"game.js"}


def resolve(static_dir: str, rel_path: str) -> str | None:
    root = os.path.realpath(static_dir)
    path = os.path.realpath(os.path.join(root, rel_path))
    # Keep lookups inside the asset root.
    if os.path.commonpath([root, path]) != root:
        return None
    if not os.path.isfile(path):
        return None
    return path


def cache_headers(rel_path: str) -> dict[str, str]:
    if os.path.basename(rel_path) in NO_STORE:
        return {"Cache-Control": "no-store, max-age=0"}
    return {"Cache-Control": "public, max-age=3600"}


def file_response(static_dir: str, rel_path: str) -> web.FileResponse:
    path = resolve(static_dir, rel_path)
    if path is None:
        raise web.HTTPNotFound(text=f"Not found: /static/{rel_path}")
    return web.FileResponse(path, headers=cache_headers(rel_path))
