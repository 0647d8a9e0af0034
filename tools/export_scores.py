"""Dump the ranked list from a SQLite store to JSON.

Usage:
  python tools/export_scores.py --db scoreboard.sqlite3 --out scores.json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os

from scoreboard.game.board import SCORES_KEY
from scoreboard.storage.sqlite import SqliteStore


async def load_scores(path: str) -> list[dict]:
    store = SqliteStore(path)
    store.init()
    try:
        return await store.get(SCORES_KEY) or []
    finally:
        store.close()


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--db", default="scoreboard.sqlite3")
    ap.add_argument("--out", required=True)
    ap.add_argument("--limit", type=int, default=0, help="keep only the first N entries (0 = all)")
    args = ap.parse_args(argv)

    if not os.path.exists(args.db):
        ap.error(f"no such database: {args.db}")

    scores = asyncio.run(load_scores(args.db))
    if args.limit > 0:
        scores = scores[: args.limit]

    out = os.path.abspath(args.out)
    os.makedirs(os.path.dirname(out), exist_ok=True)
    with open(out, "w", encoding="utf-8") as f:
        json.dump({"scores": scores}, f, indent=2)
    print(f"Wrote {len(scores)} entries to {out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
