"""Request schemas + validation.

Both endpoints take a flat JSON object. Fields are optional; wrong types and
non-positive viewport values fall back to the documented defaults.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any


class ProtocolError(Exception):
    pass


def loads(raw: bytes | str, *, allow_empty: bool = False) -> dict[str, Any]:
    try:
        text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
    except UnicodeDecodeError as e:
        raise ProtocolError(f"body is not utf-8: {e}")
    if allow_empty and not text.strip():
        return {}
    try:
        obj = json.loads(text)
    except ValueError as e:
        raise ProtocolError(f"invalid json: {e}")
    if not isinstance(obj, dict):
        raise ProtocolError("body must be object")
    return obj


def _int(v: Any, *, default: int = 0) -> int:
    # JSON integers only; strings, floats and booleans fall back.
    if isinstance(v, bool) or not isinstance(v, int):
        return default
    return v


def _pos_int(v: Any) -> int | None:
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        return None
    try:
        n = int(v)
    except (ValueError, OverflowError):
        return None
    return n if n > 0 else None


def _pos_num(v: Any) -> float | None:
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        return None
    n = float(v)
    if n != n or n <= 0.0 or n == float("inf"):
        return None
    return n


@dataclass(frozen=True)
class Viewport:
    width: int | None = None
    height: int | None = None
    dpr: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"vw": self.width, "vh": self.height, "dpr": self.dpr}


@dataclass
class StartRequest:
    viewport: Viewport

    @classmethod
    def parse(cls, data: dict[str, Any]) -> "StartRequest":
        return cls(
            viewport=Viewport(
                width=_pos_int(data.get("w")),
                height=_pos_int(data.get("h")),
                dpr=_pos_num(data.get("dpr")),
            )
        )


@dataclass
class SubmitRequest:
    session_id: str
    name: str
    score: int
    viewport: Viewport

    @classmethod
    def parse(cls, data: dict[str, Any], *, max_name_len: int = 32) -> "SubmitRequest":
        sid = data.get("session_id")
        if not isinstance(sid, str):
            sid = ""
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            name = "anon"
        return cls(
            session_id=sid.strip(),
            name=name.strip()[:max_name_len],
            score=_int(data.get("score"), default=0),
            viewport=Viewport(
                width=_pos_int(data.get("viewport_w")),
                height=_pos_int(data.get("viewport_h")),
                dpr=_pos_num(data.get("dpr")),
            ),
        )


@dataclass
class PromptRequest:
    prompt: str

    @classmethod
    def parse(cls, data: dict[str, Any]) -> "PromptRequest":
        p = data.get("prompt")
        if not isinstance(p, str):
            p = ""
        return cls(prompt=p)
