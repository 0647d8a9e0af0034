"""Session, score entry and submission result records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Rejection codes.
INVALID_SESSION = "invalid_session"
SESSION_ALREADY_USED = "session_already_used"
SCORE_TIME_MISMATCH = "score_time_mismatch"
VIEWPORT_VIOLATION = "viewport_violation"


@dataclass
class Session:
    token: str
    start_ts: float
    used: bool = False
    start_width: int | None = None
    start_height: int | None = None
    start_dpr: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "start_ts": self.start_ts,
            "used": self.used,
            "start_w": self.start_width,
            "start_h": self.start_height,
            "dpr": self.start_dpr,
        }

    @classmethod
    def from_dict(cls, token: str, data: dict[str, Any]) -> "Session":
        return cls(
            token=token,
            start_ts=float(data["start_ts"]),
            used=bool(data.get("used", False)),
            start_width=data.get("start_w"),
            start_height=data.get("start_h"),
            start_dpr=data.get("dpr"),
        )


@dataclass(frozen=True)
class ScoreEntry:
    name: str
    score: int
    ts: float

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "score": self.score, "ts": self.ts}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScoreEntry":
        return cls(name=str(data["name"]), score=int(data["score"]), ts=float(data.get("ts", 0.0)))


@dataclass(frozen=True)
class Rejection:
    code: str
    reason: str
    detail: dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {"accepted": False, "code": self.code, "reason": self.reason, **self.detail}


@dataclass(frozen=True)
class SubmitResult:
    accepted: bool
    rank: int | None = None
    rejection: Rejection | None = None

    @classmethod
    def ok(cls, rank: int | None) -> "SubmitResult":
        return cls(accepted=True, rank=rank)

    @classmethod
    def reject(cls, code: str, reason: str, **detail: Any) -> "SubmitResult":
        return cls(accepted=False, rejection=Rejection(code=code, reason=reason, detail=detail))

    def to_payload(self) -> dict[str, Any]:
        if self.rejection is not None:
            return self.rejection.to_payload()
        return {"accepted": True, "rank": self.rank}
