"""Plausibility checks run against a session before a score is admitted.

Each check returns a rejected ``SubmitResult`` or ``None`` when it passes.
"""

from __future__ import annotations

from scoreboard.game.models import SCORE_TIME_MISMATCH, VIEWPORT_VIOLATION, Session, SubmitResult
from scoreboard.game.protocol import Viewport


def _shrunk(current: float | None, start: float | None, threshold: float) -> bool:
    # Missing data on either side skips the comparison.
    if current is None or start is None:
        return False
    return current < start * threshold


def check_viewport(session: Session, viewport: Viewport, threshold: float) -> SubmitResult | None:
    reason = None
    if _shrunk(viewport.width, session.start_width, threshold) or _shrunk(
        viewport.height, session.start_height, threshold
    ):
        reason = "viewport shrink / zoom detected"
    elif _shrunk(viewport.dpr, session.start_dpr, threshold):
        reason = "devicePixelRatio shrink detected"

    if reason is None:
        return None
    return SubmitResult.reject(
        VIEWPORT_VIOLATION,
        reason,
        viewport=viewport.to_dict(),
        start={"w": session.start_width, "h": session.start_height, "dpr": session.start_dpr},
    )


def check_score_time(
    session: Session,
    score: int,
    now_ms: float,
    *,
    score_rate: float,
    tolerance_sec: float,
) -> SubmitResult | None:
    elapsed_sec = (now_ms - session.start_ts) / 1000.0
    expected = elapsed_sec * score_rate
    tolerance = tolerance_sec * score_rate
    if abs(score - expected) <= tolerance:
        return None
    return SubmitResult.reject(
        SCORE_TIME_MISMATCH,
        "score/time mismatch",
        elapsed_sec=elapsed_sec,
        expected_score=int(expected),
        tolerance_frames=int(tolerance),
        actual_score=score,
    )
