from scoreboard.game.models import Session
from scoreboard.game.protocol import Viewport
from scoreboard.game.validation import check_score_time, check_viewport


def make_session(**kw):
    return Session(token="sess_1_a", start_ts=0.0, **kw)


def test_viewport_within_threshold_passes():
    s = make_session(start_width=1000, start_height=800, start_dpr=2.0)
    assert check_viewport(s, Viewport(width=850, height=680, dpr=1.7), 0.85) is None


def test_height_shrink_detected():
    s = make_session(start_width=1000, start_height=800)
    res = check_viewport(s, Viewport(width=1000, height=679), 0.85)
    assert res.rejection.reason == "viewport shrink / zoom detected"


def test_single_dimension_is_checked_on_its_own():
    s = make_session(start_width=1000)
    assert check_viewport(s, Viewport(width=600, height=10), 0.85) is not None
    assert check_viewport(s, Viewport(height=10), 0.85) is None


def test_growing_viewport_passes():
    s = make_session(start_width=800, start_height=600, start_dpr=1.0)
    assert check_viewport(s, Viewport(width=1920, height=1080, dpr=3.0), 0.85) is None


def test_score_time_uses_rate_and_tolerance():
    s = make_session()
    assert check_score_time(s, 1200, 20_000.0, score_rate=60.0, tolerance_sec=3.0) is None

    res = check_score_time(s, 1200, 20_000.0, score_rate=30.0, tolerance_sec=3.0)
    assert res.rejection.detail == {
        "elapsed_sec": 20.0,
        "expected_score": 600,
        "tolerance_frames": 90,
        "actual_score": 1200,
    }


def test_score_too_low_is_also_mismatch():
    s = make_session()
    res = check_score_time(s, 0, 60_000.0, score_rate=60.0, tolerance_sec=3.0)
    assert res.rejection.code == "score_time_mismatch"
