"""Tests for the synthetic walk simulator."""

from __future__ import annotations

import pytest

from route_tracker.models import PointRole, ViewportRect
from route_tracker.session import SessionState
from route_tracker.simulate import build_samples, main, render_text, run_simulation


def test_build_samples_spacing() -> None:
    samples = build_samples(4, interval_ms=500, start_ms=1000)
    assert [s.timestamp_ms for s in samples] == [1000, 1500, 2000, 2500]
    assert samples[0].lat < samples[-1].lat


def test_loop_shape_returns_near_origin() -> None:
    samples = build_samples(40, shape="loop")
    assert abs(samples[0].lat - samples[-1].lat) < 0.001
    assert abs(samples[0].lng - samples[-1].lng) < 0.001


def test_build_samples_rejects_bad_input() -> None:
    with pytest.raises(ValueError):
        build_samples(-1)
    with pytest.raises(ValueError):
        build_samples(3, shape="zigzag")


def test_run_simulation_produces_final_metrics() -> None:
    session = run_simulation(12, interval_ms=1000, error_at=3, timeout=5.0)
    assert session.state is SessionState.STOPPED
    assert len(session.route) == 12
    assert session.metrics.distance_km > 0
    assert session.metrics.duration_s == 11.0
    assert session.summary()["error"] == "Position fix timed out"
    points = session.projection(ViewportRect(200, 200))
    assert points[0].role is PointRole.START
    assert points[-1].role is PointRole.END
    assert sum(p.labeled for p in points) == 6


def test_render_text_marks_start_and_end() -> None:
    session = run_simulation(5, timeout=5.0)
    viewport = ViewportRect(100, 100)
    sketch = render_text(session.projection(viewport), viewport)
    assert "S" in sketch
    assert "E" in sketch
    assert render_text([], ViewportRect(0, 0)) == ""


def test_main_returns_zero() -> None:
    assert main(["--points", "6", "--network", "3g", "--shape", "loop"]) == 0


def test_jitter_is_seeded_and_bounded() -> None:
    clean = build_samples(20, jitter_deg=0.0, accuracy_m=8.0)
    noisy = build_samples(20, jitter_deg=0.0005, seed=3, accuracy_m=8.0)
    assert noisy == build_samples(20, jitter_deg=0.0005, seed=3, accuracy_m=8.0)
    assert noisy != build_samples(20, jitter_deg=0.0005, seed=4, accuracy_m=8.0)
    for plain, jittered in zip(clean, noisy):
        assert abs(jittered.lat - plain.lat) <= 0.0005
        assert abs(jittered.lng - plain.lng) <= 0.0005
        assert 4.0 <= jittered.accuracy_m <= 12.0
        assert jittered.timestamp_ms == plain.timestamp_ms
    assert len({s.accuracy_m for s in noisy}) > 1
    assert {s.accuracy_m for s in clean} == {8.0}


def test_negative_jitter_is_rejected() -> None:
    with pytest.raises(ValueError):
        build_samples(3, jitter_deg=-0.1)


def test_noisy_walk_runs_through_a_session() -> None:
    session = run_simulation(15, jitter_deg=0.0003, seed=11, timeout=5.0)
    assert len(session.route) == 15
    assert session.metrics.distance_km > 0
    assert session.metrics.duration_s == 14.0


def test_main_accepts_jitter_options() -> None:
    assert main(["--points", "8", "--jitter", "0.0002", "--seed", "5"]) == 0
