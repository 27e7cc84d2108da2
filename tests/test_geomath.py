"""Tests for the great-circle, speed and formatting helpers."""

from __future__ import annotations

import math
import random

import pytest

from route_tracker.config import EARTH_RADIUS_KM
from route_tracker.geomath import (
    distance,
    format_distance,
    format_duration,
    format_speed,
    speed,
)
from route_tracker.models import Sample


def _random_samples(count: int, seed: int = 7) -> list[Sample]:
    rng = random.Random(seed)
    return [
        Sample(rng.uniform(-89.0, 89.0), rng.uniform(-179.0, 179.0), i, 5.0)
        for i in range(count)
    ]


def test_distance_zero_for_coincident_points() -> None:
    for sample in _random_samples(20):
        assert distance(sample, sample) == 0.0


def test_distance_is_symmetric_and_non_negative() -> None:
    samples = _random_samples(21)
    for a, b in zip(samples, samples[1:]):
        assert distance(a, b) == distance(b, a)
        assert distance(a, b) >= 0.0


def test_distance_along_meridian_matches_arc_length() -> None:
    a = Sample(0.0, 0.0, 0)
    b = Sample(0.001, 0.0, 1000)
    expected = EARTH_RADIUS_KM * math.radians(0.001)
    assert distance(a, b) == pytest.approx(expected, rel=1e-9)
    assert distance(a, b) == pytest.approx(0.111, abs=1e-2)


def test_distance_antipodal_points_is_half_circumference() -> None:
    a = Sample(0.0, 0.0, 0)
    b = Sample(0.0, 180.0, 0)
    assert distance(a, b) == pytest.approx(math.pi * EARTH_RADIUS_KM, rel=1e-9)


def test_speed_guards_non_positive_elapsed_time() -> None:
    assert speed(5.0, 0) == 0.0
    assert speed(5.0, -10) == 0.0


def test_speed_converts_to_km_per_hour() -> None:
    assert speed(1.0, 3600) == pytest.approx(1.0)
    assert speed(0.5, 60) == pytest.approx(30.0)


@pytest.mark.parametrize(
    "seconds, expected",
    [
        (0, "00:00"),
        (5.9, "00:05"),
        (65, "01:05"),
        (3599.99, "59:59"),
        (3600, "1:00:00"),
        (3661, "1:01:01"),
        (-12, "00:00"),
        (float("nan"), "00:00"),
    ],
)
def test_format_duration(seconds: float, expected: str) -> None:
    assert format_duration(seconds) == expected


def test_display_formats() -> None:
    assert format_distance(1.234) == "1.23 km"
    assert format_speed(12.34) == "12.3 km/h"
