"""Geometric and kinematic helpers shared by the aggregator and the UI layer."""

from __future__ import annotations

import math
from typing import Protocol

from .config import EARTH_RADIUS_KM


class _HasLatLng(Protocol):
    lat: float
    lng: float


def distance(first: _HasLatLng, second: _HasLatLng) -> float:
    """Return the great-circle distance in kilometres between two points.

    Uses the haversine formula on a spherical Earth. Coordinates are degrees.
    """

    sin = math.sin
    cos = math.cos
    radians = math.radians
    lat1_rad = radians(first.lat)
    lat2_rad = radians(second.lat)
    delta_lat = lat2_rad - lat1_rad
    delta_lon = radians(second.lng - first.lng)
    sin_half_lat = sin(delta_lat / 2.0)
    sin_half_lon = sin(delta_lon / 2.0)
    a = sin_half_lat**2 + cos(lat1_rad) * cos(lat2_rad) * sin_half_lon**2
    # Rounding can push ``a`` a hair outside [0, 1] for near-antipodal points.
    a = min(1.0, max(0.0, a))
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return EARTH_RADIUS_KM * c


def speed(distance_km: float, elapsed_s: float) -> float:
    """Return speed in km/h, or 0 when no time has elapsed."""

    if elapsed_s <= 0:
        return 0.0
    return distance_km / (elapsed_s / 3600.0)


def format_duration(seconds: float) -> str:
    """Format seconds as ``MM:SS``, or ``H:MM:SS`` from one hour upwards."""

    if not math.isfinite(seconds) or seconds < 0:
        seconds = 0
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    mins, sec = divmod(remainder, 60)
    if hours:
        return f"{hours}:{mins:02d}:{sec:02d}"
    return f"{mins:02d}:{sec:02d}"


def format_distance(distance_km: float) -> str:
    return f"{distance_km:.2f} km"


def format_speed(speed_kmh: float) -> str:
    return f"{speed_kmh:.1f} km/h"


__all__ = [
    "distance",
    "format_distance",
    "format_duration",
    "format_speed",
    "speed",
]
