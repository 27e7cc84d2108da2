"""Metrics aggregation over a route.

Pure transformation: given the samples of a route, the tracking start time
and the current time it produces a :class:`MetricsSnapshot`. The full
distance sum is recomputed on every call, so the result is always exactly the
sum of consecutive segment distances over the route as it currently is.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, Optional, Sequence

from .geomath import distance, speed
from .models import MetricsSnapshot, Route, Sample

Clock = Callable[[], int]


def epoch_ms() -> int:
    return time.time_ns() // 1_000_000


def _as_samples(route: Route | Iterable[Sample]) -> Sequence[Sample]:
    if isinstance(route, Route):
        return route.samples()
    return tuple(route)


def total_distance(samples: Sequence[Sample]) -> float:
    """Return the summed great-circle distance (km) over consecutive samples."""

    total = 0.0
    for index in range(1, len(samples)):
        total += distance(samples[index - 1], samples[index])
    return total


def last_segment_speed(samples: Sequence[Sample]) -> float:
    """Return km/h between the final two samples, or 0 with fewer than two."""

    if len(samples) < 2:
        return 0.0
    previous, latest = samples[-2], samples[-1]
    elapsed_s = (latest.timestamp_ms - previous.timestamp_ms) / 1000.0
    return speed(distance(previous, latest), elapsed_s)


def recompute(
    route: Route | Iterable[Sample],
    start_time_ms: Optional[int],
    now_ms: int,
) -> MetricsSnapshot:
    """Return a fresh snapshot for ``route`` as of ``now_ms``.

    Duration is measured from ``start_time_ms`` (0 when tracking has no start
    time); average speed is distance over duration and current speed uses
    only the last two samples.
    """

    samples = _as_samples(route)
    if start_time_ms is None:
        duration_s = 0.0
    else:
        duration_s = max(0, now_ms - start_time_ms) / 1000.0
    distance_km = total_distance(samples) if len(samples) > 1 else 0.0
    return MetricsSnapshot(
        distance_km=distance_km,
        duration_s=duration_s,
        avg_speed_kmh=speed(distance_km, duration_s),
        current_speed_kmh=last_segment_speed(samples),
    )


class MetricsAggregator:
    """Clock-aware wrapper around :func:`recompute` used by the session."""

    def __init__(
        self, clock: Clock = epoch_ms, logger: logging.Logger | None = None
    ) -> None:
        self._clock = clock
        self._log = logger or logging.getLogger(self.__class__.__name__)

    def aggregate(
        self,
        route: Route | Iterable[Sample],
        start_time_ms: Optional[int],
        *,
        now_ms: Optional[int] = None,
    ) -> MetricsSnapshot:
        """Recompute metrics as of ``now_ms`` (the clock's time when omitted)."""

        samples = _as_samples(route)
        started = time.perf_counter()
        if now_ms is None:
            now_ms = self._clock()
        snapshot = recompute(samples, start_time_ms, now_ms)
        self._log.debug(
            "Recomputed metrics over %d samples in %.2fms: %.3f km, %.1fs",
            len(samples),
            (time.perf_counter() - started) * 1000.0,
            snapshot.distance_km,
            snapshot.duration_s,
        )
        return snapshot


__all__ = [
    "MetricsAggregator",
    "epoch_ms",
    "last_segment_speed",
    "recompute",
    "total_distance",
]
