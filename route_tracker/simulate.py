"""Drive a tracking session from a synthetic live walk.

Usage:
    python -m route_tracker.simulate --points 40 --shape loop --network 3g
"""

from __future__ import annotations

import argparse
import logging
import math
import random
import threading
from typing import Iterator, List, Optional, Sequence

from .aggregator import epoch_ms
from .config import (
    SIMULATION_ACCURACY_M,
    SIMULATION_INTERVAL_MS,
    SIMULATION_JITTER_DEG,
    SIMULATION_ORIGIN,
    SIMULATION_PACE_SECONDS,
    SIMULATION_POINTS,
    SIMULATION_SEED,
    SIMULATION_STEP_DEG,
    SIMULATION_VIEWPORT,
)
from .errors import SampleTimeoutError
from .models import PointRole, ProjectedPoint, Sample, ViewportRect
from .network import StaticNetworkProvider, describe_status, status_from_effective_type
from .scheduler import DeferredTaskScheduler, IdleMonitor
from .session import TrackingSession, TrackingSessionConfig
from .source import IterableSampleSource, SourceItem

_MARKERS = {
    PointRole.START: "S",
    PointRole.CURRENT: "C",
    PointRole.END: "E",
    PointRole.INTERMEDIATE: "*",
}


def build_samples(
    points: int,
    *,
    shape: str = "line",
    interval_ms: int = SIMULATION_INTERVAL_MS,
    origin: tuple[float, float] = SIMULATION_ORIGIN,
    step_deg: float = SIMULATION_STEP_DEG,
    accuracy_m: float = SIMULATION_ACCURACY_M,
    start_ms: int = 0,
    jitter_deg: float = SIMULATION_JITTER_DEG,
    seed: int = SIMULATION_SEED,
) -> List[Sample]:
    """Return a synthetic walk of ``points`` samples spaced ``interval_ms`` apart.

    With ``jitter_deg`` > 0 every fix is offset by up to that many degrees on
    each axis and its reported accuracy varies around ``accuracy_m``. The same
    ``seed`` always yields the same walk.
    """

    if points < 0:
        raise ValueError("points must be >= 0")
    if jitter_deg < 0:
        raise ValueError("jitter_deg must be >= 0")
    rng = random.Random(seed)
    lat0, lng0 = origin
    samples: List[Sample] = []
    for index in range(points):
        if shape == "loop":
            angle = 2.0 * math.pi * index / max(points, 1)
            radius = step_deg * points / (2.0 * math.pi)
            lat = lat0 + radius * math.sin(angle)
            lng = lng0 + radius * (1.0 - math.cos(angle))
        elif shape == "line":
            lat = lat0 + step_deg * index
            lng = lng0 + step_deg * index * 0.5
        else:
            raise ValueError(f"Unknown shape: {shape}")
        accuracy = accuracy_m
        if jitter_deg:
            lat += rng.uniform(-jitter_deg, jitter_deg)
            lng += rng.uniform(-jitter_deg, jitter_deg)
            accuracy = accuracy_m * rng.uniform(0.5, 1.5)
        samples.append(
            Sample(
                lat=lat,
                lng=lng,
                timestamp_ms=start_ms + index * interval_ms,
                accuracy_m=accuracy,
            )
        )
    return samples


class FeedClock:
    """Clock that follows the timestamps of delivered samples."""

    def __init__(self, start_ms: int) -> None:
        self._now = start_ms
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            return self._now

    def advance(self, timestamp_ms: int) -> None:
        with self._lock:
            self._now = max(self._now, timestamp_ms)


def _feed(
    samples: Sequence[Sample], clock: FeedClock, error_at: Optional[int]
) -> Iterator[SourceItem]:
    for index, sample in enumerate(samples):
        if error_at is not None and index == error_at:
            yield SampleTimeoutError("Position fix timed out")
        clock.advance(sample.timestamp_ms)
        yield sample


def render_text(
    points: Sequence[ProjectedPoint],
    viewport: ViewportRect,
    columns: int = 48,
    rows: int = 16,
) -> str:
    """Return a character-grid sketch of projected points (for terminals/logs)."""

    grid = [[" "] * columns for _ in range(rows)]
    if viewport.width <= 0 or viewport.height <= 0:
        return ""
    # Intermediates first so start/head markers win shared cells.
    ordered = sorted(points, key=lambda p: p.role is not PointRole.INTERMEDIATE)
    for point in ordered:
        col = min(columns - 1, int(point.x / viewport.width * columns))
        row = min(rows - 1, int(point.y / viewport.height * rows))
        grid[row][col] = _MARKERS[point.role]
    return "\n".join("".join(line).rstrip() for line in grid)


def run_simulation(
    points: int = SIMULATION_POINTS,
    *,
    shape: str = "line",
    interval_ms: int = SIMULATION_INTERVAL_MS,
    pace_seconds: float = SIMULATION_PACE_SECONDS,
    viewport: ViewportRect = ViewportRect(*SIMULATION_VIEWPORT),
    effective_type: Optional[str] = None,
    error_at: Optional[int] = None,
    jitter_deg: float = SIMULATION_JITTER_DEG,
    seed: int = SIMULATION_SEED,
    timeout: float = 30.0,
) -> TrackingSession:
    """Run a full start -> samples -> stop cycle and return the stopped session."""

    start_ms = epoch_ms()
    clock = FeedClock(start_ms)
    samples = build_samples(
        points,
        shape=shape,
        interval_ms=interval_ms,
        start_ms=start_ms,
        jitter_deg=jitter_deg,
        seed=seed,
    )
    source = IterableSampleSource(_feed(samples, clock, error_at), pace_seconds)
    network = StaticNetworkProvider(status_from_effective_type(effective_type))
    idle = IdleMonitor()
    log = logging.getLogger("simulate")
    log.info("Network: %s", describe_status(network.current()))

    with DeferredTaskScheduler(idle) as scheduler:
        session = TrackingSession(
            scheduler,
            TrackingSessionConfig(
                clock=clock, source=source, network=network, viewport=viewport
            ),
        )
        frames = 0

        def _render(projected: List[ProjectedPoint]) -> None:
            nonlocal frames
            # Stand-in for a renderer frame; keeps background work out of it.
            with idle.busy():
                frames += 1

        session.subscribe_projection(_render)
        session.start()
        if not source.wait_until_drained(timeout):
            log.warning("Sample source did not drain within %.1fs", timeout)
        session.stop()
        future = session.refresh_metrics()
        if future is not None:
            future.result(timeout=timeout)
        log.info(
            "Delivered %d samples, rendered %d frames", source.delivered, frames
        )
    return session


def _setup_logging(verbose: bool) -> None:
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--points", type=int, default=SIMULATION_POINTS)
    parser.add_argument("--interval-ms", type=int, default=SIMULATION_INTERVAL_MS)
    parser.add_argument("--pace", type=float, default=SIMULATION_PACE_SECONDS)
    parser.add_argument("--shape", choices=("line", "loop"), default="line")
    parser.add_argument(
        "--jitter",
        type=float,
        default=SIMULATION_JITTER_DEG,
        help="Max random offset in degrees added to each fix (0 disables)",
    )
    parser.add_argument("--seed", type=int, default=SIMULATION_SEED)
    parser.add_argument("--width", type=int, default=SIMULATION_VIEWPORT[0])
    parser.add_argument("--height", type=int, default=SIMULATION_VIEWPORT[1])
    parser.add_argument(
        "--network",
        default=None,
        help="Connection effective type (slow-2g, 2g, 3g, 4g)",
    )
    parser.add_argument(
        "--error-at",
        type=int,
        default=None,
        help="Inject a source timeout before this sample index",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    _setup_logging(args.verbose)
    viewport = ViewportRect(args.width, args.height)
    session = run_simulation(
        args.points,
        shape=args.shape,
        interval_ms=args.interval_ms,
        pace_seconds=args.pace,
        viewport=viewport,
        effective_type=args.network,
        error_at=args.error_at,
        jitter_deg=args.jitter,
        seed=args.seed,
    )
    summary = session.summary()
    logging.info(
        "Summary: %s | %s | avg %s | current %s | %d points",
        summary["distance"],
        summary["duration"],
        summary["avg_speed"],
        summary["current_speed"],
        summary["points"],
    )
    if summary["error"]:
        logging.info("Last source error: %s", summary["error"])
    sketch = render_text(session.projection(viewport), viewport)
    if sketch:
        logging.info("Route:\n%s", sketch)
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry
    raise SystemExit(main())
