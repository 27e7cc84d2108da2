"""Global pytest fixtures & helpers.

Adds project root to path and provides reusable sample factories, a manual
clock and a capturing scheduler so session tests stay deterministic.
"""
from __future__ import annotations

import os
import sys
from concurrent.futures import Future
from typing import Any, Callable, List, Tuple

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from route_tracker.models import Sample
from route_tracker.scheduler import DeferredTaskScheduler, TaskPriority


# --- Factory helpers -------------------------------------------------
def make_sample(lat: float, lng: float, t: int = 0, acc: float = 5.0) -> Sample:
    return Sample(lat=lat, lng=lng, timestamp_ms=t, accuracy_m=acc)


def make_straight_route(count: int, step: float = 0.001, interval_ms: int = 1000) -> List[Sample]:
    return [make_sample(51.48 + step * i, -3.18 + step * i, t=i * interval_ms) for i in range(count)]


class ManualClock:
    """Epoch-millisecond clock advanced explicitly by tests."""

    def __init__(self, now: int = 0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


class CapturingScheduler:
    """Scheduler stand-in that holds tasks until the test runs them."""

    def __init__(self) -> None:
        self.tasks: List[Tuple[Callable[[], Any], TaskPriority, Future]] = []

    def schedule(self, task: Callable[[], Any], priority: TaskPriority) -> Future:
        future: Future = Future()
        self.tasks.append((task, priority, future))
        return future

    def run_all(self) -> List[Any]:
        results = []
        pending, self.tasks = self.tasks, []
        for task, _, future in pending:
            result = task()
            future.set_result(result)
            results.append(result)
        return results


# --- Fixtures --------------------------------------------------------
@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(0)


@pytest.fixture
def capturing_scheduler() -> CapturingScheduler:
    return CapturingScheduler()


@pytest.fixture
def scheduler():
    sched = DeferredTaskScheduler(None, frame_interval_s=0.005, max_delay_s=0.2)
    yield sched
    sched.shutdown(wait=True)


@pytest.fixture
def two_point_route() -> List[Sample]:
    return [make_sample(0.0, 0.0, t=0, acc=5), make_sample(0.001, 0.0, t=1000, acc=5)]


@pytest.fixture
def sample_factory() -> Callable[..., Sample]:
    return make_sample


@pytest.fixture
def route_factory() -> Callable[..., List[Sample]]:
    return make_straight_route
