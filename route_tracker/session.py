"""Tracking session controller (application layer).

Owns the authoritative route and metrics snapshot, drives the start/stop
lifecycle and wires incoming samples into deferred metrics recomputation.
Consumers get copies through read-only accessors or listener callbacks and
never see the mutable route itself.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from .aggregator import Clock, MetricsAggregator, epoch_ms
from .errors import SampleSourceError, SchedulerClosedError
from .geomath import format_distance, format_duration, format_speed
from .models import MetricsSnapshot, ProjectedPoint, Route, Sample, ViewportRect
from .network import NetworkProvider, adapt_source_options, describe_status
from .projector import RouteProjector, project
from .scheduler import DeferredTaskScheduler, TaskPriority
from .source import SampleSource, SourceOptions

MetricsListener = Callable[[MetricsSnapshot], None]
ProjectionListener = Callable[[List[ProjectedPoint]], None]
ErrorListener = Callable[[SampleSourceError], None]


class SessionState(str, Enum):
    STOPPED = "stopped"
    ACTIVE = "active"


@dataclass(slots=True)
class TrackingSessionConfig:
    clock: Clock = epoch_ms
    source: Optional[SampleSource] = None
    network: Optional[NetworkProvider] = None
    source_options: SourceOptions = field(default_factory=SourceOptions)
    viewport: Optional[ViewportRect] = None
    logger: logging.Logger | None = None


class TrackingSession:
    """Two-state (stopped / active) controller for a single route.

    ``start`` while already active is a no-op returning ``False``; the running
    route is kept untouched.
    """

    def __init__(
        self,
        scheduler: DeferredTaskScheduler,
        config: TrackingSessionConfig | None = None,
    ) -> None:
        self.config = config or TrackingSessionConfig()
        self._scheduler = scheduler
        self._log = self.config.logger or logging.getLogger(self.__class__.__name__)
        self._clock = self.config.clock
        self._aggregator = MetricsAggregator(clock=self._clock, logger=self._log)
        self._projector = RouteProjector(self.config.viewport)
        self._lock = threading.RLock()
        self._state = SessionState.STOPPED
        self._route = Route()
        self._metrics = MetricsSnapshot.ZERO
        self._start_time_ms: Optional[int] = None
        # Kept after stop() so late recomputes still measure the finished session.
        self._session_start_ms: Optional[int] = None
        self._stopped_at_ms: Optional[int] = None
        self._last_error: Optional[SampleSourceError] = None
        self._active_options: Optional[SourceOptions] = None
        # Bumped on every start() so recomputes from an earlier session are dropped.
        self._generation = 0
        self._recompute_pending = False
        self._read_seq = 0
        self._published_seq = 0
        self._last_future: Optional["Future[Any]"] = None
        self._metrics_listeners: List[MetricsListener] = []
        self._projection_listeners: List[ProjectionListener] = []
        self._error_listeners: List[ErrorListener] = []

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------
    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is SessionState.ACTIVE

    @property
    def route(self) -> Tuple[Sample, ...]:
        with self._lock:
            return self._route.samples()

    @property
    def metrics(self) -> MetricsSnapshot:
        return self._metrics

    @property
    def last_error(self) -> Optional[SampleSourceError]:
        return self._last_error

    @property
    def start_time_ms(self) -> Optional[int]:
        return self._start_time_ms

    @property
    def source_options(self) -> Optional[SourceOptions]:
        """Options the sample source was last activated with."""
        return self._active_options

    @property
    def pending_recompute(self) -> Optional["Future[Any]"]:
        """Future of the most recently scheduled recompute, if any."""
        return self._last_future

    def projection(self, viewport: Optional[ViewportRect] = None) -> List[ProjectedPoint]:
        target = viewport or self._projector.viewport
        if target is None:
            return []
        with self._lock:
            samples = self._route.samples()
            live = self.is_active
        return project(samples, target, live)

    def summary(self) -> Dict[str, Any]:
        """Return the workout summary shown beside the live metrics."""

        with self._lock:
            last = self._route.last
            metrics = self._metrics
            points = len(self._route)
            error = self._last_error
            status = "Active" if self.is_active else "Stopped"
        return {
            "status": status,
            "points": points,
            "accuracy_m": last.accuracy_m if last is not None else None,
            "distance": format_distance(metrics.distance_km),
            "duration": format_duration(metrics.duration_s),
            "avg_speed": format_speed(metrics.avg_speed_kmh),
            "current_speed": format_speed(metrics.current_speed_kmh),
            "error": error.message if error is not None else None,
        }

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------
    def subscribe_metrics(self, listener: MetricsListener) -> Callable[[], None]:
        return self._subscribe(self._metrics_listeners, listener)

    def subscribe_projection(self, listener: ProjectionListener) -> Callable[[], None]:
        return self._subscribe(self._projection_listeners, listener)

    def subscribe_errors(self, listener: ErrorListener) -> Callable[[], None]:
        return self._subscribe(self._error_listeners, listener)

    def _subscribe(self, listeners: List[Any], listener: Any) -> Callable[[], None]:
        with self._lock:
            listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in listeners:
                    listeners.remove(listener)

        return _unsubscribe

    def _notify(self, listeners: List[Any], payload: Any) -> None:
        with self._lock:
            targets = list(listeners)
        for listener in targets:
            try:
                listener(payload)
            except Exception as exc:
                self._log.error("Listener %r failed: %s", listener, exc, exc_info=True)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self) -> bool:
        """Begin a new session; return ``False`` if one is already active."""

        with self._lock:
            if self._state is SessionState.ACTIVE:
                self._log.info("start() ignored: session already active")
                return False
            self._generation += 1
            self._route = Route()
            self._metrics = MetricsSnapshot.ZERO
            self._last_error = None
            self._recompute_pending = False
            self._read_seq = self._published_seq = 0
            self._start_time_ms = self._session_start_ms = self._clock()
            self._stopped_at_ms = None
            self._state = SessionState.ACTIVE
            options = self._resolve_source_options()
            self._active_options = options
        self._log.info("Tracking started at %s", self._start_time_ms)
        self._notify(self._metrics_listeners, MetricsSnapshot.ZERO)
        if self._projector.viewport is not None:
            self._notify(self._projection_listeners, [])
        source = self.config.source
        if source is not None:
            self._activate_source(source, options)
        return True

    def _activate_source(self, source: SampleSource, options: SourceOptions) -> None:
        """Attach the sample source; a refused activation is a recorded source error.

        Any other failure rolls the session back to stopped and propagates.
        """

        try:
            source.activate(options, self.on_sample, self.on_source_error)
        except SampleSourceError as exc:
            self.on_source_error(exc)
        except Exception:
            self._log.error("Sample source failed to activate; stopping session")
            with self._lock:
                self._state = SessionState.STOPPED
                self._route.freeze()
                self._start_time_ms = None
                self._stopped_at_ms = self._clock()
            raise

    def stop(self) -> bool:
        """End the session; route and last metrics stay readable."""

        with self._lock:
            if self._state is SessionState.STOPPED:
                self._log.debug("stop() ignored: session not active")
                return False
            self._state = SessionState.STOPPED
            self._route.freeze()
            self._start_time_ms = None
            self._stopped_at_ms = self._clock()
            points = len(self._route)
        source = self.config.source
        if source is not None:
            source.deactivate()
        self._log.info("Tracking stopped after %d samples", points)
        projection = self._projector.on_route_changed(self.route, False)
        if projection is not None:
            self._notify(self._projection_listeners, projection)
        return True

    def _resolve_source_options(self) -> SourceOptions:
        base = self.config.source_options
        network = self.config.network
        if network is None:
            return base
        status = network.current()
        options = adapt_source_options(base, status)
        self._log.debug(
            "Network %s -> source timeout=%sms max_age=%sms",
            describe_status(status),
            options.timeout_ms,
            options.max_cache_age_ms,
        )
        return options

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def on_sample(self, sample: Sample) -> None:
        """Append ``sample`` and schedule a background metrics recompute."""

        with self._lock:
            if self._state is not SessionState.ACTIVE:
                self._log.debug("Discarding sample received while stopped")
                return
            last = self._route.last
            if last is not None and sample.timestamp_ms < last.timestamp_ms:
                self._log.debug(
                    "Out-of-order sample accepted as-is (%s < %s)",
                    sample.timestamp_ms,
                    last.timestamp_ms,
                )
            self._route.append(sample)
            schedule = not self._recompute_pending
            self._recompute_pending = True
            generation = self._generation
            start_time = self._start_time_ms
            samples = self._route.samples() if self._projector.viewport else ()
        if schedule:
            self._schedule_recompute(generation, start_time, TaskPriority.BACKGROUND)
        projection = self._projector.on_route_changed(samples, True)
        if projection is not None:
            self._notify(self._projection_listeners, projection)

    def on_source_error(self, error: SampleSourceError) -> None:
        """Record a recoverable source failure; tracking continues."""

        with self._lock:
            self._last_error = error
        self._log.warning(
            "Sample source error (code=%s): %s", int(error.code), error.message
        )
        self._notify(self._error_listeners, error)

    def on_viewport_changed(self, viewport: ViewportRect) -> List[ProjectedPoint]:
        with self._lock:
            samples = self._route.samples()
            live = self.is_active
        points = self._projector.on_viewport_changed(viewport, samples, live)
        self._notify(self._projection_listeners, points)
        return points

    def refresh_metrics(
        self, priority: TaskPriority = TaskPriority.IMMEDIATE
    ) -> Optional["Future[Any]"]:
        """Schedule a recompute outside the sample path (e.g. after an error)."""

        with self._lock:
            generation = self._generation
            start_time = self._session_start_ms
            if priority is TaskPriority.BACKGROUND:
                if self._recompute_pending:
                    return self._last_future
                self._recompute_pending = True
        return self._schedule_recompute(generation, start_time, priority)

    # ------------------------------------------------------------------
    # Recompute
    # ------------------------------------------------------------------
    def _schedule_recompute(
        self,
        generation: int,
        start_time: Optional[int],
        priority: TaskPriority,
    ) -> Optional["Future[Any]"]:
        background = priority is TaskPriority.BACKGROUND

        def _task() -> Optional[MetricsSnapshot]:
            return self._recompute(generation, start_time, background)

        try:
            future = self._scheduler.schedule(_task, priority)
        except SchedulerClosedError as exc:
            with self._lock:
                if background:
                    self._recompute_pending = False
            self._log.warning("Metrics recompute not scheduled: %s", exc)
            return None
        with self._lock:
            self._last_future = future
        return future

    def _recompute(
        self, generation: int, start_time: Optional[int], clears_pending: bool
    ) -> Optional[MetricsSnapshot]:
        with self._lock:
            if generation != self._generation:
                self._log.debug("Dropping recompute from a previous session")
                return None
            if clears_pending:
                self._recompute_pending = False
            self._read_seq += 1
            seq = self._read_seq
            samples = self._route.samples()
            now_ms = self._stopped_at_ms
        snapshot = self._aggregator.aggregate(samples, start_time, now_ms=now_ms)
        with self._lock:
            if generation != self._generation or seq < self._published_seq:
                return None
            self._published_seq = seq
            self._metrics = snapshot
        self._notify(self._metrics_listeners, snapshot)
        return snapshot


__all__ = ["SessionState", "TrackingSession", "TrackingSessionConfig"]
