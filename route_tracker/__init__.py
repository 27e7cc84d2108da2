"""Live route tracking: metrics aggregation, projection and deferred scheduling."""

from .aggregator import MetricsAggregator, recompute
from .errors import RouteTrackerError, SampleSourceError
from .geomath import distance, format_duration, speed
from .models import (
    MetricsSnapshot,
    PointRole,
    ProjectedPoint,
    Route,
    Sample,
    ViewportRect,
)
from .projector import RouteProjector, project
from .scheduler import DeferredTaskScheduler, IdleMonitor, TaskPriority
from .session import SessionState, TrackingSession, TrackingSessionConfig

__all__ = [
    "DeferredTaskScheduler",
    "IdleMonitor",
    "MetricsAggregator",
    "MetricsSnapshot",
    "PointRole",
    "ProjectedPoint",
    "Route",
    "RouteProjector",
    "RouteTrackerError",
    "Sample",
    "SampleSourceError",
    "SessionState",
    "TaskPriority",
    "TrackingSession",
    "TrackingSessionConfig",
    "ViewportRect",
    "distance",
    "format_duration",
    "project",
    "recompute",
    "speed",
]
