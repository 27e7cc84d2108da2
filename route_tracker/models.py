"""Dataclasses describing samples, routes and derived results."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Iterator, List, Optional, Tuple, overload

from .errors import InvalidSampleError, RouteFrozenError


@dataclass(frozen=True, slots=True)
class Sample:
    """One accepted position reading."""

    lat: float
    lng: float
    timestamp_ms: int
    accuracy_m: float = 0.0

    def __post_init__(self) -> None:
        if not math.isfinite(self.lat) or not -90.0 <= self.lat <= 90.0:
            raise InvalidSampleError(f"Latitude out of range: {self.lat}")
        if not math.isfinite(self.lng) or not -180.0 <= self.lng <= 180.0:
            raise InvalidSampleError(f"Longitude out of range: {self.lng}")
        if not math.isfinite(self.accuracy_m) or self.accuracy_m < 0:
            raise InvalidSampleError(f"Accuracy must be >= 0, got {self.accuracy_m}")


class Route:
    """Append-only, insertion-ordered sequence of samples.

    A route grows while its session is active and is frozen when tracking
    stops. Samples are kept in arrival order; timestamps are not reordered.
    """

    __slots__ = ("_samples", "_frozen")

    def __init__(self, samples: Optional[List[Sample]] = None) -> None:
        self._samples: List[Sample] = list(samples or [])
        self._frozen = False

    def append(self, sample: Sample) -> None:
        if self._frozen:
            raise RouteFrozenError("Route is frozen; start a new session first")
        self._samples.append(sample)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def last(self) -> Optional[Sample]:
        return self._samples[-1] if self._samples else None

    def samples(self) -> Tuple[Sample, ...]:
        """Return an immutable copy of the current samples."""

        return tuple(self._samples)

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[Sample]:
        return iter(tuple(self._samples))

    @overload
    def __getitem__(self, index: int) -> Sample: ...

    @overload
    def __getitem__(self, index: slice) -> Tuple[Sample, ...]: ...

    def __getitem__(self, index):
        if isinstance(index, slice):
            return tuple(self._samples[index])
        return self._samples[index]

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "open"
        return f"Route(len={len(self._samples)}, {state})"


@dataclass(frozen=True, slots=True)
class MetricsSnapshot:
    """Motion metrics derived from a route; replaced wholesale, never mutated."""

    distance_km: float = 0.0
    duration_s: float = 0.0
    avg_speed_kmh: float = 0.0
    current_speed_kmh: float = 0.0

    ZERO: ClassVar["MetricsSnapshot"]


MetricsSnapshot.ZERO = MetricsSnapshot()


@dataclass(frozen=True, slots=True)
class ViewportRect:
    """Pixel size of the rendering surface."""

    width: float
    height: float


class PointRole(str, Enum):
    START = "start"
    INTERMEDIATE = "intermediate"
    CURRENT = "current"
    END = "end"


@dataclass(frozen=True, slots=True)
class ProjectedPoint:
    """A route sample mapped into viewport pixel space."""

    index: int
    x: float
    y: float
    role: PointRole
    labeled: bool = False
    label: Optional[str] = None
    # Only set on the head point while tracking is live.
    accuracy_px: Optional[float] = None


__all__ = [
    "MetricsSnapshot",
    "PointRole",
    "ProjectedPoint",
    "Route",
    "Sample",
    "ViewportRect",
]
