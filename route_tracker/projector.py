"""Projection of a route onto a fixed-size pixel viewport.

Longitude maps linearly to x (left to right) and latitude to y (inverted, so
north is up). The extent is the route's own bounding box, so any new sample
can move every projected point; projection is therefore always recomputed in
full rather than patched.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from .config import (
    ACCURACY_PX_DIVISOR,
    ACCURACY_PX_MAX,
    DEGENERATE_RANGE_DEG,
    LABEL_DIVISIONS,
    LABEL_MIN_POINTS,
    PROJECTION_PADDING_PX,
)
from .models import PointRole, ProjectedPoint, Route, Sample, ViewportRect

PixelArray = NDArray[np.float64]


def accuracy_radius_px(accuracy_m: float) -> float:
    """Return the on-screen accuracy indicator radius.

    This is a legibility clamp, not a geodesic conversion.
    """

    return min(accuracy_m / ACCURACY_PX_DIVISOR, ACCURACY_PX_MAX)


def label_indices(count: int) -> List[int]:
    """Return the indices tagged for an index label on a route of ``count`` points."""

    if count <= LABEL_MIN_POINTS:
        return []
    step = count // LABEL_DIVISIONS
    return list(range(0, count, step))


def point_role(index: int, count: int, is_live: bool) -> PointRole:
    if index == 0:
        return PointRole.START
    if index == count - 1:
        return PointRole.CURRENT if is_live else PointRole.END
    return PointRole.INTERMEDIATE


def _axis_bounds(values: PixelArray) -> tuple[float, float, float]:
    low = float(values.min())
    high = float(values.max())
    span = high - low
    if span == 0:
        span = DEGENERATE_RANGE_DEG
    return low, high, span


def project_coordinates(
    lats: Sequence[float],
    lngs: Sequence[float],
    viewport: ViewportRect,
    padding: float = PROJECTION_PADDING_PX,
) -> tuple[PixelArray, PixelArray]:
    """Map lat/lng arrays into padded viewport pixel coordinates."""

    lat_arr = np.asarray(lats, dtype=float)
    lng_arr = np.asarray(lngs, dtype=float)
    if lat_arr.size == 0:
        return lat_arr.copy(), lng_arr.copy()
    _, max_lat, lat_range = _axis_bounds(lat_arr)
    min_lng, _, lng_range = _axis_bounds(lng_arr)
    usable_w = max(0.0, viewport.width - 2 * padding)
    usable_h = max(0.0, viewport.height - 2 * padding)
    xs = (lng_arr - min_lng) / lng_range * usable_w + padding
    ys = (max_lat - lat_arr) / lat_range * usable_h + padding
    xs = np.clip(xs, padding, padding + usable_w)
    ys = np.clip(ys, padding, padding + usable_h)
    return xs, ys


def project(
    route: Route | Iterable[Sample],
    viewport: ViewportRect,
    is_live: bool,
) -> List[ProjectedPoint]:
    """Return pixel-space points with rendering roles for every route sample.

    Args:
        route: Route (or any sample sequence) to project.
        viewport: Target pixel rectangle.
        is_live: Whether tracking is active; controls the head point's role
            and whether it carries an accuracy radius.

    Returns:
        One :class:`ProjectedPoint` per sample in route order, or an empty
        list for an empty route.
    """

    samples = route.samples() if isinstance(route, Route) else tuple(route)
    count = len(samples)
    if count == 0:
        return []
    xs, ys = project_coordinates(
        [s.lat for s in samples], [s.lng for s in samples], viewport
    )
    labeled = set(label_indices(count))
    head = count - 1
    points: List[ProjectedPoint] = []
    for index, sample in enumerate(samples):
        is_labeled = index in labeled
        points.append(
            ProjectedPoint(
                index=index,
                x=float(xs[index]),
                y=float(ys[index]),
                role=point_role(index, count, is_live),
                labeled=is_labeled,
                label=str(index + 1) if is_labeled else None,
                accuracy_px=accuracy_radius_px(sample.accuracy_m)
                if is_live and index == head
                else None,
            )
        )
    return points


class RouteProjector:
    """Re-projects the route whenever the route or the viewport changes."""

    def __init__(self, viewport: Optional[ViewportRect] = None) -> None:
        self._viewport = viewport
        self._log = logging.getLogger(self.__class__.__name__)

    @property
    def viewport(self) -> Optional[ViewportRect]:
        return self._viewport

    def on_viewport_changed(
        self,
        viewport: ViewportRect,
        route: Route | Iterable[Sample],
        is_live: bool,
    ) -> List[ProjectedPoint]:
        self._viewport = viewport
        self._log.debug("Viewport changed to %sx%s", viewport.width, viewport.height)
        return project(route, viewport, is_live)

    def on_route_changed(
        self, route: Route | Iterable[Sample], is_live: bool
    ) -> Optional[List[ProjectedPoint]]:
        """Return the new projection, or ``None`` before any viewport is known."""

        if self._viewport is None:
            return None
        return project(route, self._viewport, is_live)


__all__ = [
    "RouteProjector",
    "accuracy_radius_px",
    "label_indices",
    "point_role",
    "project",
    "project_coordinates",
]
