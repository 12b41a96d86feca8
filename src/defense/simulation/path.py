"""PathModel — the fixed polyline enemies walk along.

Waypoints are stored normalised to the viewport (0..1 on each axis) and
converted to absolute pixels whenever the viewport is resized.  Enemies
never store pixel positions authoritatively: they carry a scalar
``progress`` in [0, 1] and ask the path for a point each frame, so a
resize mid-wave moves everyone consistently.

Geometry helpers:
  - position_at_progress(p) -- arc-length parametrised point on the path
  - is_on_path(point)       -- placement check against the path corridor
  - point_to_segment_distance(p, a, b) -- clamped projection distance
"""

from __future__ import annotations

import math
from typing import Sequence

Point = tuple[float, float]

# Serpentine route, left edge to right edge.
DEFAULT_WAYPOINTS: tuple[Point, ...] = (
    (0.0, 0.5),
    (0.15, 0.5),
    (0.15, 0.15),
    (0.35, 0.15),
    (0.35, 0.45),
    (0.2, 0.45),
    (0.2, 0.75),
    (0.5, 0.75),
    (0.5, 0.3),
    (0.7, 0.3),
    (0.7, 0.6),
    (0.85, 0.6),
    (0.85, 0.2),
    (1.0, 0.2),
)

DEFAULT_PATH_WIDTH = 60.0


def point_to_segment_distance(p: Point, a: Point, b: Point) -> float:
    """Distance from *p* to the segment *a*-*b*.

    A zero-length segment degrades to point-to-point distance.
    """
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    if dx == 0 and dy == 0:
        return math.hypot(p[0] - a[0], p[1] - a[1])

    t = ((p[0] - a[0]) * dx + (p[1] - a[1]) * dy) / (dx * dx + dy * dy)
    t = max(0.0, min(1.0, t))
    proj_x = a[0] + t * dx
    proj_y = a[1] + t * dy
    return math.hypot(p[0] - proj_x, p[1] - proj_y)


class PathModel:
    """Immutable-per-frame polyline with a cached segment table."""

    def __init__(
        self,
        width: float,
        height: float,
        waypoints: Sequence[Point] | None = None,
        path_width: float = DEFAULT_PATH_WIDTH,
    ) -> None:
        normalized = tuple(waypoints) if waypoints is not None else DEFAULT_WAYPOINTS
        if len(normalized) < 2:
            raise ValueError("a path needs at least two waypoints")
        self._normalized: tuple[Point, ...] = tuple((float(x), float(y)) for x, y in normalized)
        self.path_width = float(path_width)
        self.width = 0.0
        self.height = 0.0
        self._waypoints: list[Point] = []
        self._segments: list[tuple[Point, Point]] = []
        self._lengths: list[float] = []
        self._total_length = 0.0
        self.resize(width, height)

    # -- Derived geometry -------------------------------------------------------

    @property
    def waypoints(self) -> list[Point]:
        """Absolute waypoints for the current viewport."""
        return list(self._waypoints)

    @property
    def segments(self) -> list[tuple[Point, Point]]:
        return list(self._segments)

    @property
    def total_length(self) -> float:
        return self._total_length

    @property
    def start(self) -> Point:
        return self._waypoints[0]

    @property
    def end(self) -> Point:
        return self._waypoints[-1]

    def resize(self, width: float, height: float) -> None:
        """Recompute absolute waypoints and the segment cache."""
        self.width = float(width)
        self.height = float(height)
        self._waypoints = [(x * self.width, y * self.height) for x, y in self._normalized]
        self._segments = [
            (self._waypoints[i], self._waypoints[i + 1])
            for i in range(len(self._waypoints) - 1)
        ]
        self._lengths = [math.hypot(b[0] - a[0], b[1] - a[1]) for a, b in self._segments]
        self._total_length = sum(self._lengths)

    # -- Queries ----------------------------------------------------------------

    def position_at_progress(self, progress: float) -> Point:
        """Point at fraction *progress* of the total path length."""
        if progress >= 1.0:
            return self._waypoints[-1]
        if progress <= 0.0 or self._total_length == 0.0:
            return self._waypoints[0]

        target = progress * self._total_length
        travelled = 0.0
        for (a, b), length in zip(self._segments, self._lengths):
            if length == 0.0:
                continue
            if travelled + length >= target:
                t = (target - travelled) / length
                return (a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t)
            travelled += length

        # Float accumulation can leave target a hair past the last segment.
        return self._waypoints[-1]

    def distance_to_path(self, point: Point) -> float:
        """Minimum distance from *point* to any segment of the path."""
        return min(point_to_segment_distance(point, a, b) for a, b in self._segments)

    def is_on_path(self, point: Point, path_width: float | None = None) -> bool:
        """True if *point* lies inside the path corridor."""
        width = self.path_width if path_width is None else path_width
        half = width / 2
        for a, b in self._segments:
            if point_to_segment_distance(point, a, b) < half:
                return True
        return False

    def to_dict(self) -> dict:
        return {
            "width": self.width,
            "height": self.height,
            "path_width": self.path_width,
            "waypoints": [{"x": x, "y": y} for x, y in self._waypoints],
        }
