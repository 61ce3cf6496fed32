#!/usr/bin/env python3
"""
geometry/path.py
================
Polyline a vehicle follows, with a tolerance radius.

Every lane owns one :class:`Path`.  Vehicles query it for the closest
segment, the normal projection of their position, the local tangent and
their signed progress along it.
"""

from __future__ import annotations

import bisect
import math
from typing import List, Sequence, Tuple

from geometry.bezier import BezierCurve
from geometry.segment import Segment
from geometry.vector import Vector2

_CONTIGUITY_TOL = 1e-6


class Path:
    """Ordered, contiguous sequence of segments.

    Parameters
    ----------
    segments : sequence of Segment
        At least one segment; each must start where the previous one ends
        and have non-zero length.
    radius : float
        Lateral tolerance (>= 0).  A vehicle within this distance of the
        path is considered to be on it.
    """

    def __init__(self, segments: Sequence[Segment], radius: float = 0.0) -> None:
        if not segments:
            raise ValueError("a path needs at least one segment")
        if radius < 0.0:
            raise ValueError(f"path radius must be >= 0, got {radius!r}")
        for i, seg in enumerate(segments):
            if seg.length == 0.0:
                raise ValueError(f"segment {i} of the path has zero length")
            if i and segments[i - 1].target.distance(seg.source) > _CONTIGUITY_TOL:
                raise ValueError(
                    f"segment {i} starts at {seg.source} but segment {i - 1} "
                    f"ends at {segments[i - 1].target}"
                )
        self.segments: Tuple[Segment, ...] = tuple(segments)
        self.radius = float(radius)
        # _offsets[i] is the distance along the path at which segment i starts.
        self._offsets: List[float] = [0.0]
        for seg in self.segments:
            self._offsets.append(self._offsets[-1] + seg.length)

    # ── builders ──────────────────────────────────────────────────────────

    @classmethod
    def from_points(cls, points: Sequence[Vector2], radius: float = 0.0) -> "Path":
        if len(points) < 2:
            raise ValueError("a path needs at least two points")
        return cls([Segment(a, b) for a, b in zip(points, points[1:])], radius)

    @classmethod
    def from_bezier(cls, curve: BezierCurve, samples: int, radius: float = 0.0) -> "Path":
        """Sample *curve* into *samples* equal-parameter sub-segments."""
        if samples < 1:
            raise ValueError(f"samples must be >= 1, got {samples!r}")
        return cls.from_points(curve.points(samples), radius)

    # ── shape ─────────────────────────────────────────────────────────────

    @property
    def start(self) -> Vector2:
        return self.segments[0].source

    @property
    def end(self) -> Vector2:
        return self.segments[-1].target

    @property
    def length(self) -> float:
        return self._offsets[-1]

    @property
    def points(self) -> List[Vector2]:
        return [self.start] + [seg.target for seg in self.segments]

    def point_at(self, distance: float) -> Vector2:
        """Point *distance* metres along the path (clamped to its ends)."""
        if distance <= 0.0:
            return self.start
        if distance >= self.length:
            return self.end
        i = bisect.bisect_right(self._offsets, distance) - 1
        seg = self.segments[i]
        return seg.lerp((distance - self._offsets[i]) / seg.length)

    def position(self, t: float) -> Vector2:
        """Point at fraction *t* of the total length, ``t`` in ``[0, 1]``."""
        if not 0.0 <= t <= 1.0:
            raise ValueError(f"path fraction must lie in [0, 1], got {t!r}")
        return self.point_at(t * self.length)

    # ── point queries ─────────────────────────────────────────────────────

    def closest_segment_index(self, point: Vector2) -> int:
        """Index of the segment nearest to *point*; ties go to the first.

        Distance is measured to the clamped segment, not to the normal
        projection on its infinite supporting line, so a point past the end
        of a short segment does not win over the segment it actually lies
        beside.
        """
        best_i, best_d = 0, math.inf
        for i, seg in enumerate(self.segments):
            d = seg.distance_to(point)
            if d < best_d:
                best_i, best_d = i, d
        return best_i

    def closest_segment(self, point: Vector2) -> Segment:
        return self.segments[self.closest_segment_index(point)]

    def normal_point(self, point: Vector2) -> Vector2:
        return self.closest_segment(point).normal_point(point)

    def tangent(self, point: Vector2) -> Vector2:
        return self.closest_segment(point).direction

    def distance_to(self, point: Vector2) -> float:
        return point.distance(self.normal_point(point))

    def cross_track_error(self, point: Vector2) -> float:
        """Signed lateral offset of *point*; positive left of travel."""
        seg = self.closest_segment(point)
        return (point - seg.normal_point(point)).dot(seg.normal)

    def progress(self, point: Vector2) -> float:
        """Signed distance travelled along the path at *point*'s projection.

        Negative before the start, larger than :attr:`length` past the end.
        """
        i = self.closest_segment_index(point)
        seg = self.segments[i]
        return self._offsets[i] + seg.project(point) * seg.length

    def remaining(self, point: Vector2) -> float:
        return self.length - self.progress(point)

    def __repr__(self) -> str:
        return f"Path(start={self.start}, end={self.end}, length={self.length:.2f})"
