#!/usr/bin/env python3
"""
geometry/segment.py
===================
Directed line segment between two points.

Fractional offsets ``t`` always live in ``[0, 1]`` (source to target);
anything outside that range is rejected with :class:`ValueError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from geometry.vector import Vector2


def _check_fraction(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must lie in [0, 1], got {value!r}")


@dataclass(frozen=True)
class Segment:
    """A directed segment ``source → target``."""

    source: Vector2
    target: Vector2

    @property
    def vector(self) -> Vector2:
        return self.target - self.source

    @property
    def length(self) -> float:
        return self.vector.length

    @property
    def direction(self) -> Vector2:
        return self.vector.normalized()

    @property
    def midpoint(self) -> Vector2:
        return self.lerp(0.5)

    @property
    def normal(self) -> Vector2:
        """Left-hand unit normal of the direction of travel."""
        return self.vector.normal()

    def lerp(self, t: float) -> Vector2:
        """Point at fraction *t* of the way from source to target.

        Written as ``source*(1-t) + target*t`` so that both endpoints are
        reproduced exactly.
        """
        _check_fraction("t", t)
        return self.source * (1.0 - t) + self.target * t

    def sub_segment(self, start: float, end: float) -> "Segment":
        """Segment between fractions *start* and *end* of this one."""
        _check_fraction("start", start)
        _check_fraction("end", end)
        return Segment(self.lerp(start), self.lerp(end))

    def split(self, parts: int) -> List["Segment"]:
        """Cut the segment into *parts* equal, contiguous pieces."""
        if parts < 1:
            raise ValueError(f"parts must be >= 1, got {parts!r}")
        points = [self.lerp(i / parts) for i in range(parts + 1)]
        return [Segment(a, b) for a, b in zip(points, points[1:])]

    def project(self, point: Vector2) -> float:
        """Unclamped inverse lerp of *point* onto the supporting line.

        Negative before the source, greater than one past the target.
        """
        vec = self.vector
        return (point - self.source).dot(vec) / vec.dot(vec)

    def normal_point(self, point: Vector2) -> Vector2:
        """Orthogonal projection of *point* onto the supporting line."""
        return self.source + self.vector * self.project(point)

    def closest_point(self, point: Vector2) -> Vector2:
        """Closest point of the segment itself (projection clamped to it)."""
        t = min(1.0, max(0.0, self.project(point)))
        return self.lerp(t)

    def distance_to(self, point: Vector2) -> float:
        return point.distance(self.closest_point(point))
