#!/usr/bin/env python3
"""
geometry/rectangle.py
=====================
Oriented rectangle: vehicle footprints and the bounding boxes of roads
and intersections.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from geometry.segment import Segment
from geometry.vector import Vector2


@dataclass(frozen=True)
class Rectangle:
    """Rectangle centred on *origin*, rotated by *angle*.

    ``length`` runs along the heading (local x), ``width`` across it
    (local y).
    """

    origin: Vector2
    length: float
    width: float
    angle: float = 0.0

    @property
    def vertices(self) -> Tuple[Vector2, Vector2, Vector2, Vector2]:
        """Corners in order front-left, front-right, rear-right, rear-left."""
        hl, hw = self.length / 2.0, self.width / 2.0
        local = (Vector2(hl, hw), Vector2(hl, -hw), Vector2(-hl, -hw), Vector2(-hl, hw))
        return tuple(self.origin + v.rotate(self.angle) for v in local)  # type: ignore[return-value]

    def side(self, index: int) -> Segment:
        """Side *index* (0 front, 1 right, 2 rear, 3 left)."""
        if not 0 <= index <= 3:
            raise ValueError(f"rectangle side index must be 0..3, got {index!r}")
        v = self.vertices
        return Segment(v[index], v[(index + 1) % 4])

    @property
    def sides(self) -> Tuple[Segment, ...]:
        return tuple(self.side(i) for i in range(4))

    def closest_vertex(self, point: Vector2) -> Vector2:
        return min(self.vertices, key=point.distance)

    def contains(self, point: Vector2) -> bool:
        local = (point - self.origin).rotate(-self.angle)
        return abs(local.x) <= self.length / 2.0 and abs(local.y) <= self.width / 2.0

    def bounds(self) -> Tuple[float, float, float, float]:
        """Axis-aligned ``(min_x, min_y, max_x, max_y)``."""
        xs = [v.x for v in self.vertices]
        ys = [v.y for v in self.vertices]
        return (min(xs), min(ys), max(xs), max(ys))


def vertex_gap(a: Rectangle, b: Rectangle) -> float:
    """Smallest distance between any vertex of *a* and any vertex of *b*."""
    return min(p.distance(q) for p in a.vertices for q in b.vertices)
