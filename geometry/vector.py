#!/usr/bin/env python3
"""
geometry/vector.py
==================
Immutable 2D vector used by every other geometry primitive.

The world frame is y-up: a positive 2D cross product means the second
vector lies counter-clockwise (to the left) of the first.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Vector2:
    """A 2D float pair with the usual arithmetic."""

    x: float = 0.0
    y: float = 0.0

    @classmethod
    def from_angle(cls, angle: float, magnitude: float = 1.0) -> "Vector2":
        return cls(math.cos(angle) * magnitude, math.sin(angle) * magnitude)

    # ── arithmetic ────────────────────────────────────────────────────────

    def __add__(self, other: "Vector2") -> "Vector2":
        return Vector2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Vector2") -> "Vector2":
        return Vector2(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> "Vector2":
        return Vector2(self.x * scalar, self.y * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> "Vector2":
        return Vector2(self.x / scalar, self.y / scalar)

    def __neg__(self) -> "Vector2":
        return Vector2(-self.x, -self.y)

    # ── metrics ───────────────────────────────────────────────────────────

    @property
    def length(self) -> float:
        return math.hypot(self.x, self.y)

    @property
    def angle(self) -> float:
        """Angle from the +x axis in radians, in (-pi, pi]."""
        return math.atan2(self.y, self.x)

    def normalized(self) -> "Vector2":
        """Unit vector with the same direction.

        Raises
        ------
        ValueError
            If the vector has zero length.
        """
        norm = self.length
        if norm == 0.0:
            raise ValueError("cannot normalise a zero-length vector")
        return Vector2(self.x / norm, self.y / norm)

    def normal(self) -> "Vector2":
        """Left-hand unit normal (rotated +90 degrees)."""
        unit = self.normalized()
        return Vector2(-unit.y, unit.x)

    def dot(self, other: "Vector2") -> float:
        return self.x * other.x + self.y * other.y

    def cross(self, other: "Vector2") -> float:
        """Scalar 2D cross product (z component of the 3D cross product)."""
        return self.x * other.y - self.y * other.x

    def distance(self, other: "Vector2") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def rotate(self, angle: float) -> "Vector2":
        c, s = math.cos(angle), math.sin(angle)
        return Vector2(self.x * c - self.y * s, self.x * s + self.y * c)

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)
