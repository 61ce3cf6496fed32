#!/usr/bin/env python3
"""
geometry/bezier.py
==================
Cubic Bezier curve used to shape the connector lanes inside an
intersection.

The curve is immutable; its arclength is computed once at construction by
summing chord lengths over a fixed sampling.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np

from geometry.vector import Vector2

_ARCLENGTH_STEPS = 100


def _check_parameter(t: float) -> None:
    if not 0.0 <= t <= 1.0:
        raise ValueError(f"curve parameter must lie in [0, 1], got {t!r}")


@dataclass(frozen=True)
class BezierCurve:
    """Cubic Bezier curve defined by four control points.

    Parameters
    ----------
    p0, p3 : Vector2
        End points (the curve passes through both).
    p1, p2 : Vector2
        Inner control points shaping the departure and arrival tangents.
    """

    p0: Vector2
    p1: Vector2
    p2: Vector2
    p3: Vector2
    length: float = field(init=False, compare=False)

    def __post_init__(self) -> None:
        pts = self._evaluate(np.linspace(0.0, 1.0, _ARCLENGTH_STEPS + 1))
        chords = np.diff(pts, axis=0)
        object.__setattr__(self, "length", float(np.hypot(chords[:, 0], chords[:, 1]).sum()))

    @property
    def control_points(self) -> List[Vector2]:
        return [self.p0, self.p1, self.p2, self.p3]

    def _control_array(self) -> np.ndarray:
        return np.array([p.as_tuple() for p in self.control_points], dtype=float)

    def _evaluate(self, ts: Sequence[float]) -> np.ndarray:
        t = np.asarray(ts, dtype=float)[:, None]
        mt = 1.0 - t
        basis = np.hstack([mt ** 3, 3.0 * mt ** 2 * t, 3.0 * mt * t ** 2, t ** 3])
        return basis @ self._control_array()

    def position(self, t: float) -> Vector2:
        """Point on the curve at parameter *t* in ``[0, 1]``."""
        _check_parameter(t)
        x, y = self._evaluate([t])[0]
        return Vector2(float(x), float(y))

    def tangent(self, t: float) -> Vector2:
        """First derivative of the curve at *t* (not normalised)."""
        _check_parameter(t)
        p0, p1, p2, p3 = self.control_points
        mt = 1.0 - t
        return (
            (p1 - p0) * (3.0 * mt * mt)
            + (p2 - p1) * (6.0 * mt * t)
            + (p3 - p2) * (3.0 * t * t)
        )

    def points(self, samples: int) -> List[Vector2]:
        """``samples + 1`` points at equal parameter steps, both ends included."""
        if samples < 1:
            raise ValueError(f"samples must be >= 1, got {samples!r}")
        pts = self._evaluate(np.linspace(0.0, 1.0, samples + 1))
        return [Vector2(float(x), float(y)) for x, y in pts]
