#!/usr/bin/env python3
"""
traffic/physics.py
==================
Rigid-body integration and low-level physics helpers used by
:mod:`traffic.vehicle` and :mod:`traffic.world`.

Keeping these in a separate module avoids circular imports and makes unit
testing straightforward.
"""

from __future__ import annotations

import math

from geometry.vector import Vector2


def mps_to_kmh(speed_mps: float) -> float:
    """Convert m/s to km/h."""
    return max(0.0, float(speed_mps)) * 3.6


def wrap_angle(angle: float) -> float:
    """Map *angle* into ``(-pi, pi]``."""
    wrapped = math.fmod(angle + math.pi, 2.0 * math.pi)
    if wrapped <= 0.0:
        wrapped += 2.0 * math.pi
    return wrapped - math.pi


class RigidBody:
    """Planar rigid body integrated with semi-implicit Euler.

    Forces and torques accumulate between steps and are cleared by
    :meth:`integrate`.

    Parameters
    ----------
    mass : float
        Kilograms, > 0.
    moment_of_inertia : float
        kg·m², > 0.
    position : Vector2
        Centre of mass in world metres.
    angle : float
        Heading in radians (0 = +x).
    velocity : Vector2
        Linear velocity in m/s.
    """

    def __init__(
        self,
        mass: float,
        moment_of_inertia: float,
        position: Vector2 = Vector2(),
        angle: float = 0.0,
        velocity: Vector2 = Vector2(),
        angular_velocity: float = 0.0,
    ) -> None:
        if mass <= 0.0:
            raise ValueError(f"mass must be > 0, got {mass!r}")
        if moment_of_inertia <= 0.0:
            raise ValueError(f"moment of inertia must be > 0, got {moment_of_inertia!r}")
        self.mass = float(mass)
        self.moment_of_inertia = float(moment_of_inertia)
        self.position = position
        self.angle = float(angle)
        self.velocity = velocity
        self.angular_velocity = float(angular_velocity)
        self.force = Vector2()
        self.torque = 0.0

    @property
    def speed(self) -> float:
        return self.velocity.length

    @property
    def heading(self) -> Vector2:
        return Vector2.from_angle(self.angle)

    def apply_force(self, force: Vector2) -> None:
        self.force = self.force + force

    def apply_torque(self, torque: float) -> None:
        self.torque += torque

    def integrate(self, dt: float) -> None:
        """Advance velocity first, then position, then clear accumulators."""
        acceleration = self.force / self.mass
        self.velocity = self.velocity + acceleration * dt
        self.position = self.position + self.velocity * dt

        angular_acceleration = self.torque / self.moment_of_inertia
        self.angular_velocity += angular_acceleration * dt
        self.angle = wrap_angle(self.angle + self.angular_velocity * dt)

        self.force = Vector2()
        self.torque = 0.0
