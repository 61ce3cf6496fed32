#!/usr/bin/env python3
"""
traffic/vehicle.py
==================
Vehicle entity: a :class:`~traffic.physics.RigidBody` with driver
parameters, a steering controller and exactly one driving state.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional

from geometry.rectangle import Rectangle, vertex_gap
from geometry.vector import Vector2
from traffic.errors import InvalidVehicleParameters
from traffic.idm import LeaderInfo
from traffic.physics import RigidBody, mps_to_kmh
from traffic.pid import PIDController
from traffic.policy import SimulationPolicy

if TYPE_CHECKING:
    from traffic.driving import DrivingState
    from traffic.signals import TurnDirection


@dataclass(frozen=True)
class VehicleParams:
    """Physical and behavioural parameters of one vehicle."""

    mass: float = 1200.0
    moment_of_inertia: float = 1500.0
    width: float = 1.8
    length: float = 4.5
    max_speed: float = 14.0
    """Speed cap in m/s (combined with lane limits)."""
    max_acceleration: float = 2.0
    braking_deceleration: float = 3.0
    """Comfortable IDM deceleration ``b`` in m/s²."""
    politeness: float = 0.3
    """MOBIL politeness ``p`` in [0, 1]."""
    max_steering_angle: float = 0.6
    """Radians; bounds the lateral acceleration to ``tan(angle)·speed``."""
    initial_speed: float = 0.0

    def validate(self, policy: SimulationPolicy) -> None:
        """Raise :class:`InvalidVehicleParameters` if outside the envelope."""
        problems = []
        for name in ("mass", "moment_of_inertia", "width", "length", "max_speed",
                     "braking_deceleration", "max_steering_angle"):
            if getattr(self, name) <= 0.0:
                problems.append(f"{name} must be > 0")
        if self.max_acceleration < policy.min_vehicle_acceleration_mps2:
            problems.append(
                f"max_acceleration {self.max_acceleration} below "
                f"{policy.min_vehicle_acceleration_mps2}"
            )
        if self.braking_deceleration > policy.max_vehicle_braking_mps2:
            problems.append(
                f"braking_deceleration {self.braking_deceleration} above "
                f"{policy.max_vehicle_braking_mps2}"
            )
        if not 0.0 <= self.politeness <= 1.0:
            problems.append("politeness must lie in [0, 1]")
        if self.max_steering_angle >= math.pi / 2:
            problems.append("max_steering_angle must be < pi/2")
        if not 0.0 <= self.initial_speed <= self.max_speed:
            problems.append("initial_speed must lie in [0, max_speed]")
        if problems:
            raise InvalidVehicleParameters("; ".join(problems))


class Vehicle(RigidBody):
    """A simulated car.

    Attributes
    ----------
    id : str
        Unique identifier (e.g. ``CAR_000``).
    params : VehicleParams
        Kinematic bundle.
    state : DrivingState or None
        Current driving state; set by the world on spawn.
    leader_info : dict
        Lane id → :class:`~traffic.idm.LeaderInfo`, refreshed by each
        occupied lane every tick.
    pid : PIDController
        Lateral controller on the cross-track error.
    turn_preference : TurnDirection or None
        Preferred movement at the next intersection.
    """

    def __init__(
        self,
        vehicle_id: str,
        params: VehicleParams,
        position: Vector2,
        angle: float,
        policy: SimulationPolicy,
    ) -> None:
        super().__init__(
            mass=params.mass,
            moment_of_inertia=params.moment_of_inertia,
            position=position,
            angle=angle,
            velocity=Vector2.from_angle(angle, params.initial_speed),
        )
        self.id = vehicle_id
        self.params = params
        self.state: Optional["DrivingState"] = None
        self.leader_info: Dict[str, LeaderInfo] = {}
        self.pid = PIDController(policy.steering_kp, policy.steering_ki, policy.steering_kd)
        self.turn_preference: Optional["TurnDirection"] = None

    # ── parameter shortcuts ───────────────────────────────────────────────

    @property
    def width(self) -> float:
        return self.params.width

    @property
    def length(self) -> float:
        return self.params.length

    @property
    def max_speed(self) -> float:
        return self.params.max_speed

    @property
    def max_acceleration(self) -> float:
        return self.params.max_acceleration

    @property
    def braking_deceleration(self) -> float:
        return self.params.braking_deceleration

    @property
    def politeness(self) -> float:
        return self.params.politeness

    # ── geometry ──────────────────────────────────────────────────────────

    def footprint(self) -> Rectangle:
        return Rectangle(self.position, self.length, self.width, self.angle)

    def bumper_distance(self, other: "Vehicle") -> float:
        """Closest corner-to-corner distance between the two footprints."""
        return vertex_gap(self.footprint(), other.footprint())

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "x": round(self.position.x, 3),
            "y": round(self.position.y, 3),
            "heading": round(self.angle, 4),
            "speed": round(self.speed, 3),
            "speed_kmh": round(mps_to_kmh(self.speed), 2),
            "state": type(self.state).__name__ if self.state is not None else None,
            "lanes": list(self.state.lane_ids) if self.state is not None else [],
            "turn": self.turn_preference.value if self.turn_preference else None,
        }

    def __repr__(self) -> str:
        return f"Vehicle({self.id!r}, pos={self.position}, v={self.speed:.2f})"
