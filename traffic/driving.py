#!/usr/bin/env python3
"""
traffic/driving.py
==================
Driving-behaviour states and their dispatch table.

A vehicle is always in exactly one state:

* :class:`KeepLane` — follow one lane, hand off to its successor at the
  end, and ask MOBIL whether a neighbouring lane is better.
* :class:`ChangeLane` — occupy two lanes while steering onto the target
  one; becomes ``KeepLane(target)`` once inside the target path radius.

States are immutable values.  Behaviour lives in plain functions looked
up by state type in ``_BEHAVIOURS``; :func:`decide` never mutates lanes.
The world applies the returned :class:`DrivingDecision` and performs the
exit / enter effects of a transition explicitly.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, NamedTuple, Optional, Tuple, Type, Union

from geometry.path import Path
from geometry.vector import Vector2
from traffic.errors import InvalidLaneChange
from traffic.idm import LeaderInfo, idm_acceleration
from traffic.lane import Lane
from traffic.mobil import optimal_lane
from traffic.physics import wrap_angle
from traffic.policy import SimulationPolicy

if TYPE_CHECKING:
    from traffic.network import RoadNetwork
    from traffic.vehicle import Vehicle


@dataclass(frozen=True)
class KeepLane:
    lane_id: str

    @property
    def lane_ids(self) -> Tuple[str, ...]:
        return (self.lane_id,)


@dataclass(frozen=True)
class ChangeLane:
    from_lane_id: str
    to_lane_id: str

    def __post_init__(self) -> None:
        if self.from_lane_id == self.to_lane_id:
            raise InvalidLaneChange(f"cannot change from lane {self.from_lane_id} to itself")

    @classmethod
    def between(cls, source: Lane, target: Lane) -> "ChangeLane":
        if source.id == target.id or source.index == target.index:
            raise InvalidLaneChange(f"lanes {source.id} and {target.id} share index {source.index}")
        return cls(source.id, target.id)

    @property
    def lane_ids(self) -> Tuple[str, ...]:
        return (self.from_lane_id, self.to_lane_id)


DrivingState = Union[KeepLane, ChangeLane]


class DrivingDecision(NamedTuple):
    """Result of one :func:`decide` call."""

    acceleration: Vector2
    angular_acceleration: float
    next_state: Optional[DrivingState] = None


# ── shared helpers ────────────────────────────────────────────────────────────

def _leader_info(vehicle: "Vehicle", lane: Lane, network: "RoadNetwork",
                 policy: SimulationPolicy) -> LeaderInfo:
    info = vehicle.leader_info.get(lane.id)
    if info is None:
        # Lane has not refreshed since the vehicle entered it.
        front = lane.vehicle_neighbors(vehicle).front
        info = lane.compute_leader_info(vehicle, front, network, policy)
    return info


def _tangential(vehicle: "Vehicle", lane: Lane, max_speed: float, network: "RoadNetwork",
                policy: SimulationPolicy) -> float:
    speed = vehicle.velocity.dot(lane.path.tangent(vehicle.position))
    return idm_acceleration(
        speed, max_speed, vehicle.max_acceleration, vehicle.braking_deceleration,
        _leader_info(vehicle, lane, network, policy), policy,
    )


def _steering(vehicle: "Vehicle", path: Path, dt: float) -> float:
    """Lateral acceleration (positive to the left) pulling back onto *path*."""
    speed = vehicle.speed
    if speed == 0.0:
        return 0.0
    vehicle.pid.update(path.cross_track_error(vehicle.position), dt)
    limit = math.tan(vehicle.params.max_steering_angle) * speed
    return max(-limit, min(limit, -vehicle.pid.output()))


def _align_heading(vehicle: "Vehicle", dt: float, policy: SimulationPolicy) -> float:
    """Angular acceleration that turns the body onto its velocity within *dt*."""
    if vehicle.speed < policy.min_heading_speed_mps:
        return -vehicle.angular_velocity / dt
    delta = wrap_angle(vehicle.velocity.angle - vehicle.angle)
    return (delta / dt - vehicle.angular_velocity) / dt


def _compose(vehicle: "Vehicle", path: Path, a_t: float, a_n: float, dt: float,
             policy: SimulationPolicy) -> Tuple[Vector2, float]:
    tangent = path.tangent(vehicle.position)
    # Braking never reverses the vehicle within one tick.
    a_t = max(a_t, -vehicle.velocity.dot(tangent) / dt)
    accel = tangent * a_t + tangent.normal() * a_n
    return accel, _align_heading(vehicle, dt, policy)


def _front_reached_end(vehicle: "Vehicle", lane: Lane, policy: SimulationPolicy) -> bool:
    front = lane.progress(vehicle) + vehicle.length / 2.0
    return front >= lane.path.length - policy.lane_end_tolerance_m


# ── KeepLane ──────────────────────────────────────────────────────────────────

def _keep_max_speed(state: KeepLane, vehicle: "Vehicle", network: "RoadNetwork") -> float:
    return min(vehicle.max_speed, network.lane(state.lane_id).speed_limit)


def _keep_decide(state: KeepLane, vehicle: "Vehicle", network: "RoadNetwork", dt: float,
                 policy: SimulationPolicy) -> DrivingDecision:
    lane = network.lane(state.lane_id)
    a_t = _tangential(vehicle, lane, _keep_max_speed(state, vehicle, network), network, policy)
    a_n = _steering(vehicle, lane.path, dt)
    accel, alpha = _compose(vehicle, lane.path, a_t, a_n, dt, policy)

    next_state: Optional[DrivingState] = None
    if _front_reached_end(vehicle, lane, policy):
        successor = network.next_lane(lane.id, vehicle.turn_preference)
        if successor is not None:
            next_state = KeepLane(successor.id)
    elif lane.neighbor_ids:
        target = optimal_lane(vehicle, lane, network, policy)
        if target.index != lane.index:
            next_state = ChangeLane.between(lane, target)
    return DrivingDecision(accel, alpha, next_state)


# ── ChangeLane ────────────────────────────────────────────────────────────────

def _change_max_speed(state: ChangeLane, vehicle: "Vehicle", network: "RoadNetwork") -> float:
    limits = [network.lane(lid).speed_limit for lid in state.lane_ids]
    return min([vehicle.max_speed] + limits)


def _change_decide(state: ChangeLane, vehicle: "Vehicle", network: "RoadNetwork", dt: float,
                   policy: SimulationPolicy) -> DrivingDecision:
    source = network.lane(state.from_lane_id)
    target = network.lane(guide_lane(state))
    max_speed = _change_max_speed(state, vehicle, network)
    a_t = min(
        (_tangential(vehicle, lane, max_speed, network, policy) for lane in (source, target)),
        key=abs,
    )
    a_n = _steering(vehicle, target.path, dt)
    accel, alpha = _compose(vehicle, target.path, a_t, a_n, dt, policy)

    next_state: Optional[DrivingState] = None
    if target.path.distance_to(vehicle.position) <= target.path.radius:
        next_state = KeepLane(target.id)
    return DrivingDecision(accel, alpha, next_state)


# ── dispatch table ────────────────────────────────────────────────────────────

class _Behaviour(NamedTuple):
    guide_lane: Callable[..., str]
    max_speed: Callable[..., float]
    decide: Callable[..., DrivingDecision]


_BEHAVIOURS: Dict[Type, _Behaviour] = {
    KeepLane: _Behaviour(lambda s: s.lane_id, _keep_max_speed, _keep_decide),
    ChangeLane: _Behaviour(lambda s: s.to_lane_id, _change_max_speed, _change_decide),
}


def _behaviour(state: DrivingState) -> _Behaviour:
    try:
        return _BEHAVIOURS[type(state)]
    except KeyError:
        raise TypeError(f"unknown driving state {state!r}") from None


def occupied_lanes(state: DrivingState) -> Tuple[str, ...]:
    """Every lane *state* is registered with."""
    _behaviour(state)
    return state.lane_ids


def guide_lane(state: DrivingState) -> str:
    """Lane whose path the vehicle steers along."""
    return _behaviour(state).guide_lane(state)


def max_speed(state: DrivingState, vehicle: "Vehicle", network: "RoadNetwork") -> float:
    """Vehicle cap combined with the limits of every occupied lane."""
    return _behaviour(state).max_speed(state, vehicle, network)


def decide(state: DrivingState, vehicle: "Vehicle", network: "RoadNetwork", dt: float,
           policy: SimulationPolicy) -> DrivingDecision:
    """Accelerations for this tick and the state to switch to, if any."""
    return _behaviour(state).decide(state, vehicle, network, dt, policy)


def enter_state(state: DrivingState, vehicle: "Vehicle", network: "RoadNetwork") -> None:
    """Register *vehicle* with every lane *state* occupies."""
    for lane_id in occupied_lanes(state):
        network.lane(lane_id).add_vehicle(vehicle)


def exit_state(state: DrivingState, vehicle: "Vehicle", network: "RoadNetwork") -> None:
    """Unregister *vehicle* from every lane *state* occupies."""
    for lane_id in occupied_lanes(state):
        network.lane(lane_id).remove_vehicle(vehicle)
        vehicle.leader_info.pop(lane_id, None)
