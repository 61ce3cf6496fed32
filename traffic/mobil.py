#!/usr/bin/env python3
"""
traffic/mobil.py
================
MOBIL lane-change model ("Minimizing Overall Braking Induced by Lane
changes").

A neighbouring lane is chosen when it is *safe* (the vehicle that would
end up behind us does not have to brake harder than it comfortably can)
and the *incentive* (our gain, plus politeness-weighted gains of the old
and new followers, minus a threshold, plus the lane bias) is positive.
The safe lane with the largest incentive wins; otherwise we stay.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from traffic.idm import idm_acceleration
from traffic.lane import Lane, VehicleNeighbors
from traffic.policy import SimulationPolicy

if TYPE_CHECKING:
    from traffic.network import RoadNetwork
    from traffic.vehicle import Vehicle


def lane_acceleration(
    vehicle: Optional["Vehicle"],
    leader: Optional["Vehicle"],
    lane: Lane,
    network: "RoadNetwork",
    policy: SimulationPolicy,
) -> float:
    """IDM acceleration of *vehicle* following *leader* on *lane*.

    A missing vehicle contributes 0.
    """
    if vehicle is None:
        return 0.0
    info = lane.compute_leader_info(vehicle, leader, network, policy)
    speed = vehicle.velocity.dot(lane.path.tangent(vehicle.position))
    return idm_acceleration(
        speed,
        min(vehicle.max_speed, lane.speed_limit),
        vehicle.max_acceleration,
        vehicle.braking_deceleration,
        info,
        policy,
    )


def is_safe(
    vehicle: "Vehicle",
    target: Lane,
    target_neighbors: VehicleNeighbors,
    network: "RoadNetwork",
    policy: SimulationPolicy,
) -> bool:
    """Would the new follower on *target* cope with us cutting in?"""
    follower = target_neighbors.back
    if follower is None:
        return True
    after = lane_acceleration(follower, vehicle, target, network, policy)
    return after - follower.braking_deceleration > 0.0


def incentive(
    vehicle: "Vehicle",
    current: Lane,
    current_neighbors: VehicleNeighbors,
    target: Lane,
    target_neighbors: VehicleNeighbors,
    network: "RoadNetwork",
    policy: SimulationPolicy,
) -> float:
    """MOBIL gain of moving from *current* to *target*.

    The follower term weighs the old follower and the new follower once each,
    as in the standard MOBIL formulation, instead of counting the old
    follower's change twice.
    """
    own_before = lane_acceleration(vehicle, current_neighbors.front, current, network, policy)
    own_after = lane_acceleration(vehicle, target_neighbors.front, target, network, policy)

    old_follower = current_neighbors.back
    old_before = lane_acceleration(old_follower, vehicle, current, network, policy)
    old_after = lane_acceleration(old_follower, current_neighbors.front, current, network, policy)

    new_follower = target_neighbors.back
    new_before = lane_acceleration(new_follower, target_neighbors.front, target, network, policy)
    new_after = lane_acceleration(new_follower, vehicle, target, network, policy)

    followers = (old_after - old_before) + (new_after - new_before)
    bias = target.acceleration_bias - current.acceleration_bias
    return (
        own_after - own_before
        + vehicle.politeness * followers
        - policy.lane_change_threshold_mps2
        + bias
    )


def optimal_lane(
    vehicle: "Vehicle",
    current: Lane,
    network: "RoadNetwork",
    policy: SimulationPolicy,
) -> Lane:
    """The lane *vehicle* should drive in next; *current* when no change pays."""
    if not current.neighbor_ids:
        return current
    current_neighbors = current.vehicle_neighbors(vehicle)
    best, best_gain = current, 0.0
    for lane_id in current.neighbor_ids:
        target = network.lane(lane_id)
        target_neighbors = target.vehicle_neighbors(vehicle)
        if not is_safe(vehicle, target, target_neighbors, network, policy):
            continue
        gain = incentive(vehicle, current, current_neighbors, target, target_neighbors,
                         network, policy)
        if gain > best_gain:
            best, best_gain = target, gain
    return best
