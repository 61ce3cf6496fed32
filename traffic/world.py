#!/usr/bin/env python3
"""
traffic/world.py
================
Simulation world: owns the :class:`~traffic.network.RoadNetwork` and every
:class:`~traffic.vehicle.Vehicle`, and advances them with a four-phase
tick:

1. every intersection updates its signal,
2. every road lane, then every connector lane, refreshes the leader info
   of its vehicles,
3. every vehicle decides; forces and torques are applied and state
   transitions (exit old lanes, replace state, enter new lanes) happen,
4. every vehicle is integrated.

Lane membership only changes inside phase 3 or through the explicit
removal calls between ticks.
"""

from __future__ import annotations

import logging
import random
from typing import Any, Dict, Iterable, List, Optional

from geometry.vector import Vector2
from traffic import driving
from traffic.driving import DrivingState, KeepLane
from traffic.intersection import FourWayIntersection
from traffic.lane import Lane
from traffic.network import RoadNetwork
from traffic.policy import SimulationPolicy
from traffic.road import Road, RoadOrientation
from traffic.signals import TurnDirection
from traffic.vehicle import Vehicle, VehicleParams

log = logging.getLogger("world")

_TURNS = tuple(TurnDirection)


class World:
    """Traffic scenario on a road network.

    Parameters
    ----------
    policy : SimulationPolicy or None
        Tunable constants; uses defaults when *None*.
    network : RoadNetwork or None
        Existing network; an empty one sharing *policy* when *None*.
    seed : int or None
        Random seed for turn preferences and random spawns.
    """

    def __init__(
        self,
        policy: Optional[SimulationPolicy] = None,
        network: Optional[RoadNetwork] = None,
        seed: Optional[int] = None,
    ) -> None:
        self.policy = policy or (network.policy if network is not None else SimulationPolicy())
        self.network = network or RoadNetwork(self.policy)
        self.vehicles: Dict[str, Vehicle] = {}
        self._rng = random.Random(seed)
        self._tick_count: int = 0
        self._vehicle_seq: int = 0
        self.elapsed: float = 0.0

    # ── topology ──────────────────────────────────────────────────────────

    @property
    def intersections(self) -> Dict[str, FourWayIntersection]:
        return self.network.intersections

    @property
    def roads(self) -> Dict[str, Road]:
        return self.network.roads

    def add_intersection(self, origin: Vector2, intersection_id: Optional[str] = None) -> FourWayIntersection:
        return self.network.add_intersection(origin, intersection_id)

    def add_road(
        self,
        source_id: str,
        target_id: str,
        southbound_lanes: int,
        northbound_lanes: int,
        orientation: RoadOrientation,
        speed_limit: float,
        road_id: Optional[str] = None,
    ) -> Road:
        return self.network.add_road(source_id, target_id, southbound_lanes, northbound_lanes,
                                     orientation, speed_limit, road_id)

    def remove_road(self, road_id: str) -> None:
        """Evict vehicles on the road and its connectors, then drop the road."""
        self._evict(self.network.lanes_on_road(road_id))
        self.network.remove_road(road_id)
        log.info("Removed road %s", road_id)

    def remove_intersection(self, intersection_id: str) -> None:
        """Remove every road of the intersection, then the intersection itself."""
        node = self.network.intersections[intersection_id]
        for road_id in list(node.road_ids):
            self.remove_road(road_id)
        self.network.remove_intersection(intersection_id)
        log.info("Removed intersection %s", intersection_id)

    def _evict(self, lanes: Iterable[Lane]) -> None:
        doomed = {v.id for lane in lanes for v in lane.vehicles}
        for vehicle_id in sorted(doomed):
            log.info("Evicting %s", vehicle_id)
            self.remove_vehicle(vehicle_id)

    # ── vehicles ──────────────────────────────────────────────────────────

    def spawn_vehicle(
        self,
        params: VehicleParams,
        lane_id: str,
        offset: float = 0.0,
        vehicle_id: Optional[str] = None,
    ) -> Optional[Vehicle]:
        """Place a new vehicle on *lane_id* with its rear bumper at *offset*.

        *offset* is a fraction of the room left on the lane once the
        vehicle's length and the minimum bumper gap are taken out, so 0
        puts the rear bumper on the lane start and 1 leaves exactly one
        bumper gap between the front bumper and the lane end.

        Returns
        -------
        Vehicle or None
            ``None`` when the lane does not have ``length + min bumper gap``
            of room at that spot.

        Raises
        ------
        InvalidVehicleParameters
            *params* is outside the policy envelope.
        ValueError
            *offset* outside ``[0, 1]``.
        """
        params.validate(self.policy)
        if not 0.0 <= offset <= 1.0:
            raise ValueError(f"offset must lie in [0, 1], got {offset!r}")
        lane = self.network.lane(lane_id)
        path = lane.path
        start = offset * max(0.0, path.length - params.length - self.policy.min_bumper_gap_m)
        if not lane.has_room(start, params.length, self.policy.min_bumper_gap_m):
            log.debug("Spawn on %s at %.1fm refused: no room", lane_id, start)
            return None

        if vehicle_id is None:
            vehicle_id = f"CAR_{self._vehicle_seq:03d}"
            self._vehicle_seq += 1
        if vehicle_id in self.vehicles:
            raise ValueError(f"vehicle {vehicle_id} already exists")
        centre = path.point_at(start + params.length / 2.0)
        heading = path.tangent(centre).angle
        vehicle = Vehicle(vehicle_id, params, centre, heading, self.policy)
        vehicle.turn_preference = self._rng.choice(_TURNS)
        self.vehicles[vehicle_id] = vehicle
        self._enter(vehicle, KeepLane(lane_id))
        log.debug("Spawned %s on %s at %.1fm (turn=%s)",
                  vehicle_id, lane_id, start, vehicle.turn_preference.value)
        return vehicle

    def spawn_random(self, params: VehicleParams, lane_ids: Optional[List[str]] = None) -> Optional[Vehicle]:
        """Spawn at the start of a random lane, trying each candidate once.

        Candidates default to every road lane.  Returns ``None`` if none of
        them has room.
        """
        candidates = list(lane_ids) if lane_ids is not None else [l.id for l in self.network.road_lanes()]
        self._rng.shuffle(candidates)
        for lane_id in candidates:
            vehicle = self.spawn_vehicle(params, lane_id, 0.0)
            if vehicle is not None:
                return vehicle
        log.debug("No room on any of %d candidate lanes", len(candidates))
        return None

    def remove_vehicle(self, vehicle_id: str) -> None:
        vehicle = self.vehicles.pop(vehicle_id)
        if vehicle.state is not None:
            driving.exit_state(vehicle.state, vehicle, self.network)

    def retire_stranded(self) -> List[str]:
        """Remove vehicles that reached the end of a lane with no way out.

        These are vehicles at a dead-end road (an intersection offering no
        connector from their lane at all).  Returns the removed ids.
        """
        removed = []
        for vehicle in list(self.vehicles.values()):
            state = vehicle.state
            if not isinstance(state, KeepLane):
                continue
            lane = self.network.lane(state.lane_id)
            if lane.is_connector or lane.target_intersection_id is None:
                continue
            node = self.network.intersections[lane.target_intersection_id]
            if node.connectors_from(lane.id):
                continue
            front = lane.progress(vehicle) + vehicle.length / 2.0
            if front >= lane.path.length - self.policy.lane_end_tolerance_m:
                self.remove_vehicle(vehicle.id)
                removed.append(vehicle.id)
        if removed:
            log.debug("Retired %s at dead ends", removed)
        return removed

    def _enter(self, vehicle: Vehicle, state: DrivingState) -> None:
        vehicle.state = state
        driving.enter_state(state, vehicle, self.network)

    def _transition(self, vehicle: Vehicle, new_state: DrivingState) -> None:
        old_state = vehicle.state
        if old_state is None:
            raise RuntimeError(f"vehicle {vehicle.id} has no driving state")
        driving.exit_state(old_state, vehicle, self.network)
        self._enter(vehicle, new_state)
        vehicle.pid.reset()
        if (isinstance(old_state, KeepLane) and isinstance(new_state, KeepLane)
                and self.network.lane(old_state.lane_id).is_connector):
            vehicle.turn_preference = self._rng.choice(_TURNS)
        log.debug("%s: %s -> %s", vehicle.id, old_state, new_state)

    # ── tick ──────────────────────────────────────────────────────────────

    def update(self, dt: float) -> None:
        """Advance the whole world by *dt* seconds; ``dt <= 0`` is a no-op."""
        if dt <= 0.0:
            return
        self._tick_count += 1
        tick = self._tick_count

        # 1. signals
        for node in self.network.intersections.values():
            node.update(dt, self.network.lanes)

        # 2. leader info
        for road in self.network.roads.values():
            road.update(dt, self.network, self.policy)
        for node in self.network.intersections.values():
            for lane in self.network.connector_lanes(node.id):
                lane.update(dt, self.network, self.policy)

        if tick % 10 == 1:
            log.debug("=== TICK %d (t=%.2fs) ===", tick, self.elapsed)
            for vehicle in self.vehicles.values():
                log.debug(
                    "  %s  pos=(%.1f,%.1f) v=(%.2f,%.2f) angle=%.3f state=%s turn=%s",
                    vehicle.id, vehicle.position.x, vehicle.position.y,
                    vehicle.velocity.x, vehicle.velocity.y, vehicle.angle,
                    vehicle.state, vehicle.turn_preference.value if vehicle.turn_preference else None,
                )

        # 3. decisions and transitions
        for vehicle in list(self.vehicles.values()):
            if vehicle.state is None:
                raise RuntimeError(f"vehicle {vehicle.id} has no driving state")
            decision = driving.decide(vehicle.state, vehicle, self.network, dt, self.policy)
            vehicle.apply_force(decision.acceleration * vehicle.mass)
            vehicle.apply_torque(decision.angular_acceleration * vehicle.moment_of_inertia)
            if decision.next_state is not None and decision.next_state != vehicle.state:
                self._transition(vehicle, decision.next_state)

        # 4. integration
        for vehicle in self.vehicles.values():
            vehicle.integrate(dt)
        self.elapsed += dt

    # ── queries ───────────────────────────────────────────────────────────

    @property
    def tick_count(self) -> int:
        return self._tick_count

    def all_vehicles(self) -> List[Vehicle]:
        return list(self.vehicles.values())

    def snapshot(self) -> List[Dict[str, Any]]:
        """Plain-dict view of every vehicle (for renderers and recorders)."""
        return [v.as_dict() for v in self.vehicles.values()]
