#!/usr/bin/env python3
"""
traffic/lane.py
===============
A single lane: its path, its speed limit and the vehicles currently on
it, kept sorted by progress along the path.

Lanes never hold references to other lanes or intersections.  Neighbours
and successors are string handles resolved through the
:class:`~traffic.network.RoadNetwork` arena.
"""

from __future__ import annotations

import bisect
from typing import TYPE_CHECKING, List, NamedTuple, Optional, Sequence, Tuple

from geometry.path import Path
from traffic.errors import LaneTopologyError
from traffic.idm import LeaderInfo
from traffic.policy import SimulationPolicy

if TYPE_CHECKING:
    from traffic.network import RoadNetwork
    from traffic.signals import TurnDirection
    from traffic.vehicle import Vehicle


class VehicleNeighbors(NamedTuple):
    """Closest vehicles behind and ahead of a query position."""

    back: Optional["Vehicle"]
    front: Optional["Vehicle"]


class Lane:
    """One lane of a road, or a connector lane inside an intersection.

    Parameters
    ----------
    lane_id : str
        Arena handle.
    index : int
        Position within its direction group, 0 innermost.
    speed_limit : float
        m/s, > 0.
    path : Path or None
        Geometry; roads assign it once the intersections are placed.
    acceleration_bias : float
        Added to the MOBIL incentive of changing *into* this lane.
    road_id : str or None
        Owning road, ``None`` for connector lanes.
    target_intersection_id : str or None
        Intersection at the end of a road lane.
    intersection_id : str or None
        Owning intersection of a connector lane.
    next_lane_id : str or None
        Fixed successor of a connector lane.
    turn : TurnDirection or None
        Movement performed by a connector lane.
    """

    def __init__(
        self,
        lane_id: str,
        index: int,
        speed_limit: float,
        path: Optional[Path] = None,
        *,
        acceleration_bias: float = 0.0,
        road_id: Optional[str] = None,
        target_intersection_id: Optional[str] = None,
        intersection_id: Optional[str] = None,
        next_lane_id: Optional[str] = None,
        turn: Optional["TurnDirection"] = None,
    ) -> None:
        if speed_limit <= 0.0:
            raise ValueError(f"lane speed limit must be > 0, got {speed_limit!r}")
        self.id = lane_id
        self.index = index
        self.speed_limit = float(speed_limit)
        self.acceleration_bias = float(acceleration_bias)
        self.road_id = road_id
        self.target_intersection_id = target_intersection_id
        self.intersection_id = intersection_id
        self.next_lane_id = next_lane_id
        self.turn = turn
        self._path = path
        self._neighbor_ids: Optional[Tuple[str, ...]] = None
        self._vehicles: List["Vehicle"] = []

    # ── topology ──────────────────────────────────────────────────────────

    @property
    def is_connector(self) -> bool:
        return self.intersection_id is not None

    @property
    def path(self) -> Path:
        if self._path is None:
            raise LaneTopologyError(f"lane {self.id} has no geometry yet")
        return self._path

    def set_path(self, path: Path) -> None:
        """Replace the geometry (topology change) and re-sort occupants."""
        self._path = path
        self.sort_vehicles()

    @property
    def neighbor_ids(self) -> Tuple[str, ...]:
        return self._neighbor_ids or ()

    def set_neighbors(self, lane_ids: Sequence[str]) -> None:
        if self._neighbor_ids is not None:
            raise LaneTopologyError(f"neighbours of lane {self.id} are already set")
        self._neighbor_ids = tuple(lane_ids)

    # ── membership ────────────────────────────────────────────────────────

    @property
    def vehicles(self) -> Tuple["Vehicle", ...]:
        return tuple(self._vehicles)

    @property
    def is_empty(self) -> bool:
        return not self._vehicles

    def __len__(self) -> int:
        return len(self._vehicles)

    def __contains__(self, vehicle: object) -> bool:
        return any(v is vehicle for v in self._vehicles)

    def add_vehicle(self, vehicle: "Vehicle") -> None:
        if vehicle in self:
            raise ValueError(f"{vehicle.id} is already on lane {self.id}")
        self._vehicles.append(vehicle)
        self.sort_vehicles()

    def remove_vehicle(self, vehicle: "Vehicle") -> None:
        if vehicle not in self:
            raise ValueError(f"{vehicle.id} is not on lane {self.id}")
        self._vehicles = [v for v in self._vehicles if v is not vehicle]
        self.sort_vehicles()

    def progress(self, vehicle: "Vehicle") -> float:
        return self.path.progress(vehicle.position)

    def sort_vehicles(self) -> None:
        if self._path is not None:
            self._vehicles.sort(key=self.progress)

    def is_sorted(self) -> bool:
        keys = [self.progress(v) for v in self._vehicles]
        return all(a <= b for a, b in zip(keys, keys[1:]))

    # ── queries ───────────────────────────────────────────────────────────

    def vehicle_neighbors(self, vehicle: "Vehicle") -> VehicleNeighbors:
        """Tightest bracket around *vehicle*'s progress among the others.

        The vehicle itself need not be on this lane.  A vehicle with
        exactly the same progress is reported as both back and front.
        """
        others = [v for v in self._vehicles if v is not vehicle]
        keys = [self.progress(v) for v in others]
        key = self.progress(vehicle)
        lo = bisect.bisect_left(keys, key)
        hi = bisect.bisect_right(keys, key)
        if lo != hi:
            return VehicleNeighbors(back=others[lo], front=others[lo])
        back = others[lo - 1] if lo > 0 else None
        front = others[lo] if lo < len(others) else None
        return VehicleNeighbors(back=back, front=front)

    def free_space(self) -> float:
        """Distance from the lane start to the rear bumper of the last vehicle."""
        if not self._vehicles:
            return self.path.length
        first = self._vehicles[0]
        return self.progress(first) - first.length / 2.0

    def has_room(self, start: float, length: float, gap: float) -> bool:
        """Whether a body of *length* fits at *start* with *gap* clear ahead of
        it (to the lane end or the next vehicle) and behind it."""
        if start < 0.0 or start + length + gap > self.path.length + 1e-9:
            return False
        for v in self._vehicles:
            centre = self.progress(v)
            rear, front = centre - v.length / 2.0, centre + v.length / 2.0
            if rear < start + length + gap and front > start - gap:
                return False
        return True

    def compute_leader_info(
        self,
        vehicle: "Vehicle",
        leader: Optional["Vehicle"],
        network: "RoadNetwork",
        policy: SimulationPolicy,
    ) -> LeaderInfo:
        """Gap and closing rate from *vehicle* to *leader* on this lane.

        Without a leader the obstacle is the first vehicle further
        downstream, or a virtual one at the end of the lane chain.
        """
        if leader is not None:
            return LeaderInfo(vehicle.bumper_distance(leader), vehicle.speed - leader.speed)
        front_bumper = self.progress(vehicle) + vehicle.length / 2.0
        remaining = self.path.length - front_bumper
        beyond = network.free_space_beyond(self.id, vehicle.turn_preference)
        return LeaderInfo(remaining + beyond, vehicle.speed)

    def update(self, dt: float, network: "RoadNetwork", policy: SimulationPolicy) -> None:
        """Re-sort and refresh the leader info of every occupant."""
        self.sort_vehicles()
        for i, vehicle in enumerate(self._vehicles):
            leader = self._vehicles[i + 1] if i + 1 < len(self._vehicles) else None
            vehicle.leader_info[self.id] = self.compute_leader_info(vehicle, leader, network, policy)

    def __repr__(self) -> str:
        return f"Lane({self.id!r}, vehicles={len(self._vehicles)})"
