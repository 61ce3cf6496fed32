#!/usr/bin/env python3
"""
traffic/road.py
===============
Axis-aligned, two-way road between two intersections.

A road always points along the positive axis (``source`` is the west or
south end).  Forward lanes (``F*``) run source → target and carry the
*northbound* count; backward lanes (``B*``) run target → source and carry
the *southbound* count.  Traffic keeps right and lane index 0 is the one
next to the centre divider.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Tuple

from geometry.path import Path
from geometry.rectangle import Rectangle
from geometry.vector import Vector2
from traffic.errors import RoadAlignmentError, TopologyError
from traffic.lane import Lane
from traffic.policy import SimulationPolicy
from traffic.signals import CardinalDirection, cardinal_direction

if TYPE_CHECKING:
    from traffic.intersection import FourWayIntersection
    from traffic.network import RoadNetwork


class RoadOrientation(Enum):
    HORIZONTAL = "HORIZONTAL"
    VERTICAL = "VERTICAL"

    @property
    def axis(self) -> Vector2:
        return Vector2(1.0, 0.0) if self is RoadOrientation.HORIZONTAL else Vector2(0.0, 1.0)


def orientation_between(a: Vector2, b: Vector2) -> RoadOrientation:
    """Orientation of a road joining origins *a* and *b*."""
    if a == b:
        raise RoadAlignmentError(f"road endpoints coincide at {a}")
    if a.y == b.y:
        return RoadOrientation.HORIZONTAL
    if a.x == b.x:
        return RoadOrientation.VERTICAL
    raise RoadAlignmentError(f"road from {a} to {b} is not axis-aligned")


class Road:
    """A road and the lanes it owns.

    Parameters
    ----------
    road_id : str
        Arena handle; lane ids are derived from it.
    source, target : FourWayIntersection
        End points; swapped if needed so the road points along +x / +y.
    southbound_lanes, northbound_lanes : int
        Lane counts towards the negative / positive axis direction.
    orientation : RoadOrientation
        Must match the relative placement of the two intersections.
    speed_limit : float
        m/s, applied to every lane.
    policy : SimulationPolicy
        Lane width and path radius.
    """

    def __init__(
        self,
        road_id: str,
        source: "FourWayIntersection",
        target: "FourWayIntersection",
        southbound_lanes: int,
        northbound_lanes: int,
        orientation: RoadOrientation,
        speed_limit: float,
        policy: SimulationPolicy,
    ) -> None:
        if southbound_lanes < 0 or northbound_lanes < 0:
            raise TopologyError(f"road {road_id}: lane counts must be >= 0")
        if southbound_lanes + northbound_lanes < 1:
            raise TopologyError(f"road {road_id}: needs at least one lane")
        if orientation_between(source.origin, target.origin) is not orientation:
            raise RoadAlignmentError(
                f"road {road_id}: {source.id}{source.origin} and {target.id}{target.origin} "
                f"are not aligned {orientation.value.lower()}ly"
            )
        axis = orientation.axis
        if source.origin.dot(axis) > target.origin.dot(axis):
            source, target = target, source

        self.id = road_id
        self.orientation = orientation
        self.direction = axis
        self.source_id = source.id
        self.target_id = target.id
        self.southbound_count = southbound_lanes
        self.northbound_count = northbound_lanes
        self.speed_limit = float(speed_limit)
        self.policy = policy
        self.width = (southbound_lanes + northbound_lanes) * policy.lane_width_m
        self._start: Optional[Vector2] = None
        self._end: Optional[Vector2] = None

        self.forward_lanes: List[Lane] = [
            Lane(f"{road_id}:F{i}", i, speed_limit, road_id=road_id,
                 target_intersection_id=self.target_id)
            for i in range(northbound_lanes)
        ]
        self.backward_lanes: List[Lane] = [
            Lane(f"{road_id}:B{i}", i, speed_limit, road_id=road_id,
                 target_intersection_id=self.source_id)
            for i in range(southbound_lanes)
        ]
        for group in (self.forward_lanes, self.backward_lanes):
            for i, lane in enumerate(group):
                lane.set_neighbors([group[j].id for j in (i - 1, i + 1) if 0 <= j < len(group)])

    # ── topology ──────────────────────────────────────────────────────────

    @property
    def lanes(self) -> List[Lane]:
        return self.forward_lanes + self.backward_lanes

    @property
    def intersection_ids(self) -> Tuple[str, str]:
        return (self.source_id, self.target_id)

    def other_end(self, intersection_id: str) -> str:
        return self.target_id if intersection_id == self.source_id else self.source_id

    def side_at(self, intersection_id: str) -> CardinalDirection:
        """Side of *intersection_id* on which this road attaches."""
        if intersection_id == self.source_id:
            return cardinal_direction(self.direction)
        return cardinal_direction(-self.direction)

    def lanes_into(self, intersection_id: str) -> List[Lane]:
        return self.forward_lanes if intersection_id == self.target_id else self.backward_lanes

    def lanes_out_of(self, intersection_id: str) -> List[Lane]:
        return self.forward_lanes if intersection_id == self.source_id else self.backward_lanes

    def travel_direction_into(self, intersection_id: str) -> Vector2:
        return self.direction if intersection_id == self.target_id else -self.direction

    def travel_direction_out_of(self, intersection_id: str) -> Vector2:
        return self.direction if intersection_id == self.source_id else -self.direction

    # ── geometry ──────────────────────────────────────────────────────────

    def compute_geometry(self, network: "RoadNetwork") -> None:
        """Re-derive every lane path from the current intersection footprints."""
        source = network.intersections[self.source_id]
        target = network.intersections[self.target_id]
        d = self.direction
        start = source.origin + d * source.half_extent(self.orientation)
        end = target.origin - d * target.half_extent(self.orientation)
        if (end - start).dot(d) <= 0.0:
            raise TopologyError(f"road {self.id}: intersections {self.source_id} and "
                                f"{self.target_id} overlap")
        self._start, self._end = start, end

        lw = self.policy.lane_width_m
        right = Vector2(d.y, -d.x)
        divider = (self.southbound_count - self.northbound_count) * lw / 2.0
        for i, lane in enumerate(self.forward_lanes):
            off = right * (divider + (i + 0.5) * lw)
            lane.set_path(Path.from_points([start + off, end + off], self.policy.lane_path_radius_m))
        for i, lane in enumerate(self.backward_lanes):
            off = right * (divider - (i + 0.5) * lw)
            lane.set_path(Path.from_points([end + off, start + off], self.policy.lane_path_radius_m))

    @property
    def length(self) -> float:
        if self._start is None or self._end is None:
            raise TopologyError(f"road {self.id} has no geometry yet")
        return self._start.distance(self._end)

    def rectangle(self) -> Rectangle:
        if self._start is None or self._end is None:
            raise TopologyError(f"road {self.id} has no geometry yet")
        centre = (self._start + self._end) / 2.0
        return Rectangle(centre, self.length, self.width, self.direction.angle)

    def update(self, dt: float, network: "RoadNetwork", policy: SimulationPolicy) -> None:
        for lane in self.lanes:
            lane.update(dt, network, policy)

    def __repr__(self) -> str:
        return (f"Road({self.id!r}, {self.source_id}->{self.target_id}, "
                f"S={self.southbound_count}, N={self.northbound_count})")
