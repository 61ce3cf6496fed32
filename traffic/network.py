#!/usr/bin/env python3
"""
traffic/network.py
==================
Road-network arena: the single owner of every intersection, road and lane.

Entities refer to each other only through string handles (``"INT_A"``,
``"R0:F1"``, ...) resolved here, so removing a road never leaves a
dangling reference behind.  Every topology change re-derives lane
geometry and connector lanes for the intersections it touches and their
neighbours.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from geometry.vector import Vector2
from traffic.errors import LaneTopologyError, TopologyError
from traffic.intersection import FourWayIntersection
from traffic.lane import Lane
from traffic.policy import SimulationPolicy
from traffic.road import Road, RoadOrientation
from traffic.signals import TurnDirection

log = logging.getLogger("network")


class RoadNetwork:
    """Graph of intersections connected by roads, plus the lane arena.

    Provides the lookups used by lanes, driving states and the
    :class:`~traffic.world.World`:

    * **next_lane** — successor of a lane, honouring the signals and the
      vehicle's turn preference.
    * **free_space_beyond** — free distance past the end of a lane,
      walking the successor chain.
    * **lanes_on_road** — every lane that disappears with a road (used to
      evict vehicles before removal).
    """

    def __init__(self, policy: Optional[SimulationPolicy] = None) -> None:
        self.policy = policy or SimulationPolicy()
        self.intersections: Dict[str, FourWayIntersection] = {}
        self.roads: Dict[str, Road] = {}
        self.lanes: Dict[str, Lane] = {}
        self._road_seq = 0

    # ── building ──────────────────────────────────────────────────────────

    def add_intersection(self, origin: Vector2, intersection_id: Optional[str] = None) -> FourWayIntersection:
        iid = intersection_id or f"INT_{len(self.intersections):02d}"
        if iid in self.intersections:
            raise TopologyError(f"intersection {iid} already exists")
        node = FourWayIntersection(iid, origin, self.policy)
        self.intersections[iid] = node
        log.debug("Added intersection %s at (%.1f, %.1f)", iid, origin.x, origin.y)
        return node

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
        """Create a road between two existing intersections.

        Raises
        ------
        TopologyError
            Unknown intersection, duplicate id, misalignment
            (:class:`~traffic.errors.RoadAlignmentError`) or a full / taken
            intersection side (:class:`~traffic.errors.IntersectionCapacityError`).
        """
        source = self._intersection(source_id)
        target = self._intersection(target_id)
        if road_id is None:
            road_id = f"R{self._road_seq}"
            while road_id in self.roads:
                self._road_seq += 1
                road_id = f"R{self._road_seq}"
            self._road_seq += 1
        if road_id in self.roads:
            raise TopologyError(f"road {road_id} already exists")

        road = Road(road_id, source, target, southbound_lanes, northbound_lanes,
                    orientation, speed_limit, self.policy)
        for iid in road.intersection_ids:
            self.intersections[iid].check_can_attach(road.side_at(iid))
        for iid in road.intersection_ids:
            self.intersections[iid].add_road(road_id, road.side_at(iid), orientation, road.width)

        self.roads[road_id] = road
        for lane in road.lanes:
            self.lanes[lane.id] = lane
        self._rederive(road.intersection_ids)
        log.debug("Added %r", road)
        return road

    def remove_road(self, road_id: str) -> None:
        """Detach and drop a road.  Its lanes must already be empty."""
        road = self.roads.get(road_id)
        if road is None:
            raise TopologyError(f"unknown road {road_id}")
        for lane in road.lanes:
            if not lane.is_empty:
                raise TopologyError(f"lane {lane.id} still carries vehicles")
        for iid in road.intersection_ids:
            self.intersections[iid].remove_road(road_id)
        del self.roads[road_id]
        for lane in road.lanes:
            del self.lanes[lane.id]
        self._rederive(road.intersection_ids)
        log.debug("Removed road %s", road_id)

    def remove_intersection(self, intersection_id: str) -> None:
        """Drop an intersection.  Its roads must already be removed."""
        node = self._intersection(intersection_id)
        if node.road_ids:
            raise TopologyError(f"{intersection_id} still has roads {node.road_ids}")
        del self.intersections[intersection_id]
        log.debug("Removed intersection %s", intersection_id)

    def _rederive(self, changed: Iterable[str]) -> None:
        affected: Set[str] = set(changed)
        for iid in list(affected):
            affected.update(self.neighbors(iid))
        road_ids = sorted({rid for iid in affected for rid in self.intersections[iid].road_ids})
        for rid in road_ids:
            self.roads[rid].compute_geometry(self)
        touched = set(affected)
        for rid in road_ids:
            touched.update(self.roads[rid].intersection_ids)
        for iid in sorted(touched):
            self._rebuild_connectors(self.intersections[iid])

    def _rebuild_connectors(self, node: FourWayIntersection) -> None:
        old_ids = set(node.connector_ids)
        connectors = node.build_connectors(self)
        for lane in connectors:
            self.lanes[lane.id] = lane
        for stale_id in old_ids - {c.id for c in connectors}:
            stale = self.lanes.pop(stale_id)
            if not stale.is_empty:
                raise TopologyError(f"connector {stale_id} vanished with vehicles on it")

    # ── queries ───────────────────────────────────────────────────────────

    def _intersection(self, intersection_id: str) -> FourWayIntersection:
        node = self.intersections.get(intersection_id)
        if node is None:
            raise TopologyError(f"unknown intersection {intersection_id}")
        return node

    def lane(self, lane_id: str) -> Lane:
        lane = self.lanes.get(lane_id)
        if lane is None:
            raise LaneTopologyError(f"unknown lane {lane_id}")
        return lane

    def neighbors(self, intersection_id: str) -> List[str]:
        """Intersections one road away from *intersection_id*."""
        node = self._intersection(intersection_id)
        return [self.roads[rid].other_end(intersection_id) for rid in node.road_ids]

    def road_lanes(self) -> List[Lane]:
        return [lane for road in self.roads.values() for lane in road.lanes]

    def connector_lanes(self, intersection_id: str) -> List[Lane]:
        return [self.lanes[cid] for cid in self._intersection(intersection_id).connector_ids]

    def lanes_on_road(self, road_id: str) -> List[Lane]:
        """The road's own lanes plus every connector that enters or leaves it."""
        road = self.roads.get(road_id)
        if road is None:
            raise TopologyError(f"unknown road {road_id}")
        own = {lane.id for lane in road.lanes}
        result = list(road.lanes)
        for iid in road.intersection_ids:
            for connector in self.connector_lanes(iid):
                feeds = any(connector.id in self.intersections[iid].connectors_from(lid) for lid in own)
                if feeds or connector.next_lane_id in own:
                    result.append(connector)
        return result

    def next_lane(self, lane_id: str, preference: Optional[TurnDirection] = None) -> Optional[Lane]:
        """Lane a vehicle continues onto at the end of *lane_id*, if any.

        Connector lanes have a fixed successor.  Road lanes ask the
        downstream intersection which connectors its active flow state
        releases: the preferred turn wins when it is reachable from this
        lane at all (if it is reachable but held, there is no successor
        yet), otherwise the released connector with the most free space.
        """
        lane = self.lane(lane_id)
        if lane.next_lane_id is not None:
            return self.lanes.get(lane.next_lane_id)
        node = self.intersections.get(lane.target_intersection_id or "")
        if node is None:
            return None
        allowed = [self.lanes[cid] for cid in node.possible_next_lanes(lane_id)]
        if not allowed:
            return None
        if preference is not None and preference in node.reachable_turns(lane_id):
            matching = [c for c in allowed if c.turn is preference]
            return matching[0] if matching else None
        return max(allowed, key=lambda c: c.free_space())

    def free_space_beyond(self, lane_id: str, preference: Optional[TurnDirection] = None) -> float:
        """Free distance past the end of *lane_id*.

        Empty successors count in full; the walk stops at the first
        occupied lane (its free space), after ``policy.lookahead_m``, or at
        a lane with no successor, where a virtual obstacle sits one
        minimum bumper gap past the end.
        """
        space = 0.0
        visited = {lane_id}
        nxt = self.next_lane(lane_id, preference)
        while nxt is not None:
            if not nxt.is_empty:
                return space + nxt.free_space()
            space += nxt.path.length
            if space >= self.policy.lookahead_m or nxt.id in visited:
                return space
            visited.add(nxt.id)
            nxt = self.next_lane(nxt.id, preference)
        return space + self.policy.min_bumper_gap_m

    def get_bounds(self, margin: float = 20.0) -> Tuple[Tuple[float, float], Tuple[float, float]]:
        """Return ((min_x, max_x), (min_y, max_y)) world bounds of the network."""
        if not self.intersections:
            return ((-100.0, 100.0), (-100.0, 100.0))
        xs = [n.origin.x for n in self.intersections.values()]
        ys = [n.origin.y for n in self.intersections.values()]
        return ((min(xs) - margin, max(xs) + margin), (min(ys) - margin, max(ys) + margin))
