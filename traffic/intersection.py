#!/usr/bin/env python3
"""
traffic/intersection.py
=======================
Signal-controlled four-way intersection.

The footprint is sized by the roads attached to it: its width (x extent)
is the widest vertical road, its height (y extent) the widest horizontal
road.  Whenever the attached roads change, :meth:`build_connectors`
re-synthesises the connector lanes that link every incoming lane group to
every other outgoing lane group, and files each connector under the flow
state that releases it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, List, Mapping, NamedTuple, Set, Tuple

from geometry.bezier import BezierCurve
from geometry.path import Path
from geometry.rectangle import Rectangle
from geometry.vector import Vector2
from traffic.errors import IntersectionCapacityError
from traffic.lane import Lane
from traffic.policy import SimulationPolicy
from traffic.road import RoadOrientation
from traffic.signals import (
    FLOW_CYCLE,
    CardinalDirection,
    FlowState,
    TrafficLightFSM,
    TurnDirection,
    cardinal_direction,
    flow_state_for,
    next_flow_state,
    turn_direction,
)

if TYPE_CHECKING:
    from traffic.network import RoadNetwork

log = logging.getLogger("signals")

# Control-point distance for a quarter circle approximated by a cubic.
_QUARTER_CIRCLE_K = 0.5523


class IncidentRoad(NamedTuple):
    road_id: str
    orientation: RoadOrientation
    width: float


def pair_lanes(incoming: List[Lane], outgoing: List[Lane], turn: TurnDirection) -> List[Tuple[Lane, Lane]]:
    """Which incoming lane feeds which outgoing lane for one movement.

    Right turns join the outermost lanes, left turns the innermost ones.
    Through movements pair lanes by index; surplus incoming lanes merge
    into the last outgoing lane.
    """
    if turn is TurnDirection.RIGHT:
        return [(incoming[-1], outgoing[-1])]
    if turn is TurnDirection.LEFT:
        return [(incoming[0], outgoing[0])]
    return [(lane, outgoing[min(i, len(outgoing) - 1)]) for i, lane in enumerate(incoming)]


def connector_curve(start: Vector2, end: Vector2, d_in: Vector2, d_out: Vector2,
                    turn: TurnDirection) -> BezierCurve:
    """Bezier leaving *start* along *d_in* and arriving at *end* along *d_out*."""
    delta = end - start
    if turn is TurnDirection.FRONT:
        reach = delta.length / 3.0
        return BezierCurve(start, start + d_in * reach, end - d_out * reach, end)
    k_in = _QUARTER_CIRCLE_K * abs(delta.dot(d_in))
    k_out = _QUARTER_CIRCLE_K * abs(delta.dot(d_out))
    return BezierCurve(start, start + d_in * k_in, end - d_out * k_out, end)


class FourWayIntersection:
    """A crossroads with up to four roads, one per side.

    Parameters
    ----------
    intersection_id : str
        Arena handle (e.g. ``"INT_A"``).
    origin : Vector2
        Centre in world metres.
    policy : SimulationPolicy
        Capacity, green time, connector sampling and turn speed factor.
    """

    def __init__(self, intersection_id: str, origin: Vector2, policy: SimulationPolicy) -> None:
        self.id = intersection_id
        self.origin = origin
        self.policy = policy
        self._roads: Dict[CardinalDirection, IncidentRoad] = {}
        self.signals: Dict[FlowState, TrafficLightFSM] = {
            fs: TrafficLightFSM(fs, next_flow_state(fs), policy.signal_green_s)
            for fs in FLOW_CYCLE
        }
        self.active_flow: FlowState = FLOW_CYCLE[0]
        self.connector_ids: List[str] = []
        # incoming lane id → every connector leaving it, whatever the phase
        self._routes: Dict[str, List[str]] = {}
        self._turns: Dict[str, TurnDirection] = {}

    # ── incident roads ────────────────────────────────────────────────────

    @property
    def road_ids(self) -> List[str]:
        return [r.road_id for r in self._roads.values()]

    def road_on(self, side: CardinalDirection) -> str:
        return self._roads[side].road_id

    def check_can_attach(self, side: CardinalDirection) -> None:
        if len(self._roads) >= self.policy.max_roads_per_intersection:
            raise IntersectionCapacityError(
                f"{self.id} already has {len(self._roads)} roads"
            )
        if side in self._roads:
            raise IntersectionCapacityError(
                f"{self.id} already has road {self._roads[side].road_id} on its "
                f"{side.name.lower()} side"
            )

    def add_road(self, road_id: str, side: CardinalDirection,
                 orientation: RoadOrientation, width: float) -> None:
        self.check_can_attach(side)
        self._roads[side] = IncidentRoad(road_id, orientation, width)

    def remove_road(self, road_id: str) -> None:
        for side, incident in list(self._roads.items()):
            if incident.road_id == road_id:
                del self._roads[side]
                return
        raise KeyError(f"road {road_id} is not attached to {self.id}")

    # ── footprint ─────────────────────────────────────────────────────────

    def _max_width(self, orientation: RoadOrientation) -> float:
        widths = [r.width for r in self._roads.values() if r.orientation is orientation]
        return max(widths + [self.policy.min_intersection_extent_m])

    @property
    def width(self) -> float:
        return self._max_width(RoadOrientation.VERTICAL)

    @property
    def height(self) -> float:
        return self._max_width(RoadOrientation.HORIZONTAL)

    def half_extent(self, orientation: RoadOrientation) -> float:
        """Distance from the origin to the edge a road of *orientation* meets."""
        return (self.width if orientation is RoadOrientation.HORIZONTAL else self.height) / 2.0

    def rectangle(self) -> Rectangle:
        return Rectangle(self.origin, self.width, self.height, 0.0)

    # ── connectors ────────────────────────────────────────────────────────

    def build_connectors(self, network: "RoadNetwork") -> List[Lane]:
        """Synthesise the connector lanes for the current incident roads.

        Connector ids are deterministic; a connector that already exists in
        ``network.lanes`` is reused with fresh geometry so its occupants
        survive the topology change.
        """
        for fsm in self.signals.values():
            fsm.clear_lanes()
        self._routes.clear()
        self._turns.clear()
        connectors: List[Lane] = []

        for road_in_id in self.road_ids:
            road_in = network.roads[road_in_id]
            incoming = road_in.lanes_into(self.id)
            if not incoming:
                continue
            d_in = road_in.travel_direction_into(self.id)
            arrival = cardinal_direction(d_in)
            for road_out_id in self.road_ids:
                if road_out_id == road_in_id:
                    continue
                road_out = network.roads[road_out_id]
                outgoing = road_out.lanes_out_of(self.id)
                if not outgoing:
                    continue
                d_out = road_out.travel_direction_out_of(self.id)
                turn = turn_direction(d_in, d_out)
                flow = flow_state_for(arrival, turn)
                for lane_in, lane_out in pair_lanes(incoming, outgoing, turn):
                    connector = self._connector(lane_in, lane_out, d_in, d_out, turn, network)
                    self.signals[flow].add_lane(lane_in.id, connector.id)
                    self._routes.setdefault(lane_in.id, []).append(connector.id)
                    self._turns[connector.id] = turn
                    connectors.append(connector)

        self.connector_ids = [c.id for c in connectors]
        if not self.signals[self.active_flow].has_lanes:
            self.active_flow = self._next_flow_with_lanes(self.active_flow)
            self.signals[self.active_flow].reset()
        log.debug("%s: %d connector lanes, active flow %s",
                  self.id, len(connectors), self.active_flow.value)
        return connectors

    def _connector(self, lane_in: Lane, lane_out: Lane, d_in: Vector2, d_out: Vector2,
                   turn: TurnDirection, network: "RoadNetwork") -> Lane:
        curve = connector_curve(lane_in.path.end, lane_out.path.start, d_in, d_out, turn)
        path = Path.from_bezier(curve, self.policy.connector_samples, self.policy.lane_path_radius_m)
        connector_id = f"{self.id}:{lane_in.id}>{lane_out.id}"
        existing = network.lanes.get(connector_id)
        if existing is not None:
            existing.set_path(path)
            return existing
        limit = min(lane_in.speed_limit, lane_out.speed_limit)
        if turn is not TurnDirection.FRONT:
            limit *= self.policy.turn_speed_factor
        return Lane(connector_id, 0, limit, path, intersection_id=self.id,
                    next_lane_id=lane_out.id, turn=turn)

    def connectors_from(self, incoming_lane_id: str) -> List[str]:
        """Every connector leaving *incoming_lane_id*, whatever the signal."""
        return list(self._routes.get(incoming_lane_id, []))

    def reachable_turns(self, incoming_lane_id: str) -> Set[TurnDirection]:
        return {self._turns[c] for c in self._routes.get(incoming_lane_id, [])}

    # ── signals ───────────────────────────────────────────────────────────

    def _next_flow_with_lanes(self, start: FlowState) -> FlowState:
        state = start
        for _ in FLOW_CYCLE:
            if self.signals[state].has_lanes:
                return state
            state = next_flow_state(state)
        return start

    def possible_next_lanes(self, incoming_lane_id: str) -> List[str]:
        """Connector lanes the active flow state releases for *incoming_lane_id*."""
        return self.signals[self.active_flow].possible_next_lanes(incoming_lane_id)

    def update(self, dt: float, lanes: Mapping[str, Lane]) -> None:
        successor = self.signals[self.active_flow].update(dt, lanes)
        if successor is None:
            return
        nxt = self._next_flow_with_lanes(successor)
        if nxt is not successor:
            log.debug("%s: skipping empty flow states %s..%s", self.id, successor.value, nxt.value)
        log.debug("%s: flow %s -> %s", self.id, self.active_flow.value, nxt.value)
        self.active_flow = nxt
        self.signals[nxt].reset()

    def __repr__(self) -> str:
        return f"FourWayIntersection({self.id!r}, origin={self.origin}, roads={self.road_ids})"
