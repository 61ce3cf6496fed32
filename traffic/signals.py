#!/usr/bin/env python3
"""
traffic/signals.py
==================
Directions, turn classification and the per-flow-state traffic light.

An intersection owns one :class:`TrafficLightFSM` per :class:`FlowState`.
Only the active flow state's FSM hands out connector lanes; it stays GO
for a fixed green time, then waits until its connector lanes are empty
before naming its successor.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, List, Mapping, Optional, Tuple

from geometry.vector import Vector2
from traffic.lane import Lane

log = logging.getLogger("signals")


class CardinalDirection(Enum):
    NORTH = "N"
    EAST = "E"
    SOUTH = "S"
    WEST = "W"

    @property
    def axis(self) -> str:
        return "NS" if self in (CardinalDirection.NORTH, CardinalDirection.SOUTH) else "EW"


class TurnDirection(Enum):
    RIGHT = "RIGHT"
    FRONT = "FRONT"
    LEFT = "LEFT"


class FlowState(Enum):
    """Which movements may enter the intersection."""

    NS_FR = "NS_FR"
    NS_L = "NS_L"
    EW_FR = "EW_FR"
    EW_L = "EW_L"


class SignalPhase(Enum):
    GO = "GO"
    WAIT_FOR_EMPTY = "WAIT_FOR_EMPTY"


FLOW_CYCLE: Tuple[FlowState, ...] = (
    FlowState.NS_FR,
    FlowState.NS_L,
    FlowState.EW_FR,
    FlowState.EW_L,
)


def next_flow_state(state: FlowState) -> FlowState:
    i = FLOW_CYCLE.index(state)
    return FLOW_CYCLE[(i + 1) % len(FLOW_CYCLE)]


def cardinal_direction(direction: Vector2) -> CardinalDirection:
    """Dominant compass direction of a travel vector (y-up)."""
    if abs(direction.x) >= abs(direction.y):
        return CardinalDirection.EAST if direction.x > 0 else CardinalDirection.WEST
    return CardinalDirection.NORTH if direction.y > 0 else CardinalDirection.SOUTH


def turn_direction(incoming: Vector2, outgoing: Vector2, eps: float = 1e-9) -> TurnDirection:
    """Classify the movement from travel direction *incoming* to *outgoing*.

    Raises
    ------
    ValueError
        For a U-turn (anti-parallel directions).
    """
    cross = incoming.cross(outgoing)
    if cross > eps:
        return TurnDirection.LEFT
    if cross < -eps:
        return TurnDirection.RIGHT
    if incoming.dot(outgoing) > 0.0:
        return TurnDirection.FRONT
    raise ValueError("U-turns are not synthesised")


def flow_state_for(arrival: CardinalDirection, turn: TurnDirection) -> FlowState:
    """Flow state that carries a movement arriving along *arrival*."""
    left = turn is TurnDirection.LEFT
    if arrival.axis == "NS":
        return FlowState.NS_L if left else FlowState.NS_FR
    return FlowState.EW_L if left else FlowState.EW_FR


class TrafficLightFSM:
    """Signal controller for one flow state.

    Parameters
    ----------
    flow_state : FlowState
        The movements this FSM releases.
    successor : FlowState
        Reported once the FSM has finished its cycle.
    green_duration : float
        Seconds spent in GO before switching to WAIT_FOR_EMPTY.
    """

    def __init__(self, flow_state: FlowState, successor: FlowState, green_duration: float) -> None:
        self.flow_state = flow_state
        self.successor = successor
        self.green_duration = float(green_duration)
        self.phase = SignalPhase.GO
        self.elapsed = 0.0
        # incoming lane id → connector lane ids
        self._lanes: Dict[str, List[str]] = {}

    # ── registry ──────────────────────────────────────────────────────────

    def add_lane(self, incoming_lane_id: str, connector_lane_id: str) -> None:
        self._lanes.setdefault(incoming_lane_id, []).append(connector_lane_id)

    def clear_lanes(self) -> None:
        self._lanes.clear()

    @property
    def has_lanes(self) -> bool:
        return bool(self._lanes)

    def lane_ids(self) -> List[str]:
        return [lid for ids in self._lanes.values() for lid in ids]

    def incoming_lane_ids(self) -> List[str]:
        return list(self._lanes)

    def possible_next_lanes(self, incoming_lane_id: str) -> List[str]:
        """Connector lanes released for *incoming_lane_id* right now."""
        if self.phase is not SignalPhase.GO:
            return []
        return list(self._lanes.get(incoming_lane_id, []))

    # ── tick ──────────────────────────────────────────────────────────────

    def reset(self) -> None:
        self.phase = SignalPhase.GO
        self.elapsed = 0.0

    def update(self, dt: float, lanes: Mapping[str, Lane]) -> Optional[FlowState]:
        """Advance the timer; return the successor when the cycle ends."""
        if self.phase is SignalPhase.GO:
            self.elapsed += dt
            if self.elapsed >= self.green_duration:
                self.phase = SignalPhase.WAIT_FOR_EMPTY
                log.debug("%s: green over after %.1fs, waiting for empty",
                          self.flow_state.value, self.elapsed)
            return None
        if all(lanes[lid].is_empty for lid in self.lane_ids() if lid in lanes):
            self.reset()
            return self.successor
        return None
