#!/usr/bin/env python3
"""
Tests for turn classification, flow-state mapping and the traffic light FSM.
"""

from __future__ import annotations

import unittest

from geometry.path import Path
from geometry.vector import Vector2
from traffic.lane import Lane
from traffic.policy import SimulationPolicy
from traffic.signals import (
    CardinalDirection,
    FlowState,
    SignalPhase,
    TrafficLightFSM,
    TurnDirection,
    cardinal_direction,
    flow_state_for,
    next_flow_state,
    turn_direction,
)
from traffic.vehicle import Vehicle, VehicleParams

EAST, WEST = Vector2(1.0, 0.0), Vector2(-1.0, 0.0)
NORTH, SOUTH = Vector2(0.0, 1.0), Vector2(0.0, -1.0)


class TurnClassificationTests(unittest.TestCase):
    def test_turns_in_y_up_frame(self) -> None:
        self.assertIs(turn_direction(EAST, NORTH), TurnDirection.LEFT)
        self.assertIs(turn_direction(EAST, SOUTH), TurnDirection.RIGHT)
        self.assertIs(turn_direction(EAST, EAST), TurnDirection.FRONT)
        self.assertIs(turn_direction(SOUTH, WEST), TurnDirection.RIGHT)
        self.assertIs(turn_direction(NORTH, WEST), TurnDirection.LEFT)

    def test_u_turn_rejected(self) -> None:
        with self.assertRaises(ValueError):
            turn_direction(EAST, WEST)

    def test_cardinal_direction(self) -> None:
        self.assertIs(cardinal_direction(EAST), CardinalDirection.EAST)
        self.assertIs(cardinal_direction(SOUTH), CardinalDirection.SOUTH)
        self.assertEqual(CardinalDirection.NORTH.axis, "NS")
        self.assertEqual(CardinalDirection.WEST.axis, "EW")

    def test_flow_state_mapping(self) -> None:
        self.assertIs(flow_state_for(CardinalDirection.NORTH, TurnDirection.FRONT), FlowState.NS_FR)
        self.assertIs(flow_state_for(CardinalDirection.SOUTH, TurnDirection.RIGHT), FlowState.NS_FR)
        self.assertIs(flow_state_for(CardinalDirection.SOUTH, TurnDirection.LEFT), FlowState.NS_L)
        self.assertIs(flow_state_for(CardinalDirection.EAST, TurnDirection.RIGHT), FlowState.EW_FR)
        self.assertIs(flow_state_for(CardinalDirection.WEST, TurnDirection.LEFT), FlowState.EW_L)

    def test_cycle(self) -> None:
        self.assertIs(next_flow_state(FlowState.NS_FR), FlowState.NS_L)
        self.assertIs(next_flow_state(FlowState.NS_L), FlowState.EW_FR)
        self.assertIs(next_flow_state(FlowState.EW_FR), FlowState.EW_L)
        self.assertIs(next_flow_state(FlowState.EW_L), FlowState.NS_FR)


class TrafficLightTests(unittest.TestCase):
    def setUp(self) -> None:
        self.connector = Lane("C", 0, 10.0, Path.from_points([Vector2(0.0, 0.0), Vector2(10.0, 0.0)]))
        self.lanes = {"C": self.connector}
        self.fsm = TrafficLightFSM(FlowState.EW_FR, FlowState.EW_L, green_duration=10.0)
        self.fsm.add_lane("IN", "C")
        self.car = Vehicle("CAR", VehicleParams(), Vector2(5.0, 0.0), 0.0, SimulationPolicy())

    def test_starts_go_and_releases_lanes(self) -> None:
        self.assertIs(self.fsm.phase, SignalPhase.GO)
        self.assertEqual(self.fsm.possible_next_lanes("IN"), ["C"])
        self.assertEqual(self.fsm.possible_next_lanes("UNKNOWN"), [])

    def test_waits_for_empty_then_reports_successor(self) -> None:
        self.connector.add_vehicle(self.car)
        self.assertIsNone(self.fsm.update(4.0, self.lanes))
        self.assertIs(self.fsm.phase, SignalPhase.GO)
        self.assertIsNone(self.fsm.update(6.0, self.lanes))
        self.assertIs(self.fsm.phase, SignalPhase.WAIT_FOR_EMPTY)
        self.assertEqual(self.fsm.possible_next_lanes("IN"), [])

        self.assertIsNone(self.fsm.update(0.1, self.lanes))
        self.assertIs(self.fsm.phase, SignalPhase.WAIT_FOR_EMPTY)

        self.connector.remove_vehicle(self.car)
        self.assertIs(self.fsm.update(0.1, self.lanes), FlowState.EW_L)
        self.assertIs(self.fsm.phase, SignalPhase.GO)
        self.assertEqual(self.fsm.elapsed, 0.0)

    def test_empty_lanes_advance_on_next_update(self) -> None:
        self.assertIsNone(self.fsm.update(10.0, self.lanes))
        self.assertIs(self.fsm.update(0.1, self.lanes), FlowState.EW_L)


if __name__ == "__main__":
    unittest.main()
