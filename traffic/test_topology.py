#!/usr/bin/env python3
"""
Tests for road construction, intersection footprints and connector lanes.
"""

from __future__ import annotations

import unittest

from geometry.vector import Vector2
from traffic.errors import IntersectionCapacityError, RoadAlignmentError, TopologyError
from traffic.network import RoadNetwork
from traffic.policy import SimulationPolicy
from traffic.road import RoadOrientation
from traffic.signals import FlowState, TurnDirection

H, V = RoadOrientation.HORIZONTAL, RoadOrientation.VERTICAL


def _crossroads(lanes: int = 2) -> RoadNetwork:
    """X at the origin with a road to each of W, E, S and N (100 m away)."""
    net = RoadNetwork(SimulationPolicy())
    net.add_intersection(Vector2(0.0, 0.0), "X")
    net.add_intersection(Vector2(-100.0, 0.0), "W")
    net.add_intersection(Vector2(100.0, 0.0), "E")
    net.add_intersection(Vector2(0.0, -100.0), "S")
    net.add_intersection(Vector2(0.0, 100.0), "N")
    net.add_road("W", "X", lanes, lanes, H, 15.0, road_id="WX")
    net.add_road("X", "E", lanes, lanes, H, 15.0, road_id="XE")
    net.add_road("S", "X", lanes, lanes, V, 15.0, road_id="SX")
    net.add_road("X", "N", lanes, lanes, V, 15.0, road_id="XN")
    return net


def _targets(net: RoadNetwork, incoming: str):
    node = net.intersections["X"]
    return {net.lane(cid).next_lane_id: net.lane(cid).turn for cid in node.connectors_from(incoming)}


class RoadConstructionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.net = RoadNetwork(SimulationPolicy())
        self.net.add_intersection(Vector2(0.0, 0.0), "A")
        self.net.add_intersection(Vector2(100.0, 0.0), "B")
        self.net.add_intersection(Vector2(40.0, 30.0), "C")
        self.net.add_intersection(Vector2(0.0, 100.0), "D")

    def test_misaligned_roads_rejected(self) -> None:
        with self.assertRaises(RoadAlignmentError):
            self.net.add_road("A", "C", 1, 1, H, 10.0)
        with self.assertRaises(RoadAlignmentError):
            self.net.add_road("A", "B", 1, 1, V, 10.0)
        with self.assertRaises(RoadAlignmentError):
            self.net.add_road("A", "D", 1, 1, H, 10.0)
        self.assertEqual(self.net.roads, {})

    def test_source_and_target_follow_positive_axis(self) -> None:
        road = self.net.add_road("B", "A", 1, 2, H, 10.0, road_id="R")
        self.assertEqual((road.source_id, road.target_id), ("A", "B"))
        self.assertEqual(len(road.forward_lanes), 2)
        self.assertEqual(len(road.backward_lanes), 1)
        self.assertAlmostEqual(road.width, 6.0)
        self.assertEqual(self.net.lane("R:F0").target_intersection_id, "B")
        self.assertEqual(self.net.lane("R:B0").target_intersection_id, "A")

    def test_lane_counts_validated(self) -> None:
        with self.assertRaises(TopologyError):
            self.net.add_road("A", "B", 0, 0, H, 10.0)
        with self.assertRaises(TopologyError):
            self.net.add_road("A", "B", -1, 2, H, 10.0)

    def test_right_hand_lane_placement(self) -> None:
        self.net.add_road("A", "B", 2, 2, H, 10.0, road_id="R")
        # Eastbound lanes south of the axis, index 0 innermost.
        self.assertAlmostEqual(self.net.lane("R:F0").path.start.y, -1.0)
        self.assertAlmostEqual(self.net.lane("R:F1").path.start.y, -3.0)
        self.assertAlmostEqual(self.net.lane("R:B0").path.start.y, 1.0)
        self.assertAlmostEqual(self.net.lane("R:B1").path.start.x, 99.5)
        self.assertAlmostEqual(self.net.lane("R:B1").path.end.x, 0.5)


class IntersectionTests(unittest.TestCase):
    def test_second_road_on_a_side_rejected(self) -> None:
        net = _crossroads(1)
        net.add_intersection(Vector2(200.0, 0.0), "E2")
        with self.assertRaises(IntersectionCapacityError):
            net.add_road("X", "E2", 1, 1, H, 10.0)
        self.assertEqual(len(net.intersections["X"].road_ids), 4)

    def test_capacity_limit(self) -> None:
        net = RoadNetwork(SimulationPolicy(max_roads_per_intersection=2))
        net.add_intersection(Vector2(0.0, 0.0), "X")
        net.add_intersection(Vector2(-50.0, 0.0), "W")
        net.add_intersection(Vector2(50.0, 0.0), "E")
        net.add_intersection(Vector2(0.0, 50.0), "N")
        net.add_road("W", "X", 1, 1, H, 10.0)
        net.add_road("X", "E", 1, 1, H, 10.0)
        with self.assertRaises(IntersectionCapacityError):
            net.add_road("X", "N", 1, 1, V, 10.0)

    def test_footprint_recomputed_on_topology_change(self) -> None:
        net = RoadNetwork(SimulationPolicy())
        net.add_intersection(Vector2(0.0, 0.0), "A")
        net.add_intersection(Vector2(100.0, 0.0), "B")
        net.add_intersection(Vector2(0.0, 100.0), "C")
        net.add_road("A", "B", 1, 1, H, 10.0, road_id="AB")
        self.assertAlmostEqual(net.lane("AB:F0").path.start.x, 0.5)

        net.add_road("A", "C", 2, 2, V, 10.0, road_id="AC")
        node = net.intersections["A"]
        self.assertAlmostEqual(node.width, 8.0)
        self.assertAlmostEqual(node.height, 4.0)
        self.assertAlmostEqual(net.lane("AB:F0").path.start.x, 4.0)
        self.assertAlmostEqual(net.lane("AC:F0").path.start.y, 2.0)

        net.remove_road("AC")
        self.assertAlmostEqual(net.lane("AB:F0").path.start.x, 0.5)
        self.assertNotIn("AC:F0", net.lanes)


class ConnectorTests(unittest.TestCase):
    def test_surplus_incoming_lanes_funnel_into_last_outgoing(self) -> None:
        net = RoadNetwork(SimulationPolicy())
        net.add_intersection(Vector2(-100.0, 0.0), "A")
        net.add_intersection(Vector2(0.0, 0.0), "X")
        net.add_intersection(Vector2(100.0, 0.0), "B")
        net.add_road("A", "X", 1, 2, H, 15.0, road_id="AX")
        net.add_road("X", "B", 1, 1, H, 15.0, road_id="XB")

        self.assertEqual(_targets(net, "AX:F0"), {"XB:F0": TurnDirection.FRONT})
        self.assertEqual(_targets(net, "AX:F1"), {"XB:F0": TurnDirection.FRONT})
        self.assertEqual(_targets(net, "XB:B0"), {"AX:B0": TurnDirection.FRONT})

        node = net.intersections["X"]
        self.assertIs(node.active_flow, FlowState.EW_FR)
        connector = net.lane(node.connectors_from("AX:F1")[0])
        self.assertEqual(connector.path.start, net.lane("AX:F1").path.end)
        self.assertEqual(connector.path.end, net.lane("XB:F0").path.start)

    def test_turns_bind_outer_and_inner_lanes(self) -> None:
        net = _crossroads(2)
        right = _targets(net, "WX:F1")
        left = _targets(net, "WX:F0")
        self.assertEqual(right.get("SX:B1"), TurnDirection.RIGHT)
        self.assertEqual(left.get("XN:F0"), TurnDirection.LEFT)
        self.assertEqual(left.get("XE:F0"), TurnDirection.FRONT)
        self.assertEqual(right.get("XE:F1"), TurnDirection.FRONT)
        self.assertNotIn("XN:F0", right)
        self.assertNotIn("SX:B1", left)

    def test_only_active_flow_releases_lanes(self) -> None:
        net = _crossroads(2)
        node = net.intersections["X"]
        # EW_FR became active when the first through movement appeared.
        self.assertIs(node.active_flow, FlowState.EW_FR)
        self.assertEqual(node.possible_next_lanes("SX:F0"), [])
        self.assertTrue(node.signals[FlowState.NS_FR].possible_next_lanes("SX:F0"))
        self.assertIsNone(net.next_lane("SX:F0"))

        released = node.possible_next_lanes("WX:F0")
        self.assertEqual([net.lane(c).turn for c in released], [TurnDirection.FRONT])
        self.assertIsNone(net.next_lane("WX:F0", TurnDirection.LEFT))
        self.assertEqual(net.next_lane("WX:F0", TurnDirection.FRONT).id, "X:WX:F0>XE:F0")
        # A right turn is not reachable from the inner lane: best released lane instead.
        self.assertEqual(net.next_lane("WX:F0", TurnDirection.RIGHT).id, "X:WX:F0>XE:F0")

    def test_connector_turn_speed(self) -> None:
        net = _crossroads(1)
        policy = net.policy
        node = net.intersections["X"]
        for cid in node.connector_ids:
            lane = net.lane(cid)
            expected = 15.0 if lane.turn is TurnDirection.FRONT else 15.0 * policy.turn_speed_factor
            self.assertAlmostEqual(lane.speed_limit, expected)
            self.assertTrue(lane.is_connector)

    def test_flow_advances_and_skips_states_without_lanes(self) -> None:
        policy = SimulationPolicy(signal_green_s=1.0)
        net = RoadNetwork(policy)
        net.add_intersection(Vector2(-100.0, 0.0), "A")
        net.add_intersection(Vector2(0.0, 0.0), "X")
        net.add_intersection(Vector2(0.0, 100.0), "N")
        net.add_road("A", "X", 1, 1, H, 15.0, road_id="AX")
        net.add_road("X", "N", 1, 1, V, 15.0, road_id="XN")
        node = net.intersections["X"]
        # Eastbound → north is a left turn, southbound → west is a right turn.
        self.assertIs(node.active_flow, FlowState.NS_FR)
        node.update(1.0, net.lanes)
        node.update(0.1, net.lanes)
        self.assertIs(node.active_flow, FlowState.EW_L)
        node.update(1.0, net.lanes)
        node.update(0.1, net.lanes)
        self.assertIs(node.active_flow, FlowState.NS_FR)

    def test_connectors_survive_unrelated_topology_change(self) -> None:
        net = RoadNetwork(SimulationPolicy())
        net.add_intersection(Vector2(-100.0, 0.0), "A")
        net.add_intersection(Vector2(0.0, 0.0), "X")
        net.add_intersection(Vector2(100.0, 0.0), "B")
        net.add_intersection(Vector2(0.0, 100.0), "N")
        net.add_road("A", "X", 1, 1, H, 15.0, road_id="AX")
        net.add_road("X", "B", 1, 1, H, 15.0, road_id="XB")
        through = net.lane("X:AX:F0>XB:F0")
        net.add_road("X", "N", 1, 1, V, 15.0, road_id="XN")
        self.assertIs(net.lane("X:AX:F0>XB:F0"), through)
        self.assertAlmostEqual(through.path.start.x, -2.0)
        lost = [lane.id for lane in net.lanes_on_road("XN")]
        self.assertIn("XN:F0", lost)
        self.assertIn("X:AX:F0>XN:F0", lost)
        self.assertNotIn("X:AX:F0>XB:F0", lost)


if __name__ == "__main__":
    unittest.main()
