#!/usr/bin/env python3
"""
Tests for the World tick, spawning, removal and the trace recorder.
"""

from __future__ import annotations

import os
import tempfile
import unittest

import pandas as pd

from geometry.vector import Vector2
from traffic.driving import KeepLane
from traffic.errors import InvalidVehicleParameters
from traffic.policy import SimulationPolicy
from traffic.recorder import COLUMNS, TraceRecorder
from traffic.road import RoadOrientation
from traffic.vehicle import VehicleParams
from traffic.world import World

H, V = RoadOrientation.HORIZONTAL, RoadOrientation.VERTICAL


def _straight_world(length: float = 200.0, seed: int = 1, lanes: int = 1) -> World:
    world = World(seed=seed)
    world.add_intersection(Vector2(0.0, 0.0), "A")
    world.add_intersection(Vector2(length, 0.0), "B")
    world.add_road("A", "B", lanes, lanes, H, 15.0, road_id="R")
    return world


def _through_world(policy: SimulationPolicy, with_side_road: bool = False) -> World:
    """A(0,0) ── AX ── X(60,0) ── XB ── B(120,0), optionally X ── XN ── N(60,60)."""
    world = World(policy, seed=3)
    world.add_intersection(Vector2(0.0, 0.0), "A")
    world.add_intersection(Vector2(60.0, 0.0), "X")
    world.add_intersection(Vector2(120.0, 0.0), "B")
    world.add_road("A", "X", 1, 1, H, 15.0, road_id="AX")
    if with_side_road:
        world.add_intersection(Vector2(60.0, 60.0), "N")
        world.add_road("X", "N", 1, 1, V, 15.0, road_id="XN")
    world.add_road("X", "B", 1, 1, H, 15.0, road_id="XB")
    return world


class TickTests(unittest.TestCase):
    def test_non_positive_dt_is_a_no_op(self) -> None:
        world = _straight_world()
        car = world.spawn_vehicle(VehicleParams(initial_speed=5.0), "R:F0")
        before = car.position
        world.update(0.0)
        world.update(-0.1)
        self.assertEqual(world.tick_count, 0)
        self.assertEqual(world.elapsed, 0.0)
        self.assertEqual(car.position, before)

    def test_vehicle_moves_forward_along_lane(self) -> None:
        world = _straight_world()
        car = world.spawn_vehicle(VehicleParams(), "R:F0")
        lane = world.network.lane("R:F0")
        start = lane.progress(car)
        for _ in range(50):
            world.update(0.1)
        self.assertGreater(lane.progress(car), start + 5.0)
        self.assertAlmostEqual(car.position.y, lane.path.start.y, places=3)
        self.assertEqual(world.tick_count, 50)
        self.assertAlmostEqual(world.elapsed, 5.0)

    def test_lanes_stay_sorted(self) -> None:
        world = _straight_world()
        params = VehicleParams(initial_speed=6.0)
        for lane_id in ("R:F0", "R:B0"):
            for offset in (0.0, 0.3, 0.6):
                self.assertIsNotNone(world.spawn_vehicle(params, lane_id, offset))
        for _ in range(100):
            world.update(0.1)
            for lane in world.network.lanes.values():
                self.assertTrue(lane.is_sorted())

    def test_same_seed_same_run(self) -> None:
        def run(seed: int):
            world = _straight_world(seed=seed, lanes=2)
            for _ in range(4):
                world.spawn_random(VehicleParams(initial_speed=3.0))
            for _ in range(40):
                world.update(0.1)
            return world.snapshot()

        self.assertEqual(run(11), run(11))


class SpawnTests(unittest.TestCase):
    def test_lane_too_short(self) -> None:
        world = _straight_world(length=8.0)
        self.assertIsNone(world.spawn_vehicle(VehicleParams(), "R:F0"))
        self.assertEqual(world.vehicles, {})

    def test_occupied_spot_refused(self) -> None:
        world = _straight_world()
        first = world.spawn_vehicle(VehicleParams(), "R:F0")
        self.assertEqual(first.id, "CAR_000")
        self.assertIsInstance(first.state, KeepLane)
        self.assertIn(first, world.network.lane("R:F0"))
        self.assertIsNone(world.spawn_vehicle(VehicleParams(), "R:F0"))
        self.assertIsNotNone(world.spawn_vehicle(VehicleParams(), "R:F0", 1.0))

    def test_invalid_arguments(self) -> None:
        world = _straight_world()
        with self.assertRaises(InvalidVehicleParameters):
            world.spawn_vehicle(VehicleParams(mass=-1.0), "R:F0")
        with self.assertRaises(InvalidVehicleParameters):
            world.spawn_vehicle(VehicleParams(braking_deceleration=20.0), "R:F0")
        with self.assertRaises(ValueError):
            world.spawn_vehicle(VehicleParams(), "R:F0", 1.5)

    def test_spawn_random_fills_free_lanes(self) -> None:
        world = _straight_world()
        spawned = [world.spawn_random(VehicleParams()) for _ in range(3)]
        self.assertIsNotNone(spawned[0])
        self.assertIsNotNone(spawned[1])
        # Both road lanes are blocked at their start now.
        self.assertIsNone(spawned[2])


class RemovalTests(unittest.TestCase):
    def test_remove_vehicle_leaves_lanes(self) -> None:
        world = _straight_world()
        car = world.spawn_vehicle(VehicleParams(), "R:F0")
        world.remove_vehicle(car.id)
        self.assertEqual(world.vehicles, {})
        self.assertTrue(world.network.lane("R:F0").is_empty)

    def test_remove_road_evicts_vehicles(self) -> None:
        world = _straight_world()
        world.spawn_vehicle(VehicleParams(), "R:F0")
        world.spawn_vehicle(VehicleParams(), "R:B0")
        world.remove_road("R")
        self.assertEqual(world.vehicles, {})
        self.assertEqual(world.roads, {})
        self.assertNotIn("R:F0", world.network.lanes)

    def test_remove_intersection_drops_its_roads(self) -> None:
        world = _through_world(SimulationPolicy())
        world.spawn_vehicle(VehicleParams(), "XB:F0")
        world.remove_intersection("X")
        self.assertNotIn("X", world.intersections)
        self.assertEqual(world.roads, {})
        self.assertEqual(world.vehicles, {})
        self.assertEqual(world.network.lanes, {})

    def test_update_rejects_vehicle_without_state(self) -> None:
        world = _straight_world()
        car = world.spawn_vehicle(VehicleParams(), "R:F0")
        car.state = None
        with self.assertRaises(RuntimeError):
            world.update(0.1)

    def test_retire_stranded_at_dead_end(self) -> None:
        world = _straight_world()
        car = world.spawn_vehicle(VehicleParams(initial_speed=14.0), "R:F0", 1.0)
        for _ in range(400):
            world.update(0.1)
            world.retire_stranded()
        self.assertNotIn(car.id, world.vehicles)


class IntersectionTrafficTests(unittest.TestCase):
    def test_vehicle_crosses_green_intersection(self) -> None:
        world = _through_world(SimulationPolicy())
        car = world.spawn_vehicle(VehicleParams(initial_speed=10.0), "AX:F0")
        for _ in range(200):
            world.update(0.05)
        self.assertEqual(car.state, KeepLane("XB:F0"))
        self.assertGreater(car.position.x, 60.5)

    def test_red_light_holds_vehicle_at_lane_end(self) -> None:
        world = _through_world(SimulationPolicy(signal_green_s=100.0), with_side_road=True)
        node = world.intersections["X"]
        car = world.spawn_vehicle(VehicleParams(initial_speed=10.0), "AX:F0")
        held = node.active_flow
        for _ in range(300):
            world.update(0.05)
        self.assertIs(node.active_flow, held)
        self.assertEqual(car.state, KeepLane("AX:F0"))
        lane = world.network.lane("AX:F0")
        front = lane.progress(car) + car.length / 2.0
        self.assertLessEqual(front, lane.path.length + 0.05)
        self.assertLess(car.speed, 0.5)


class RecorderTests(unittest.TestCase):
    def test_rows_and_csv(self) -> None:
        world = _straight_world()
        world.spawn_vehicle(VehicleParams(initial_speed=5.0), "R:F0")
        world.spawn_vehicle(VehicleParams(initial_speed=5.0), "R:B0")
        recorder = TraceRecorder()
        for _ in range(5):
            world.update(0.1)
            recorder.record(world)
        self.assertEqual(len(recorder), 10)

        df = recorder.to_dataframe()
        self.assertEqual(list(df.columns), COLUMNS)
        self.assertEqual(sorted(df["id"].unique()), ["CAR_000", "CAR_001"])
        self.assertEqual(set(df["lanes"]), {"R:F0", "R:B0"})
        self.assertEqual(df["tick"].max(), 5)

        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "trace.csv")
            recorder.to_csv(path)
            loaded = pd.read_csv(path)
        self.assertEqual(len(loaded), 10)
        self.assertEqual(list(loaded.columns), COLUMNS)


if __name__ == "__main__":
    unittest.main()
