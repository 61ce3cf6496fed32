#!/usr/bin/env python3
"""
main.py
=======
Headless runner: builds a world from a GeoGebra scene (or a random grid),
spawns vehicles at a fixed interval and advances the simulation at a
fixed tick rate, optionally writing a CSV trace.

Usage::

    python main.py --scene city.xml --duration 300 --trace trace.csv
    ROADSIM_SEED=7 python main.py --log-level DEBUG

Every option defaults to ``config.py`` and can be overridden through the
matching ``ROADSIM_*`` environment variable.
"""

import argparse
import logging
import os
import random
from typing import Optional

import config
from logging_setup import setup_logging
from scene.builder import build_world, grid_scene
from scene.geogebra import parse_scene_file
from traffic.policy import SimulationPolicy
from traffic.recorder import TraceRecorder
from traffic.vehicle import VehicleParams
from traffic.world import World

log = logging.getLogger("runner")


def _env(name: str, default):
    """``ROADSIM_<name>`` converted to the type of *default*."""
    raw = os.environ.get(f"ROADSIM_{name}")
    if raw is None:
        return default
    return type(default)(raw)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Headless microscopic traffic simulation")
    parser.add_argument("--scene", default=os.environ.get("ROADSIM_SCENE"),
                        help="GeoGebra XML scene; a random grid when omitted")
    parser.add_argument("--scale", type=float, default=_env("SCALE", config.DEFAULT_SCENE_SCALE),
                        help="metres per scene unit")
    parser.add_argument("--duration", type=float, default=_env("DURATION", config.DEFAULT_DURATION_S),
                        help="simulated seconds")
    parser.add_argument("--tick-rate", type=float, default=_env("TICK_RATE", config.DEFAULT_TICK_RATE_HZ),
                        help="ticks per simulated second")
    parser.add_argument("--seed", type=int, default=_env("SEED", -1),
                        help="random seed (negative for none)")
    parser.add_argument("--spawn-interval", type=float,
                        default=_env("SPAWN_INTERVAL", config.DEFAULT_SPAWN_INTERVAL_S),
                        help="seconds between spawn attempts")
    parser.add_argument("--max-vehicles", type=int, default=_env("MAX_VEHICLES", config.DEFAULT_MAX_VEHICLES))
    parser.add_argument("--trace", default=os.environ.get("ROADSIM_TRACE"),
                        help="write a per-tick CSV trace here")
    parser.add_argument("--log-level", default=_env("LOG_LEVEL", config.DEFAULT_LOG_LEVEL),
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def random_params(rng: random.Random) -> VehicleParams:
    """Vehicle with a little spread in top speed, acceleration and politeness."""
    return VehicleParams(
        max_speed=rng.uniform(11.0, 16.0),
        max_acceleration=rng.uniform(1.5, 2.5),
        braking_deceleration=rng.uniform(2.5, 4.0),
        politeness=rng.uniform(0.1, 0.5),
    )


def make_world(scene_path: Optional[str], scale: float, seed: Optional[int],
               policy: SimulationPolicy) -> World:
    if scene_path:
        log.info("Loading scene %s", scene_path)
        scene = parse_scene_file(scene_path)
    else:
        log.info("No scene given, generating a %dx%d grid",
                 config.DEFAULT_GRID_ROWS, config.DEFAULT_GRID_COLS)
        scene = grid_scene(
            rows=config.DEFAULT_GRID_ROWS,
            cols=config.DEFAULT_GRID_COLS,
            spacing=config.DEFAULT_GRID_SPACING,
            lanes=config.DEFAULT_GRID_LANES,
            speed_limit=config.DEFAULT_SPEED_LIMIT_MPS,
            seed=seed,
        )
    return build_world(scene, policy, scale=scale, seed=seed)


def run(args: argparse.Namespace) -> World:
    if args.tick_rate <= 0.0:
        raise ValueError(f"tick rate must be > 0, got {args.tick_rate}")
    seed = args.seed if args.seed >= 0 else None
    rng = random.Random(seed)
    world = make_world(args.scene, args.scale, seed, SimulationPolicy())
    recorder = TraceRecorder() if args.trace else None

    dt = 1.0 / args.tick_rate
    ticks = int(round(args.duration * args.tick_rate))
    next_spawn = 0.0
    retired = 0
    log.info("Running %d ticks of %.3fs", ticks, dt)

    try:
        for _ in range(ticks):
            if world.elapsed >= next_spawn:
                next_spawn += args.spawn_interval
                if len(world.vehicles) < args.max_vehicles:
                    vehicle = world.spawn_random(random_params(rng))
                    if vehicle is None:
                        log.debug("Spawn at t=%.1fs failed, retrying next interval", world.elapsed)

            world.update(dt)
            retired += len(world.retire_stranded())
            if recorder is not None:
                recorder.record(world)

            if world.tick_count % int(max(1, args.tick_rate * 10)) == 0:
                log.info("t=%.1fs vehicles=%d retired=%d",
                         world.elapsed, len(world.vehicles), retired)
    except KeyboardInterrupt:
        log.info("Interrupted at t=%.1fs", world.elapsed)

    if recorder is not None:
        recorder.to_csv(args.trace)
    log.info("Done: t=%.1fs, %d vehicles on the road, %d retired",
             world.elapsed, len(world.vehicles), retired)
    return world


def main() -> None:
    args = build_parser().parse_args()
    setup_logging(getattr(logging, args.log_level))
    log.info("Starting simulation...")
    run(args)


if __name__ == "__main__":
    main()
