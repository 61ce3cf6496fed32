#!/usr/bin/env python3
"""
scene/builder.py
================
Turns a :class:`~scene.schema.SceneSpec` into a populated
:class:`~traffic.world.World`, and generates random grid scenes for the
headless runner.

Roads that the network rejects (not axis-aligned, a side of an
intersection already taken, too many roads) are skipped with a warning
so one bad segment does not throw away a whole drawing.
"""

from __future__ import annotations

import logging
import random
from typing import Dict, Iterable, List, Optional, Tuple

from geometry.vector import Vector2
from scene.schema import IntersectionSpec, RoadSpec, SceneSpec
from traffic.errors import TopologyError
from traffic.policy import SimulationPolicy
from traffic.road import RoadOrientation, orientation_between
from traffic.world import World

log = logging.getLogger("scene")


def _lane_counts(road: RoadSpec, source: Vector2, target: Vector2,
                 orientation: RoadOrientation) -> Tuple[int, int]:
    """(southbound, northbound) counts for the network.

    Northbound lanes run towards the positive axis, so ``lanes_out``
    (source → target) is northbound when the target lies further along it.
    """
    if orientation is RoadOrientation.HORIZONTAL:
        forward = target.x > source.x
    else:
        forward = target.y > source.y
    if forward:
        return road.lanes_in, road.lanes_out
    return road.lanes_out, road.lanes_in


def build_world(
    scene: SceneSpec,
    policy: Optional[SimulationPolicy] = None,
    scale: float = 1.0,
    seed: Optional[int] = None,
) -> World:
    """Build a world from *scene*; coordinates are multiplied by *scale*.

    Parameters
    ----------
    scene : SceneSpec
        Validated scene description.
    policy : SimulationPolicy or None
        Model constants for the new world.
    scale : float
        Metres per scene unit, > 0.
    seed : int or None
        Seed for the world's random choices.
    """
    if scale <= 0.0:
        raise ValueError(f"scale must be > 0, got {scale!r}")
    world = World(policy, seed=seed)
    origins: Dict[str, Vector2] = {}
    for spec in scene.intersections:
        origin = Vector2(spec.x * scale, spec.y * scale)
        world.add_intersection(origin, spec.id)
        origins[spec.id] = origin

    for road in scene.roads:
        source, target = origins[road.source_id], origins[road.target_id]
        try:
            orientation = orientation_between(source, target)
            southbound, northbound = _lane_counts(road, source, target, orientation)
            world.add_road(road.source_id, road.target_id, southbound, northbound,
                           orientation, road.speed_limit, road.id)
        except TopologyError as exc:
            log.warning("Skipping road %s: %s", road.id, exc)

    log.info("Built world: %d intersections, %d roads, %d lanes",
             len(world.intersections), len(world.roads), len(world.network.lanes))
    return world


# ── Generated grids ───────────────────────────────────────────────────────────

def grid_scene(
    rows: int = 3,
    cols: int = 3,
    spacing: int = 150,
    lanes: int = 1,
    speed_limit: float = 14.0,
    drop: int = 2,
    seed: Optional[int] = None,
) -> SceneSpec:
    """Random grid of intersections joined to their east and north neighbours.

    Up to *drop* grid positions are removed at random, but only when the
    remaining intersections stay connected.

    Parameters
    ----------
    rows, cols : int
        Grid size, each >= 1 and at least two positions overall.
    spacing : int
        Centre-to-centre distance in scene units.
    lanes : int
        Lanes in each direction on every road.
    speed_limit : float
        Road speed limit in m/s.
    drop : int
        Maximum number of positions to remove.
    seed : int or None
        Random seed for reproducibility.
    """
    if rows < 1 or cols < 1 or rows * cols < 2:
        raise ValueError(f"grid {rows}x{cols} needs at least two intersections")
    rng = random.Random(seed)

    # Grid is centred around (0, 0)
    offset_x = -(cols - 1) * spacing // 2
    offset_y = -(rows - 1) * spacing // 2
    grid = {(r, c): (offset_x + c * spacing, offset_y + r * spacing)
            for r in range(rows) for c in range(cols)}

    candidates = list(grid)
    rng.shuffle(candidates)
    removed = 0
    for pos in candidates:
        if removed >= drop or len(grid) <= 2:
            break
        if _grid_connected(cell for cell in grid if cell != pos):
            del grid[pos]
            removed += 1

    names: Dict[Tuple[int, int], str] = {}
    intersections: List[IntersectionSpec] = []
    for i, pos in enumerate(sorted(grid)):
        names[pos] = f"INT_{i:02d}"
        x, y = grid[pos]
        intersections.append(IntersectionSpec(id=names[pos], x=x, y=y))

    roads: List[RoadSpec] = []
    for (r, c), name in names.items():
        for neighbour in ((r, c + 1), (r + 1, c)):
            if neighbour in names:
                roads.append(RoadSpec(
                    id=f"{name}-{names[neighbour]}",
                    source_id=name,
                    target_id=names[neighbour],
                    lanes_in=lanes,
                    lanes_out=lanes,
                    speed_limit=speed_limit,
                ))
    return SceneSpec(intersections=intersections, roads=roads)


def _grid_connected(cells: Iterable[Tuple[int, int]]) -> bool:
    """True when every (row, col) cell reaches every other through 4-neighbours."""
    remaining = set(cells)
    if not remaining:
        return True
    frontier = [remaining.pop()]
    while frontier:
        r, c = frontier.pop()
        for cell in ((r - 1, c), (r + 1, c), (r, c - 1), (r, c + 1)):
            if cell in remaining:
                remaining.remove(cell)
                frontier.append(cell)
    return not remaining
