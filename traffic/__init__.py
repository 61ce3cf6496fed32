"""
traffic — Simulation core
=========================

Modules
-------
world
    :class:`World` vehicle manager and four-phase tick.
network
    :class:`RoadNetwork` arena of intersections, roads and lanes.
intersection
    :class:`FourWayIntersection` footprint and connector synthesis.
road
    :class:`Road` axis-aligned two-way road and its lanes.
lane
    :class:`Lane` sorted vehicle list and leader lookup.
signals
    :class:`TrafficLightFSM`, flow states and turn classification.
driving
    ``KeepLane`` / ``ChangeLane`` states and their dispatch table.
idm, mobil, pid
    Car-following, lane-changing and steering models.
vehicle, physics
    :class:`Vehicle` and the rigid-body integrator.
policy
    :class:`SimulationPolicy` tunable constants.
recorder
    :class:`TraceRecorder` pandas trace export.
"""
