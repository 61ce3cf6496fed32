#!/usr/bin/env python3
"""
traffic/policy.py
=================
Tunable geometry, car-following, lane-changing and signal parameters for
the traffic simulation.  Every constant lives in the frozen
:class:`SimulationPolicy` dataclass, which is passed explicitly to the
network, the world and every model function, so experiments can swap
policies without touching code.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SimulationPolicy:
    """Immutable bag of every tunable simulation parameter.

    Groups: geometry, car following, lane changing, vehicle envelope,
    steering, signals.
    """

    # ── Geometry ──────────────────────────────────────────────────────────
    lane_width_m: float = 2.0
    """Width of a single lane; road width is lanes × this."""

    lane_path_radius_m: float = 0.25
    """Lateral tolerance of every lane path (lane change completes inside it)."""

    connector_samples: int = 8
    """Sub-segments used when sampling a connector's Bezier curve."""

    min_intersection_extent_m: float = 1.0
    """Intersection width/height when no road runs along that axis."""

    max_roads_per_intersection: int = 4
    """A four-way intersection accepts at most this many roads."""

    # ── Car following (IDM) ───────────────────────────────────────────────
    safe_time_headway_s: float = 4.0
    """Desired time gap ``T`` to the leader."""

    min_bumper_gap_m: float = 4.0
    """Jam distance ``s0`` between bumpers."""

    acceleration_exponent: float = 4.0
    """Free-road exponent ``δ``."""

    min_gap_m: float = 0.01
    """Lower clamp on the gap fed to IDM; keeps the interaction term finite."""

    lookahead_m: float = 200.0
    """Stop walking downstream lanes for free space after this distance."""

    lane_end_tolerance_m: float = 0.1
    """Front bumper this close to the lane end triggers the hand-off."""

    # ── Lane changing (MOBIL) ─────────────────────────────────────────────
    lane_change_threshold_mps2: float = 0.2
    """Minimum net advantage required before changing lanes."""

    # ── Vehicle envelope ──────────────────────────────────────────────────
    min_vehicle_acceleration_mps2: float = 0.5
    """Vehicles that cannot accelerate at least this hard are rejected."""

    max_vehicle_braking_mps2: float = 9.0
    """Vehicles claiming more comfortable braking than this are rejected."""

    # ── Steering ──────────────────────────────────────────────────────────
    steering_kp: float = 1.0
    steering_ki: float = 0.0
    steering_kd: float = 2.0
    """PID gains applied to the cross-track error."""

    min_heading_speed_mps: float = 0.05
    """Below this speed the body heading is not re-aligned with velocity."""

    # ── Signals ───────────────────────────────────────────────────────────
    signal_green_s: float = 10.0
    """Time a flow state stays GO before waiting for its lanes to clear."""

    turn_speed_factor: float = 0.4
    """Speed-limit multiplier on left/right connector lanes."""
