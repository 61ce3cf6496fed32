#!/usr/bin/env python3
"""
traffic/idm.py
==============
Intelligent Driver Model: the longitudinal acceleration a vehicle wants
given its own speed and the gap to whatever is ahead of it.

Pure functions only; lanes supply the :class:`LeaderInfo`.
"""

from __future__ import annotations

import math
from typing import NamedTuple

from traffic.policy import SimulationPolicy


class LeaderInfo(NamedTuple):
    """What a vehicle sees ahead of it in one lane.

    ``gap`` is bumper-to-bumper in metres; ``closing_rate`` is own speed
    minus the leader's (positive when approaching).
    """

    gap: float
    closing_rate: float


def desired_gap(
    speed: float,
    closing_rate: float,
    max_acceleration: float,
    braking_deceleration: float,
    policy: SimulationPolicy,
) -> float:
    """``s* = s0 + max(0, v·T + v·Δv / (2·sqrt(a·b)))``."""
    dynamic = speed * policy.safe_time_headway_s + (
        speed * closing_rate / (2.0 * math.sqrt(max_acceleration * braking_deceleration))
    )
    # Floored at zero, unlike the base IDM term: s* never drops below s0.
    return policy.min_bumper_gap_m + max(0.0, dynamic)


def idm_acceleration(
    speed: float,
    max_speed: float,
    max_acceleration: float,
    braking_deceleration: float,
    leader: LeaderInfo,
    policy: SimulationPolicy,
) -> float:
    """Tangential acceleration from the IDM.

    Parameters
    ----------
    speed : float
        Own speed along the lane tangent (m/s).
    max_speed : float
        Desired speed ``v0`` (m/s), > 0.
    max_acceleration, braking_deceleration : float
        ``a`` and ``b`` (m/s²).
    leader : LeaderInfo
        Gap and closing rate to the leader or virtual obstacle.
    policy : SimulationPolicy
        Supplies ``T``, ``s0``, ``δ`` and the gap clamp.

    Returns
    -------
    float
        ``a·(1 − (v/v0)^δ − (s*/s)²)`` with ``s`` clamped to
        ``policy.min_gap_m``.
    """
    if max_speed <= 0.0:
        raise ValueError(f"max speed must be > 0, got {max_speed!r}")
    gap = max(leader.gap, policy.min_gap_m)
    s_star = desired_gap(speed, leader.closing_rate, max_acceleration, braking_deceleration, policy)
    free_road = (speed / max_speed) ** policy.acceleration_exponent
    interaction = (s_star / gap) ** 2
    return max_acceleration * (1.0 - free_road - interaction)
