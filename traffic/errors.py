#!/usr/bin/env python3
"""
traffic/errors.py
=================
Construction-time errors raised by the simulation core.

All of them derive from :class:`ValueError`: they signal an invalid
argument at build time and are never raised from inside a tick.
"""

from __future__ import annotations


class TopologyError(ValueError):
    """Invalid road / intersection / lane wiring."""


class IntersectionCapacityError(TopologyError):
    """Too many roads on an intersection, or two roads on one side."""


class RoadAlignmentError(TopologyError):
    """Road endpoints are not axis-aligned with its orientation."""


class LaneTopologyError(TopologyError):
    """Lane neighbors assigned twice, or an unknown lane handle."""


class InvalidLaneChange(ValueError):
    """A lane change whose source and target are the same lane."""


class InvalidVehicleParameters(ValueError):
    """A vehicle parameter bundle outside the accepted envelope."""
