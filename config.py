#!/usr/bin/env python3
"""
config.py
=========
Application-wide configuration constants for the headless runner.

Values can be overridden via ``ROADSIM_*`` environment variables (see
:mod:`main`).  Model constants live in
:class:`traffic.policy.SimulationPolicy`, not here.  This module is a
thin, import-safe leaf — it never imports from other project packages.
"""

# ── Simulation defaults ──────────────────────────────────────────────────────
DEFAULT_DURATION_S: float = 120.0
DEFAULT_TICK_RATE_HZ: float = 20.0
DEFAULT_SPAWN_INTERVAL_S: float = 2.0
DEFAULT_MAX_VEHICLES: int = 40

# ── Scene defaults ───────────────────────────────────────────────────────────
DEFAULT_SCENE_SCALE: float = 1.0
DEFAULT_GRID_ROWS: int = 3
DEFAULT_GRID_COLS: int = 3
DEFAULT_GRID_SPACING: int = 150
DEFAULT_GRID_LANES: int = 2
DEFAULT_SPEED_LIMIT_MPS: float = 14.0

# ── Output ───────────────────────────────────────────────────────────────────
DEFAULT_LOG_LEVEL: str = "INFO"
LOG_FILE: str = "roadsim.log"
WORLD_DEBUG_LOG_FILE: str = "world_debug.log"
