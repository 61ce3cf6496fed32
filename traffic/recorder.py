#!/usr/bin/env python3
"""
traffic/recorder.py
===================
Collects per-tick vehicle snapshots into a :class:`pandas.DataFrame`
for offline analysis, and writes them out as CSV.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

import pandas as pd

from traffic.world import World

log = logging.getLogger("recorder")

COLUMNS = [
    "tick", "time", "id", "x", "y", "heading", "speed", "speed_kmh", "state", "lanes", "turn",
]


class TraceRecorder:
    """Accumulates one row per vehicle for each :meth:`record` call."""

    def __init__(self) -> None:
        self._rows: List[Dict[str, Any]] = []

    def __len__(self) -> int:
        return len(self._rows)

    def record(self, world: World) -> None:
        for row in world.snapshot():
            row["lanes"] = "|".join(row["lanes"])
            row["tick"] = world.tick_count
            row["time"] = round(world.elapsed, 4)
            self._rows.append(row)

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self._rows, columns=COLUMNS)

    def to_csv(self, path: str) -> None:
        df = self.to_dataframe()
        df.to_csv(path, index=False)
        log.info("Wrote %d trace rows for %d vehicles to %s",
                 len(df), df["id"].nunique() if len(df) else 0, path)
