#!/usr/bin/env python3
"""
scene/schema.py
===============
Pydantic models describing a scene: the intersections and roads a
:class:`~traffic.world.World` is built from.

A road's caption carries ``"lanesIn,lanesOut,speedLimit"``.  ``lanes_out``
lanes run from the source intersection towards the target, ``lanes_in``
lanes the other way.
"""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field, model_validator


# ── Pydantic scene schemas ───────────────────────────────────────────────────


class IntersectionSpec(BaseModel):
    """One intersection, placed on integer scene coordinates."""
    id: str = Field(min_length=1)
    x: int
    y: int


class RoadSpec(BaseModel):
    """One road between two intersections."""
    id: str = Field(min_length=1)
    source_id: str
    target_id: str
    lanes_in: int = Field(ge=0)
    lanes_out: int = Field(ge=0)
    speed_limit: float = Field(gt=0.0)

    @model_validator(mode="after")
    def _has_lanes(self) -> "RoadSpec":
        if self.lanes_in + self.lanes_out < 1:
            raise ValueError(f"road {self.id} needs at least one lane")
        if self.source_id == self.target_id:
            raise ValueError(f"road {self.id} connects {self.source_id} to itself")
        return self

    @classmethod
    def from_caption(cls, road_id: str, source_id: str, target_id: str, caption: str) -> "RoadSpec":
        """Build from a ``"lanesIn,lanesOut,speedLimit"`` caption.

        Raises
        ------
        ValueError
            If the caption does not hold exactly three numbers or the
            resulting road is invalid (pydantic ``ValidationError`` is a
            ``ValueError``).
        """
        parts = [p.strip() for p in caption.split(",")]
        if len(parts) != 3:
            raise ValueError(f"caption {caption!r} of road {road_id} is not 'in,out,speed'")
        return cls(
            id=road_id,
            source_id=source_id,
            target_id=target_id,
            lanes_in=int(parts[0]),
            lanes_out=int(parts[1]),
            speed_limit=float(parts[2]),
        )


class SceneSpec(BaseModel):
    """Complete scene; every road must reference known intersections."""
    intersections: List[IntersectionSpec] = []
    roads: List[RoadSpec] = []

    @model_validator(mode="after")
    def _check_references(self) -> "SceneSpec":
        known = {i.id for i in self.intersections}
        if len(known) != len(self.intersections):
            raise ValueError("intersection ids must be unique")
        road_ids = [r.id for r in self.roads]
        if len(set(road_ids)) != len(road_ids):
            raise ValueError("road ids must be unique")
        for road in self.roads:
            missing = {road.source_id, road.target_id} - known
            if missing:
                raise ValueError(f"road {road.id} references unknown intersections {sorted(missing)}")
        return self
