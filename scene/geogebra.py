#!/usr/bin/env python3
"""
scene/geogebra.py
=================
Reads a scene drawn in GeoGebra (the ``geogebra.xml`` inside a ``.ggb``
export) into a :class:`~scene.schema.SceneSpec`.

Expected elements::

    <element type="point" label="A">
        <coords x="0" y="0" z="1"/>
    </element>
    <command name="Segment">
        <input a0="A" a1="B"/>
        <output a0="f"/>
    </command>
    <element type="segment" label="f">
        <caption val="1,2,15"/>
    </element>

Ids seen twice keep their first occurrence.  Entries that cannot be
parsed are skipped with a warning on the ``scene`` logger.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as XET
from typing import Dict, List, Optional, Tuple

from pydantic import ValidationError

from scene.schema import IntersectionSpec, RoadSpec, SceneSpec

log = logging.getLogger("scene")


def _integral(value: Optional[str]) -> int:
    if value is None:
        raise ValueError("missing coordinate")
    number = float(value)
    if not number.is_integer():
        raise ValueError(f"coordinate {value!r} is not integral")
    return int(number)


def _points(root: XET.Element) -> List[IntersectionSpec]:
    found: Dict[str, IntersectionSpec] = {}
    for element in root.iter("element"):
        if element.get("type") != "point":
            continue
        label = element.get("label")
        coords = element.find("coords")
        if not label or coords is None:
            log.warning("Skipping point without label or coords: %s", element.attrib)
            continue
        if label in found:
            log.warning("Duplicate intersection %s ignored", label)
            continue
        try:
            found[label] = IntersectionSpec(id=label, x=_integral(coords.get("x")),
                                            y=_integral(coords.get("y")))
        except ValueError as exc:
            log.warning("Skipping intersection %s: %s", label, exc)
    return list(found.values())


def _captions(root: XET.Element) -> Dict[str, str]:
    captions: Dict[str, str] = {}
    for element in root.iter("element"):
        if element.get("type") != "segment":
            continue
        label = element.get("label")
        caption = element.find("caption")
        if not label or caption is None or caption.get("val") is None:
            log.warning("Skipping segment without label or caption: %s", element.attrib)
            continue
        captions.setdefault(label, caption.get("val"))
    return captions


def _endpoints(root: XET.Element) -> Dict[str, Tuple[str, str]]:
    ends: Dict[str, Tuple[str, str]] = {}
    for command in root.iter("command"):
        inputs, output = command.find("input"), command.find("output")
        if inputs is None or output is None:
            continue
        label = output.get("a0")
        source, target = inputs.get("a0"), inputs.get("a1")
        if not label or not source or not target:
            continue
        ends.setdefault(label, (source, target))
    return ends


def parse_scene_text(text: str) -> SceneSpec:
    """Parse GeoGebra XML *text*.

    Raises
    ------
    xml.etree.ElementTree.ParseError
        If *text* is not XML at all.
    """
    root = XET.fromstring(text)
    intersections = _points(root)
    known = {i.id for i in intersections}
    ends = _endpoints(root)

    roads: List[RoadSpec] = []
    for label, caption in _captions(root).items():
        if label not in ends:
            log.warning("Segment %s has no command naming its endpoints", label)
            continue
        source, target = ends[label]
        if source not in known or target not in known:
            log.warning("Segment %s joins unknown points %s, %s", label, source, target)
            continue
        try:
            roads.append(RoadSpec.from_caption(label, source, target, caption))
        except (ValueError, ValidationError) as exc:
            log.warning("Skipping road %s: %s", label, exc)

    log.info("Parsed scene: %d intersections, %d roads", len(intersections), len(roads))
    return SceneSpec(intersections=intersections, roads=roads)


def parse_scene_file(path: str) -> SceneSpec:
    with open(path, "r", encoding="utf-8") as fh:
        return parse_scene_text(fh.read())
