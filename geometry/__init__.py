"""
geometry — Planar geometry kernel
=================================

Modules
-------
vector
    :class:`Vector2` immutable 2D vector.
segment
    :class:`Segment` directed segment with fractional sub-segments.
bezier
    :class:`BezierCurve` cubic curve with eager arclength.
path
    :class:`Path` contiguous polyline with projection and progress queries.
rectangle
    :class:`Rectangle` oriented rectangle for footprints and bounding boxes.
"""
