"""
scene — Scene import and generation
===================================

Modules
-------
schema
    Pydantic :class:`SceneSpec` / :class:`RoadSpec` / :class:`IntersectionSpec`.
geogebra
    GeoGebra XML parser.
builder
    :func:`build_world` and the random :func:`grid_scene` generator.
"""
