"""Roof Slope Planner - Drainage graphs and slope assignment for flat roofs.

Builds a boundary-aware connectivity graph over roof surface points and
assigns every non-drain point an elevation offset (or a drainage polyline)
proportional to its shortest on-surface distance to the nearest drain.

Modules:
    core: Geometry foundations (vector math, face membership, loop topology)
    model: Data structures (Point3, GraphNode, SurfaceGraph, Loop, PathResult)
    generators: Pipeline stages (sampling, graph building, solving, mapping)
    engine: DrainageEngine wiring the stages together

Example:
    from roofslope_planner.engine import DrainageEngine, EngineConfig
    from roofslope_planner.model import Point3
"""
