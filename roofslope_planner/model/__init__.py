"""Data model classes for roof drainage.

Follows the separation of Geometry (where things are) vs Topology (how things connect):
- Point3: Geometry atom (x, y, z) with quantized identity
- GraphNode: Graph vertex (wraps Point3, has ID)
- Edge / SurfaceGraph: Undirected weighted connectivity
- Edge2D / Loop / TopologyResult: Flattened boundary loops
- PathResult: Shortest path from a node to its drain
- ElevationAssignment / DrainSegment: Host-facing outputs
- NodeIssue: Per-node reasons (unreachable, no drains, drain itself)
"""

from roofslope_planner.model.assignment import (
    DrainSegment,
    ElevationAssignment,
    ElevationReport,
    PolylineReport,
    SolveSummary,
)
from roofslope_planner.model.graph_node import GraphNode
from roofslope_planner.model.issue import (
    NodeIssue,
    NoSinks,
    SinkTarget,
    ToleranceAmbiguity,
    UnreachableTarget,
)
from roofslope_planner.model.loop import Edge2D, Loop, LoopKind, TopologyResult
from roofslope_planner.model.path_result import PathResult
from roofslope_planner.model.point3 import Point3
from roofslope_planner.model.surface_graph import Edge, SurfaceGraph

__all__ = [
    "Point3",
    "GraphNode",
    "Edge",
    "SurfaceGraph",
    "Edge2D",
    "Loop",
    "LoopKind",
    "TopologyResult",
    "NodeIssue",
    "UnreachableTarget",
    "NoSinks",
    "SinkTarget",
    "ToleranceAmbiguity",
    "PathResult",
    "ElevationAssignment",
    "DrainSegment",
    "SolveSummary",
    "ElevationReport",
    "PolylineReport",
]
