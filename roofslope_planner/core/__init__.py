"""Core geometry classes for roof surfaces.

- GeometryCalculator: Shoelace area, nearest-neighbour spacing, k-d tree pairs
- FaceMembership: Point and segment tests against the valid roof region
- PolygonFace: shapely-backed planar face with voids
- TopologyClassifier: Boundary edges to one outer loop plus inner voids
"""

from roofslope_planner.core.face_membership import (
    FaceMembership,
    PolygonFace,
    SurfaceFace,
)
from roofslope_planner.core.geometry import GeometryCalculator
from roofslope_planner.core.topology import TopologyClassifier

__all__ = [
    # Geometry
    "GeometryCalculator",
    # Face membership
    "FaceMembership",
    "PolygonFace",
    "SurfaceFace",
    # Topology
    "TopologyClassifier",
]
