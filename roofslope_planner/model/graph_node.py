"""GraphNode - Vertex of the surface connectivity graph.

A GraphNode wraps a Point3 for its location (single source of truth) and
carries a stable integer id assigned by the AdjacencyGraphBuilder.
Nodes are never mutated; elevation results are returned separately.
"""

from dataclasses import dataclass, field

from roofslope_planner.model.point3 import Point3


@dataclass(frozen=True, order=True)
class GraphNode:
    """A node in the surface graph.

    Attributes:
        id: Stable index within one graph (0, 1, 2, ...)
        point: Point3 location

    Example:
        node = GraphNode(id=0, point=Point3(x=0.0, y=0.0, z=0.0))
        print(node.z)  # 0.0
    """

    id: int
    point: Point3 = field(compare=False)

    @property
    def x(self) -> float:
        return self.point.x

    @property
    def y(self) -> float:
        return self.point.y

    @property
    def z(self) -> float:
        """Elevation delegated from point."""
        return self.point.z

    def distance_to(self, other: "GraphNode") -> float:
        """Euclidean distance to another node."""
        return self.point.distance_to(other.point)

    def __repr__(self) -> str:
        return f"GraphNode({self.id}, {self.point})"
