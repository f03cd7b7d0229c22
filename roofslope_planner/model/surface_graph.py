"""SurfaceGraph - Undirected weighted connectivity graph over roof surface nodes.

Owns the node set and the adjacency produced by one AdjacencyGraphBuilder
run. Construction is symmetric: if A lists B, B lists A with the same Edge.
No self-loops and no parallel edges.

Edges carry a direction-neutral geometric length plus an optional
asymmetric climb penalty used by the DrainageSolver.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

import numpy as np
from scipy.sparse import csr_matrix
from scipy.sparse.csgraph import connected_components

from roofslope_planner.model.graph_node import GraphNode
from roofslope_planner.model.point3 import Point3

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Edge:
    """Unordered node pair with a precomputed weight.

    Attributes:
        a: First endpoint (lower id)
        b: Second endpoint (higher id)
        length: Euclidean distance between the endpoints
        climb_penalty_factor: Extra cost per unit of climb (0 = no penalty)
    """

    a: GraphNode
    b: GraphNode
    length: float
    climb_penalty_factor: float = 0.0

    def other(self, node: GraphNode) -> GraphNode:
        """Return the endpoint opposite to node."""
        if node == self.a:
            return self.b
        if node == self.b:
            return self.a
        raise ValueError(f"{node} is not an endpoint of edge {self.a.id}-{self.b.id}")

    def cost(self, from_node: GraphNode, to_node: GraphNode) -> float:
        """Traversal cost in the direction from_node -> to_node.

        Climbing (to_node higher than from_node) adds climb * factor, so
        paths that flow uphill towards a drain are discouraged.
        """
        climb = to_node.z - from_node.z
        if climb > 0 and self.climb_penalty_factor > 0:
            return self.length + climb * self.climb_penalty_factor
        return self.length


class SurfaceGraph:
    """Graph of surface nodes built for one drainage solve.

    Attributes:
        threshold: Connectivity distance the builder used (None for explicit edges)

    Example:
        graph = SurfaceGraph(nodes=[n0, n1])
        graph.add_edge(n0, n1, climb_penalty_factor=0.0)
        assert graph.neighbors(n0) == [n1]
    """

    def __init__(self, nodes: Iterable[GraphNode], threshold: Optional[float] = None) -> None:
        self._nodes: tuple[GraphNode, ...] = tuple(nodes)
        for index, node in enumerate(self._nodes):
            if node.id != index:
                raise ValueError(f"Node ids must be 0..n-1 in order, got id {node.id} at index {index}")
        self._adjacency: dict[int, dict[int, Edge]] = {node.id: {} for node in self._nodes}
        self.threshold = threshold

    # =========================================================================
    # Construction
    # =========================================================================

    def add_edge(self, a: GraphNode, b: GraphNode, climb_penalty_factor: float = 0.0) -> Edge:
        """Connect a and b symmetrically. Returns the existing edge if already connected."""
        if a.id == b.id:
            raise ValueError(f"Self-loop rejected at node {a.id}")
        existing = self._adjacency[a.id].get(b.id)
        if existing is not None:
            return existing

        lo, hi = (a, b) if a.id < b.id else (b, a)
        edge = Edge(a=lo, b=hi, length=lo.distance_to(hi), climb_penalty_factor=climb_penalty_factor)
        self._adjacency[a.id][b.id] = edge
        self._adjacency[b.id][a.id] = edge
        return edge

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def nodes(self) -> tuple[GraphNode, ...]:
        return self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node: object) -> bool:
        """GraphNode equality compares ids only; the location must match too."""
        if not isinstance(node, GraphNode) or not 0 <= node.id < len(self._nodes):
            return False
        return self._nodes[node.id].point == node.point

    def node(self, node_id: int) -> GraphNode:
        return self._nodes[node_id]

    def neighbors(self, node: GraphNode) -> list[GraphNode]:
        """Neighbors in insertion order."""
        return [self._nodes[other_id] for other_id in self._adjacency[node.id]]

    def incident_edges(self, node: GraphNode) -> Iterator[tuple[GraphNode, Edge]]:
        for other_id, edge in self._adjacency[node.id].items():
            yield self._nodes[other_id], edge

    def edge(self, a: GraphNode, b: GraphNode) -> Optional[Edge]:
        return self._adjacency[a.id].get(b.id)

    def degree(self, node: GraphNode) -> int:
        return len(self._adjacency[node.id])

    def edges(self) -> list[Edge]:
        """Each undirected edge once, ordered by (a.id, b.id)."""
        result = []
        for node_id, neighbors in self._adjacency.items():
            for other_id, edge in neighbors.items():
                if node_id < other_id:
                    result.append(edge)
        result.sort(key=lambda e: (e.a.id, e.b.id))
        return result

    @property
    def edge_count(self) -> int:
        return sum(len(neighbors) for neighbors in self._adjacency.values()) // 2

    def find_node(self, point: Point3) -> Optional[GraphNode]:
        """Node whose location equals point under quantization, if any."""
        for node in self._nodes:
            if node.point == point:
                return node
        return None

    def nearest_node(self, point: Point3) -> Optional[GraphNode]:
        """Closest node to point (3D distance); ties go to the lower id."""
        best_dist = float("inf")
        best_node = None
        for node in self._nodes:
            dist = node.point.distance_to(point)
            if dist < best_dist:
                best_dist = dist
                best_node = node
        return best_node

    # =========================================================================
    # SciPy views
    # =========================================================================

    def to_csgraph(self) -> csr_matrix:
        """Symmetric sparse matrix of geometric edge lengths."""
        n = len(self._nodes)
        row_list: list[int] = []
        col_list: list[int] = []
        data_list: list[float] = []
        for edge in self.edges():
            row_list.extend((edge.a.id, edge.b.id))
            col_list.extend((edge.b.id, edge.a.id))
            data_list.extend((edge.length, edge.length))
        return csr_matrix((data_list, (row_list, col_list)), shape=(n, n), dtype=np.float64)

    def connected_components(self) -> np.ndarray:
        """Component label per node id."""
        if not self._nodes:
            return np.zeros(0, dtype=np.int32)
        _, labels = connected_components(csgraph=self.to_csgraph(), directed=False)
        return labels

    def __repr__(self) -> str:
        return f"SurfaceGraph(nodes={len(self._nodes)}, edges={self.edge_count})"
