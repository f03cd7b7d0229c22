"""Drain (sink) selection on a built surface graph.

Three ways the roof tools pick drains:
- infer_lowest_sinks: every node at the minimum elevation
- snap_to_nodes: user-picked points snapped to the closest graph node
- nodes_in_drain_area: every node inside a rectangular drain opening
"""

import logging
from typing import Iterable

from roofslope_planner.constants import SolverConfig
from roofslope_planner.errors import ConfigurationError, GeometryError
from roofslope_planner.model.graph_node import GraphNode
from roofslope_planner.model.point3 import Point3
from roofslope_planner.model.surface_graph import SurfaceGraph

logger = logging.getLogger(__name__)


class DrainLocator:
    """Resolves drain nodes for a DrainageSolver run.

    All methods return nodes in a deterministic order, which becomes the
    solver's tie-break order.
    """

    @staticmethod
    def infer_lowest_sinks(
        graph: SurfaceGraph,
        tolerance: float = SolverConfig.LOWEST_Z_TOLERANCE,
    ) -> list[GraphNode]:
        """Nodes whose elevation is within tolerance of the lowest node, by id."""
        if len(graph) == 0:
            raise GeometryError("Cannot infer drains on an empty graph")
        if tolerance < 0:
            raise ConfigurationError(f"Tolerance must be non-negative, got {tolerance}")

        lowest = min(node.z for node in graph.nodes)
        sinks = [node for node in graph.nodes if node.z - lowest <= tolerance]
        logger.info(f"Inferred {len(sinks)} drain(s) at elevation {lowest:.4f}")
        return sinks

    @staticmethod
    def snap_to_nodes(graph: SurfaceGraph, points: Iterable[Point3]) -> list[GraphNode]:
        """Closest graph node for each picked point, duplicates dropped.

        Exact (quantized) matches win over distance; otherwise the nearest
        node in 3D is used, ties going to the lower id.
        """
        snapped: dict[int, GraphNode] = {}
        for point in points:
            node = graph.find_node(point) or graph.nearest_node(point)
            if node is None:
                raise GeometryError("Cannot snap drains on an empty graph")
            if node.id in snapped:
                logger.debug(f"Picked point {point} snapped onto existing drain {node.id}")
                continue
            if node.point != point:
                logger.debug(f"Picked point {point} snapped to node {node.id} ({node.point.distance_to(point):.4f} away)")
            snapped[node.id] = node
        return list(snapped.values())

    @staticmethod
    def nodes_in_drain_area(
        graph: SurfaceGraph,
        center: Point3,
        width: float,
        height: float,
    ) -> list[GraphNode]:
        """Nodes inside an axis-aligned drain opening, ordered by id.

        Args:
            graph: Built surface graph
            center: Opening centre (Z ignored)
            width: Extent along X in model units
            height: Extent along Y in model units
        """
        if width <= 0 or height <= 0:
            raise ConfigurationError(f"Drain area must have positive size, got {width} x {height}")

        half_w = width / 2.0
        half_h = height / 2.0
        inside = [
            node
            for node in graph.nodes
            if abs(node.x - center.x) <= half_w and abs(node.y - center.y) <= half_h
        ]
        if not inside:
            logger.warning(f"No nodes inside drain area at ({center.x:.3f}, {center.y:.3f})")
        return inside
