"""Boundary-aware adjacency graph construction.

Connects every pair of surface nodes that is close enough AND whose
connecting segment stays on the roof face (inside the outer boundary,
outside every void). Closeness comes from a threshold policy:

- FixedThreshold: a constant distance (1 ft default, 50 m long range)
- AdaptiveThreshold: derived from the median nearest-neighbour spacing,
  clamp(median × 2.5, median × 1.25, median × 6.0) floored at 0.5 ft

Complexity ceiling is the O(n²) pairwise pass; a SciPy k-d tree prefilter
skips pairs beyond the threshold without changing the result.

Crease and mesh input can supply its own edges instead; those are taken as
the edge set as-is.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol, Sequence

import numpy as np

from roofslope_planner.constants import GraphConfig, ThresholdConfig
from roofslope_planner.core.face_membership import FaceMembership
from roofslope_planner.core.geometry import GeometryCalculator
from roofslope_planner.errors import ConfigurationError, GeometryError
from roofslope_planner.model.graph_node import GraphNode
from roofslope_planner.model.point3 import Point3
from roofslope_planner.model.surface_graph import SurfaceGraph

logger = logging.getLogger(__name__)

# Relative slack on the k-d tree radius; exact distances are re-checked
PREFILTER_SLACK = 1e-9


class ThresholdPolicy(Protocol):
    """Strategy deciding the maximum edge length for a point set."""

    def compute(self, points: Sequence[Point3]) -> float:
        ...


@dataclass(frozen=True)
class FixedThreshold:
    """Constant connectivity distance.

    Attributes:
        distance: Maximum edge length in model units
    """

    distance: float = ThresholdConfig.DEFAULT_FIXED

    def __post_init__(self) -> None:
        if not self.distance > 0:
            raise ConfigurationError(f"Fixed threshold must be positive, got {self.distance}")

    @classmethod
    def default(cls) -> "FixedThreshold":
        """1 ft threshold used by the dense slab-vertex tools."""
        return cls(distance=ThresholdConfig.DEFAULT_FIXED)

    @classmethod
    def long_range(cls) -> "FixedThreshold":
        """50 m threshold used by the sparse drain-point tools."""
        return cls(distance=ThresholdConfig.LONG_RANGE_FIXED)

    def compute(self, points: Sequence[Point3]) -> float:
        return self.distance


@dataclass(frozen=True)
class AdaptiveThreshold:
    """Threshold derived from local point density.

    threshold = max(absolute_min, clamp(median × multiplier,
                                        median × min_factor,
                                        median × max_factor))

    The multipliers are empirical defaults, not derived constants.

    Attributes:
        multiplier: Raw scale applied to the median nearest-neighbour distance
        min_factor: Lower clamp as a multiple of the median
        max_factor: Upper clamp as a multiple of the median
        absolute_min: Floor in model units
        fallback: Returned when fewer than two distinct points exist
    """

    multiplier: float = ThresholdConfig.ADAPTIVE_MULTIPLIER
    min_factor: float = ThresholdConfig.ADAPTIVE_MIN_FACTOR
    max_factor: float = ThresholdConfig.ADAPTIVE_MAX_FACTOR
    absolute_min: float = ThresholdConfig.ADAPTIVE_ABSOLUTE_MIN
    fallback: float = ThresholdConfig.ADAPTIVE_FALLBACK

    def __post_init__(self) -> None:
        for name in ("multiplier", "min_factor", "max_factor", "fallback"):
            value = getattr(self, name)
            if not value > 0:
                raise ConfigurationError(f"Adaptive threshold {name} must be positive, got {value}")
        if self.absolute_min < 0:
            raise ConfigurationError(f"Adaptive threshold absolute_min must be non-negative, got {self.absolute_min}")
        if self.min_factor > self.max_factor:
            raise ConfigurationError(
                f"Adaptive threshold min_factor {self.min_factor} exceeds max_factor {self.max_factor}"
            )

    def median_spacing(self, points: Sequence[Point3]) -> float | None:
        """Median nearest-neighbour distance, None without two distinct points."""
        distances = GeometryCalculator.nearest_neighbor_distances(points)
        if distances.size == 0:
            return None
        return float(np.median(distances))

    def compute(self, points: Sequence[Point3]) -> float:
        median = self.median_spacing(points)
        if median is None:
            logger.warning(f"Adaptive threshold: fewer than two distinct points, using fallback {self.fallback}")
            return self.fallback

        raw = median * self.multiplier
        clamped = min(max(raw, median * self.min_factor), median * self.max_factor)
        threshold = max(self.absolute_min, clamped)
        logger.info(f"Adaptive threshold: median spacing {median:.4f}, threshold {threshold:.4f}")
        return threshold


class AdjacencyGraphBuilder:
    """Builds the undirected weighted surface graph.

    Example:
        builder = AdjacencyGraphBuilder(
            membership=FaceMembership(face=PolygonFace(outer=square)),
            threshold_policy=AdaptiveThreshold(),
        )
        graph = builder.build(points)
    """

    def __init__(
        self,
        membership: FaceMembership,
        threshold_policy: ThresholdPolicy | None = None,
        min_separation: float = GraphConfig.MIN_SEPARATION,
        climb_penalty_factor: float = GraphConfig.CLIMB_PENALTY_FACTOR,
    ) -> None:
        if min_separation < 0:
            raise ConfigurationError(f"min_separation must be non-negative, got {min_separation}")
        if climb_penalty_factor < 0:
            raise ConfigurationError(f"climb_penalty_factor must be non-negative, got {climb_penalty_factor}")
        self.membership = membership
        self.threshold_policy = threshold_policy or AdaptiveThreshold()
        self.min_separation = min_separation
        self.climb_penalty_factor = climb_penalty_factor

    def build(
        self,
        points: Sequence[Point3],
        edges: Optional[Iterable[tuple[Point3, Point3]]] = None,
    ) -> SurfaceGraph:
        """Build the graph over points.

        Node ids follow the input order after dropping quantized duplicates.

        Args:
            points: Surface points
            edges: Explicit connectivity (crease or mesh edges). When given it
                replaces the threshold and face checks; only pairs closer than
                min_separation are dropped.

        Raises:
            GeometryError: Fewer than two distinct points, or an explicit edge
                endpoint that is not among the points.
            ConfigurationError: Threshold policy produced a non-positive value.
        """
        distinct = list(dict.fromkeys(points))
        if len(distinct) < 2:
            raise GeometryError(f"At least 2 distinct surface points are required, got {len(distinct)}")

        nodes = [GraphNode(id=index, point=point) for index, point in enumerate(distinct)]
        if edges is not None:
            return self._build_explicit(nodes, edges)

        threshold = self.threshold_policy.compute(distinct)
        if not threshold > 0:
            raise ConfigurationError(f"Connectivity threshold must be positive, got {threshold}")
        graph = SurfaceGraph(nodes=nodes, threshold=threshold)

        candidates = GeometryCalculator.candidate_pairs(distinct, threshold * (1 + PREFILTER_SLACK))
        rejected_face = 0
        for i, j in candidates:
            a, b = nodes[i], nodes[j]
            dist = a.distance_to(b)
            if dist > threshold or dist <= self.min_separation:
                continue
            if not self.membership.is_segment_on_face(a.point, b.point):
                rejected_face += 1
                logger.debug(f"Edge {a.id}-{b.id} leaves the face, rejected")
                continue
            graph.add_edge(a, b, climb_penalty_factor=self.climb_penalty_factor)

        logger.info(
            f"Built graph: {len(nodes)} nodes, {graph.edge_count} edges "
            f"(threshold {threshold:.4f}, {rejected_face} pair(s) off-face)"
        )
        return graph

    def _build_explicit(self, nodes: list[GraphNode], edges: Iterable[tuple[Point3, Point3]]) -> SurfaceGraph:
        by_point = {node.point: node for node in nodes}
        graph = SurfaceGraph(nodes=nodes)
        for start, end in edges:
            a, b = by_point.get(start), by_point.get(end)
            if a is None or b is None:
                missing = start if a is None else end
                raise GeometryError(f"Edge endpoint {missing.xyz} is not a surface point")
            if a.distance_to(b) <= self.min_separation:
                continue
            graph.add_edge(a, b, climb_penalty_factor=self.climb_penalty_factor)

        logger.info(f"Built graph: {len(nodes)} nodes, {graph.edge_count} explicit edges")
        return graph
