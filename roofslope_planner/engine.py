"""DrainageEngine - End-to-end drainage pipeline.

Wires the stages together for the host tools:

    sample -> build graph -> locate drains -> solve -> map

Each stage is a plain object that can be swapped out (threshold policy,
solver strategy, face provider). The engine never touches a host document;
callers apply ElevationReport.assignments or PolylineReport.segments.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional, Sequence

from roofslope_planner.constants import GraphConfig, MapperConfig
from roofslope_planner.core.face_membership import FaceMembership, PolygonFace, SurfaceFace
from roofslope_planner.core.topology import TopologyClassifier
from roofslope_planner.errors import ConfigurationError, SolveCancelledError
from roofslope_planner.generators.adjacency_builder import (
    AdaptiveThreshold,
    AdjacencyGraphBuilder,
    ThresholdPolicy,
)
from roofslope_planner.generators.drain_locator import DrainLocator
from roofslope_planner.generators.drainage_solver import DrainageSolver, SolverStrategy
from roofslope_planner.generators.elevation_mapper import ElevationMapper
from roofslope_planner.generators.node_sampler import NodeSampler
from roofslope_planner.model.assignment import ElevationReport, PolylineReport
from roofslope_planner.model.graph_node import GraphNode
from roofslope_planner.model.loop import Edge2D
from roofslope_planner.model.path_result import PathResult
from roofslope_planner.model.point3 import Point3
from roofslope_planner.model.surface_graph import SurfaceGraph

module_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineConfig:
    """Runtime parameters for one engine.

    Attributes:
        threshold_policy: Connectivity threshold (adaptive by default)
        strategy: Solver search strategy
        slope_pct: Slope in percent used for elevation offsets
        climb_penalty_factor: Extra cost per unit of climb (0 disables)
        min_separation: Node pairs closer than this are never connected
        zero_fallback: Give unreachable nodes offset 0 instead of leaving them unassigned
    """

    threshold_policy: ThresholdPolicy = field(default_factory=AdaptiveThreshold)
    strategy: SolverStrategy = SolverStrategy.MULTI_SOURCE
    slope_pct: float = MapperConfig.DEFAULT_SLOPE_PCT
    climb_penalty_factor: float = GraphConfig.CLIMB_PENALTY_FACTOR
    min_separation: float = GraphConfig.MIN_SEPARATION
    zero_fallback: bool = False

    def __post_init__(self) -> None:
        if not self.slope_pct > 0:
            raise ConfigurationError(f"slope_pct must be positive, got {self.slope_pct}")
        if self.climb_penalty_factor < 0:
            raise ConfigurationError(f"climb_penalty_factor must be non-negative, got {self.climb_penalty_factor}")
        if self.min_separation < 0:
            raise ConfigurationError(f"min_separation must be non-negative, got {self.min_separation}")
        if not isinstance(self.strategy, SolverStrategy):
            raise ConfigurationError(f"Unknown solver strategy: {self.strategy!r}")


@dataclass(frozen=True)
class DrainageRun:
    """Intermediate output of one solve, kept for inspection and reuse.

    Attributes:
        graph: Built surface graph
        sinks: Drains in tie-break order
        results: PathResult per target
    """

    graph: SurfaceGraph
    sinks: tuple[GraphNode, ...]
    results: dict[GraphNode, PathResult]


class DrainageEngine:
    """Runs the drainage pipeline against one roof face.

    Example:
        engine = DrainageEngine.from_boundary(boundary_edges)
        report = engine.run_elevation(points, drain_points=[Point3(0, 0, 0)])
        print(report.summary.to_message())
    """

    def __init__(
        self,
        face: SurfaceFace,
        config: Optional[EngineConfig] = None,
        logger: Optional[logging.Logger] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> None:
        self.face = face
        self.config = config or EngineConfig()
        self.logger = logger or module_logger
        self.should_cancel = should_cancel

        self.sampler = NodeSampler()
        self.builder = AdjacencyGraphBuilder(
            membership=FaceMembership(face=face),
            threshold_policy=self.config.threshold_policy,
            min_separation=self.config.min_separation,
            climb_penalty_factor=self.config.climb_penalty_factor,
        )
        self.solver = DrainageSolver(strategy=self.config.strategy)
        self.mapper = ElevationMapper()

    @classmethod
    def from_boundary(
        cls,
        boundary_edges: Iterable[Edge2D | tuple[Point3, Point3]],
        config: Optional[EngineConfig] = None,
        logger: Optional[logging.Logger] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> "DrainageEngine":
        """Engine over the face described by raw boundary edges (outer loop plus voids)."""
        topology = TopologyClassifier().classify(boundary_edges)
        return cls(PolygonFace.from_topology(topology), config=config, logger=logger, should_cancel=should_cancel)

    def _check_cancel(self, stage: str) -> None:
        if self.should_cancel is not None and self.should_cancel():
            self.logger.info(f"Cancelled before {stage}")
            raise SolveCancelledError(f"Drainage run cancelled before {stage}")

    # =========================================================================
    # Pipeline
    # =========================================================================

    def solve(
        self,
        points: Iterable[Point3],
        drain_points: Optional[Sequence[Point3]] = None,
        targets: Optional[Sequence[Point3]] = None,
    ) -> DrainageRun:
        """Sample, build, locate drains and solve.

        Args:
            points: Raw surface points (shape-editor vertices)
            drain_points: Picked drain locations, snapped to the closest node;
                the lowest nodes are used when omitted
            targets: Points to solve, snapped like drains; every node when omitted

        Returns:
            DrainageRun with the graph, drains and per-target results.
        """
        self._check_cancel("sampling")
        sample = self.sampler.sample_vertices(points)
        return self._solve_points(sample.points, drain_points, targets)

    def solve_mesh(
        self,
        triangles: Iterable[Sequence[Point3]],
        drain_points: Optional[Sequence[Point3]] = None,
        targets: Optional[Sequence[Point3]] = None,
        use_mesh_edges: bool = False,
    ) -> DrainageRun:
        """Like solve, with nodes taken from triangulated roof geometry.

        With use_mesh_edges the triangle edges form the graph; otherwise the
        corners are connected by threshold like any other point set.
        """
        self._check_cancel("sampling")
        sample = self.sampler.sample_mesh(triangles)
        edges = sample.edges if use_mesh_edges else None
        return self._solve_points(sample.points, drain_points, targets, edges=edges)

    def _solve_points(
        self,
        points: Sequence[Point3],
        drain_points: Optional[Sequence[Point3]],
        targets: Optional[Sequence[Point3]],
        edges: Optional[Sequence[tuple[Point3, Point3]]] = None,
    ) -> DrainageRun:
        self._check_cancel("graph construction")
        graph = self.builder.build(points, edges=edges)
        self.logger.info(f"Graph ready: {len(graph)} node(s), {graph.edge_count} edge(s)")

        self._check_cancel("drain location")
        if drain_points is None:
            sinks = DrainLocator.infer_lowest_sinks(graph)
        else:
            sinks = DrainLocator.snap_to_nodes(graph, drain_points)
        target_nodes = None if targets is None else DrainLocator.snap_to_nodes(graph, targets)
        self.logger.info(f"Using {len(sinks)} drain(s)")

        self._check_cancel("solving")
        results = self.solver.solve(graph, sinks, targets=target_nodes, should_cancel=self.should_cancel)
        return DrainageRun(graph=graph, sinks=tuple(sinks), results=results)

    def run_elevation(
        self,
        points: Iterable[Point3],
        drain_points: Optional[Sequence[Point3]] = None,
    ) -> ElevationReport:
        """Elevation offsets for every sampled point."""
        run = self.solve(points, drain_points)
        self._check_cancel("elevation mapping")
        report = self.mapper.assign_elevations(
            run.results,
            slope_pct=self.config.slope_pct,
            zero_fallback=self.config.zero_fallback,
        )
        self.logger.info(report.summary.to_message())
        return report

    def run_polylines(
        self,
        points: Iterable[Point3],
        drain_points: Optional[Sequence[Point3]] = None,
    ) -> PolylineReport:
        """Drainage polylines from every sampled point."""
        run = self.solve(points, drain_points)
        self._check_cancel("polyline mapping")
        report = self.mapper.collect_polylines(run.results)
        self.logger.info(report.summary.to_message())
        return report

    def solve_creases(
        self,
        segments: Iterable[tuple[Point3, Point3]],
        drain_points: Optional[Sequence[Point3]] = None,
    ) -> PolylineReport:
        """Drainage polylines starting from crease corners.

        Corners are crease endpoints with a single neighbouring endpoint.
        The creases themselves are the graph, so every path runs along them;
        only corners are solved.
        """
        self._check_cancel("sampling")
        sample = self.sampler.sample_creases(segments)
        corners = TopologyClassifier.corner_nodes(sample.edges)
        self.logger.info(f"Found {len(corners)} crease corner(s) among {len(sample)} endpoint(s)")

        run = self._solve_points(sample.points, drain_points, targets=corners, edges=sample.edges)
        self._check_cancel("polyline mapping")
        report = self.mapper.collect_polylines(run.results)
        self.logger.info(report.summary.to_message())
        return report
