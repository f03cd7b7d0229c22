"""Integration tests for the full drainage pipeline.

These tests verify:
1. All module imports work without errors
2. Configuration constants are valid
3. DrainageEngine wires sampling, graph building, solving and mapping
4. Cancellation and logger injection behave as documented

Run these before packaging to catch wiring issues early.
"""

import logging
from math import sqrt

import pytest

from conftest import rectangle, ring_edges
from roofslope_planner.constants import (
    GraphConfig,
    MembershipConfig,
    ThresholdConfig,
    UnitConfig,
)
from roofslope_planner.core.face_membership import PolygonFace
from roofslope_planner.engine import DrainageEngine, EngineConfig
from roofslope_planner.errors import ConfigurationError, GeometryError, SolveCancelledError
from roofslope_planner.generators.adjacency_builder import FixedThreshold
from roofslope_planner.generators.drainage_solver import SolverStrategy
from roofslope_planner.model.point3 import Point3


# =============================================================================
# IMPORTS AND CONSTANTS
# =============================================================================


class TestImports:
    """Package-level imports resolve."""

    def test_subpackages_import(self) -> None:
        from roofslope_planner.core import FaceMembership, TopologyClassifier
        from roofslope_planner.generators import DrainageSolver, ElevationMapper
        from roofslope_planner.model import Point3 as ModelPoint3
        from roofslope_planner.model import SurfaceGraph

        assert all(cls is not None for cls in (FaceMembership, TopologyClassifier, DrainageSolver, ElevationMapper, SurfaceGraph))
        assert ModelPoint3 is Point3


class TestConstants:
    """Configuration defaults are sane."""

    def test_threshold_defaults(self) -> None:
        assert ThresholdConfig.ADAPTIVE_MIN_FACTOR <= ThresholdConfig.ADAPTIVE_MULTIPLIER <= ThresholdConfig.ADAPTIVE_MAX_FACTOR
        assert ThresholdConfig.LONG_RANGE_FIXED * UnitConfig.FEET_TO_M == pytest.approx(50.0, abs=1e-3)

    def test_membership_offset_is_one_millimetre(self) -> None:
        assert MembershipConfig.NORMAL_OFFSET * UnitConfig.FEET_TO_MM == pytest.approx(1.0, abs=1e-4)

    def test_climb_penalty_non_negative(self) -> None:
        assert GraphConfig.CLIMB_PENALTY_FACTOR >= 0


# =============================================================================
# ENGINE
# =============================================================================


class TestEngineConfig:
    """EngineConfig - validated runtime parameters."""

    @pytest.mark.parametrize(
        "kwargs",
        [
            pytest.param({"slope_pct": 0.0}, id="zero-slope"),
            pytest.param({"climb_penalty_factor": -5.0}, id="negative-climb"),
            pytest.param({"min_separation": -1.0}, id="negative-separation"),
            pytest.param({"strategy": "dijkstra"}, id="unknown-strategy"),
        ],
    )
    def test_invalid(self, kwargs: dict) -> None:
        with pytest.raises(ConfigurationError):
            EngineConfig(**kwargs)


class TestDrainageEngine:
    """DrainageEngine - end-to-end runs."""

    def test_square_elevations(self, square_ring: list[Point3]) -> None:
        engine = DrainageEngine.from_boundary(ring_edges(square_ring))
        report = engine.run_elevation(rectangle(0, 0, 10, 10), drain_points=[Point3(0, 0)])
        offsets = {a.node.point: a.offset for a in report.assignments}

        assert offsets[Point3(0, 0)] == 0.0
        assert offsets[Point3(10, 0)] == pytest.approx(0.2)
        assert offsets[Point3(0, 10)] == pytest.approx(0.2)
        assert offsets[Point3(10, 10)] == pytest.approx(0.02 * sqrt(200.0))
        assert report.summary.failed == 0

    def test_void_roof_with_two_drains(self, void_ring: list[Point3], void_points: list[Point3]) -> None:
        edges = ring_edges(rectangle(0, 0, 20, 20)) + ring_edges(void_ring)
        config = EngineConfig(slope_pct=1.0, strategy=SolverStrategy.PER_TARGET)
        engine = DrainageEngine.from_boundary(edges, config=config)

        run = engine.solve(void_points, drain_points=[Point3(0, 0), Point3(20, 20)])
        assert len(run.sinks) == 2
        assert all(result.found for result in run.results.values())
        report = engine.run_elevation(void_points, drain_points=[Point3(0, 0), Point3(20, 20)])
        assert report.summary.processed == len(void_points) - 2
        assert report.max_offset == pytest.approx(0.01 * report.longest_path)

    def test_inferred_drains_use_lowest_nodes(self, square_face: PolygonFace) -> None:
        points = [Point3(0, 0, 0.3), Point3(10, 0, 0.0), Point3(10, 10, 0.2), Point3(0, 10, 0.4)]
        engine = DrainageEngine(square_face, config=EngineConfig(climb_penalty_factor=0.0))
        run = engine.solve(points)
        assert [sink.point for sink in run.sinks] == [Point3(10, 0, 0.0)]

    def test_disconnected_with_zero_fallback(self) -> None:
        face_edges = ring_edges(rectangle(0, 0, 30, 10))
        points = rectangle(0, 0, 1, 1) + rectangle(28, 0, 29, 1)
        config = EngineConfig(threshold_policy=FixedThreshold(3.0), zero_fallback=True)
        engine = DrainageEngine.from_boundary(face_edges, config=config)

        report = engine.run_elevation(points, drain_points=[Point3(0, 0)])
        assert report.summary.failed == 4
        assert len(report.assignments) == 8
        assert report.unassigned == ()

    def test_polylines(self, square_ring: list[Point3]) -> None:
        engine = DrainageEngine.from_boundary(ring_edges(square_ring))
        report = engine.run_polylines(rectangle(0, 0, 10, 10), drain_points=[Point3(0, 0)])
        assert report.paths_found == 3
        assert len(report.segments) == 3
        assert all(segment.low == Point3(0, 0) for segment in report.segments)

    def test_solve_creases(self, square_ring: list[Point3]) -> None:
        """Three creases meeting at a valley point; the low corner is the drain."""
        center = Point3(5, 5, 0.5)
        creases = [
            (Point3(0, 0, 1), center),
            (Point3(10, 0, 1), center),
            (center, Point3(5, 10, 0)),
        ]
        engine = DrainageEngine.from_boundary(ring_edges(square_ring), config=EngineConfig(climb_penalty_factor=0.0))
        report = engine.solve_creases(creases)

        assert report.summary.skipped == 1  # the drain corner itself
        assert report.paths_found == 2
        assert report.paths_failed == 0
        assert report.duplicates_removed == 1  # both paths share the valley crease

    def test_crease_paths_follow_creases(self, square_ring: list[Point3]) -> None:
        """Corners drain through the valley point, never straight to the drain."""
        center = Point3(5, 5, 0.5)
        creases = [
            (Point3(0, 0, 1), center),
            (Point3(10, 0, 1), center),
            (center, Point3(5, 10, 0)),
        ]
        engine = DrainageEngine.from_boundary(ring_edges(square_ring), config=EngineConfig(climb_penalty_factor=0.0))
        report = engine.solve_creases(creases)

        crease_keys = {frozenset((start, end)) for start, end in creases}
        assert len(report.segments) == 3
        for segment in report.segments:
            assert frozenset((segment.high, segment.low)) in crease_keys
        assert report.average_path_length == pytest.approx(sqrt(50.25) + sqrt(25.25))

    def test_solve_mesh(self, square_ring: list[Point3]) -> None:
        """Two triangles covering the square share their diagonal corners."""
        a, b, c, d = square_ring
        engine = DrainageEngine.from_boundary(ring_edges(square_ring))
        run = engine.solve_mesh([(a, b, c), (a, c, d)], drain_points=[a])
        assert len(run.graph) == 4
        assert run.results[run.graph.find_node(c)].total_length == pytest.approx(sqrt(200.0))

    def test_solve_mesh_along_triangle_edges(self, square_ring: list[Point3]) -> None:
        """Diagonal b-d: with mesh edges the far corner must go round the square."""
        a, b, c, d = square_ring
        triangles = [(a, b, d), (b, c, d)]
        engine = DrainageEngine.from_boundary(ring_edges(square_ring))

        by_threshold = engine.solve_mesh(triangles, drain_points=[a])
        assert by_threshold.results[by_threshold.graph.find_node(c)].total_length == pytest.approx(sqrt(200.0))

        by_edges = engine.solve_mesh(triangles, drain_points=[a], use_mesh_edges=True)
        assert by_edges.graph.edge_count == 5
        far = by_edges.results[by_edges.graph.find_node(c)]
        assert far.total_length == pytest.approx(20.0)
        for start, end in zip(far.path, far.path[1:]):
            assert by_edges.graph.edge(start, end) is not None

    def test_too_few_points(self, square_face: PolygonFace) -> None:
        with pytest.raises(GeometryError):
            DrainageEngine(square_face).run_elevation([Point3(1, 1)])

    def test_cancel_before_start(self, square_face: PolygonFace) -> None:
        engine = DrainageEngine(square_face, should_cancel=lambda: True)
        with pytest.raises(SolveCancelledError):
            engine.run_elevation(rectangle(0, 0, 10, 10))

    def test_injected_logger(self, square_face: PolygonFace, caplog: pytest.LogCaptureFixture) -> None:
        observer = logging.getLogger("tests.drainage_observer")
        engine = DrainageEngine(square_face, logger=observer)
        with caplog.at_level(logging.INFO, logger="tests.drainage_observer"):
            engine.run_elevation(rectangle(0, 0, 10, 10), drain_points=[Point3(0, 0)])
        messages = [r.getMessage() for r in caplog.records if r.name == "tests.drainage_observer"]
        assert any("Graph ready" in m for m in messages)
        assert any("Processed: 3" in m for m in messages)
