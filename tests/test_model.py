"""Tests for roofslope_planner model module.

Tests: Point3, GraphNode, Edge, SurfaceGraph, Loop, PathResult, NodeIssue,
       DrainSegment, SolveSummary, ElevationReport
Focus: Quantized identity, graph symmetry, result invariants

Note: Fixtures are defined in conftest.py.
"""

from math import sqrt

import numpy as np
import pytest

from conftest import make_graph
from roofslope_planner.model.assignment import DrainSegment, ElevationReport, SolveSummary
from roofslope_planner.model.graph_node import GraphNode
from roofslope_planner.model.issue import NoSinks, SinkTarget, ToleranceAmbiguity, UnreachableTarget
from roofslope_planner.model.loop import Edge2D, Loop, LoopKind
from roofslope_planner.model.path_result import PathResult
from roofslope_planner.model.point3 import Point3, is_half_step, quantize
from roofslope_planner.model.surface_graph import Edge, SurfaceGraph


# =============================================================================
# TESTS FOR POINT3
# =============================================================================


class TestPoint3:
    """Point3 - quantized geometry atom."""

    def test_near_coincident_points_are_equal(self) -> None:
        """Points that round to the same 6-decimal key collapse."""
        a = Point3(1.0, 2.0, 3.0)
        b = Point3(1.0000001, 2.0, 3.0)
        assert a == b
        assert hash(a) == hash(b)
        assert len({a, b}) == 1

    def test_points_beyond_tolerance_differ(self) -> None:
        assert Point3(1.0, 2.0) != Point3(1.00001, 2.0)

    def test_nan_rejected(self) -> None:
        with pytest.raises(ValueError, match="NaN"):
            Point3(float("nan"), 0.0, 0.0)

    def test_flattened_drops_z(self) -> None:
        assert Point3(1.0, 2.0, 5.0).flattened() == Point3(1.0, 2.0, 0.0)

    def test_distances(self) -> None:
        a = Point3(0.0, 0.0, 0.0)
        b = Point3(3.0, 4.0, 12.0)
        assert a.distance_to(b) == pytest.approx(13.0)
        assert a.distance_2d_to(b) == pytest.approx(5.0)

    def test_lerp_endpoints_and_midpoint(self) -> None:
        a = Point3(0.0, 0.0, 0.0)
        b = Point3(10.0, 20.0, 2.0)
        assert a.lerp(b, 0.0) == a
        assert a.lerp(b, 1.0) == b
        assert a.lerp(b, 0.5) == Point3(5.0, 10.0, 1.0)

    def test_xy_key_ignores_z(self) -> None:
        assert Point3(1.0, 1.0, 0.0).xy_key == Point3(1.0, 1.0, 9.0).xy_key

    def test_quantize_and_half_step(self) -> None:
        assert quantize(1.23456789) == 1.234568
        assert is_half_step(0.0000005)
        assert not is_half_step(0.25)


# =============================================================================
# TESTS FOR GRAPH
# =============================================================================


class TestEdge:
    """Edge - geometric length plus directional climb penalty."""

    def test_cost_descending_is_length(self) -> None:
        low = GraphNode(id=0, point=Point3(0, 0, 0))
        high = GraphNode(id=1, point=Point3(3, 4, 0))
        edge = Edge(a=low, b=high, length=5.0, climb_penalty_factor=100.0)
        assert edge.cost(high, low) == pytest.approx(5.0)

    def test_cost_climbing_adds_penalty(self) -> None:
        low = GraphNode(id=0, point=Point3(0, 0, 0))
        high = GraphNode(id=1, point=Point3(0, 0, 2))
        edge = Edge(a=low, b=high, length=2.0, climb_penalty_factor=10.0)
        assert edge.cost(low, high) == pytest.approx(2.0 + 2.0 * 10.0)
        assert edge.cost(high, low) == pytest.approx(2.0)

    def test_other_endpoint(self) -> None:
        a = GraphNode(id=0, point=Point3(0, 0))
        b = GraphNode(id=1, point=Point3(1, 0))
        c = GraphNode(id=2, point=Point3(2, 0))
        edge = Edge(a=a, b=b, length=1.0)
        assert edge.other(a) == b
        assert edge.other(b) == a
        with pytest.raises(ValueError):
            edge.other(c)


class TestSurfaceGraph:
    """SurfaceGraph - symmetric adjacency without self-loops or parallel edges."""

    def test_add_edge_is_symmetric(self) -> None:
        graph = make_graph(coords=[(0, 0, 0), (3, 4, 0)], edges=[(0, 1)])
        a, b = graph.nodes
        assert graph.neighbors(a) == [b]
        assert graph.neighbors(b) == [a]
        assert graph.edge(a, b) is graph.edge(b, a)
        assert graph.edge(a, b).length == pytest.approx(5.0)

    def test_repeat_edge_not_duplicated(self) -> None:
        graph = make_graph(coords=[(0, 0, 0), (1, 0, 0)], edges=[(0, 1), (1, 0)])
        assert graph.edge_count == 1
        assert graph.degree(graph.node(0)) == 1

    def test_self_loop_rejected(self) -> None:
        graph = make_graph(coords=[(0, 0, 0)], edges=[])
        with pytest.raises(ValueError, match="Self-loop"):
            graph.add_edge(graph.node(0), graph.node(0))

    def test_node_ids_must_be_sequential(self) -> None:
        with pytest.raises(ValueError):
            SurfaceGraph(nodes=[GraphNode(id=1, point=Point3(0, 0))])

    def test_edges_listed_once_in_id_order(self) -> None:
        graph = make_graph(coords=[(0, 0, 0), (1, 0, 0), (2, 0, 0)], edges=[(2, 1), (1, 0)])
        assert [(e.a.id, e.b.id) for e in graph.edges()] == [(0, 1), (1, 2)]

    def test_contains_and_lookup(self) -> None:
        graph = make_graph(coords=[(0, 0, 0), (1, 0, 0)], edges=[(0, 1)])
        assert graph.node(1) in graph
        assert GraphNode(id=5, point=Point3(0, 0)) not in graph
        assert GraphNode(id=1, point=Point3(50, 50, 0)) not in graph  # same id, other location
        assert graph.find_node(Point3(1.0000001, 0, 0)) == graph.node(1)
        assert graph.nearest_node(Point3(0.9, 0.2, 0)) == graph.node(1)

    def test_csgraph_and_components(self) -> None:
        graph = make_graph(
            coords=[(0, 0, 0), (1, 0, 0), (10, 0, 0), (11, 0, 0)],
            edges=[(0, 1), (2, 3)],
        )
        matrix = graph.to_csgraph()
        assert matrix.shape == (4, 4)
        assert matrix[0, 1] == pytest.approx(1.0)
        assert matrix[1, 0] == pytest.approx(1.0)
        labels = graph.connected_components()
        assert labels[0] == labels[1]
        assert labels[2] == labels[3]
        assert labels[0] != labels[2]
        assert np.bincount(labels).tolist() == [2, 2]


# =============================================================================
# TESTS FOR LOOPS
# =============================================================================


class TestLoop:
    """Edge2D and Loop - flattened closed boundaries."""

    def test_edge2d_flatten_and_orient(self) -> None:
        edge = Edge2D.flatten(Point3(0, 0, 3), Point3(4, 0, 5))
        assert edge.start.z == 0.0 and edge.end.z == 0.0
        assert edge.length == pytest.approx(4.0)
        assert edge.oriented_from(Point3(4, 0)).start == Point3(4, 0)
        assert edge.sort_key == edge.reversed().sort_key

    def test_loop_derived_properties(self) -> None:
        ring = [Point3(0, 0), Point3(2, 0), Point3(2, 2), Point3(0, 2)]
        edges = tuple(Edge2D(ring[i], ring[(i + 1) % 4]) for i in range(4))
        loop = Loop(edges=edges, kind=LoopKind.OUTER, signed_area=4.0)
        assert loop.is_closed
        assert loop.is_counter_clockwise
        assert loop.perimeter == pytest.approx(8.0)
        assert loop.nodes[0] == loop.nodes[-1]
        assert len(loop.nodes) == 5
        assert loop.polygon_coords() == [(0, 0), (2, 0), (2, 2), (0, 2)]


# =============================================================================
# TESTS FOR RESULTS
# =============================================================================


class TestPathResult:
    """PathResult - per-node drainage outcome."""

    def test_for_sink_is_trivial(self) -> None:
        sink = GraphNode(id=3, point=Point3(0, 0))
        result = PathResult.for_sink(sink)
        assert result.found and result.is_sink
        assert result.path == (sink,)
        assert result.nearest_sink == sink
        assert result.total_length == 0.0
        assert result.segment_count == 0
        assert isinstance(result.note, SinkTarget)

    def test_not_found_carries_reason(self) -> None:
        node = GraphNode(id=1, point=Point3(0, 0))
        result = PathResult.not_found(node, UnreachableTarget(node_id=1, component_size=4, sink_count=2))
        assert not result.found
        assert result.path == ()
        assert "4 node(s)" in result.failure_reason
        assert "2 drain(s)" in result.failure_reason


class TestNodeIssue:
    """NodeIssue family - reported outcomes."""

    def test_failure_flags(self) -> None:
        assert UnreachableTarget(node_id=0, component_size=1, sink_count=1).is_failure
        assert NoSinks(node_id=0).is_failure
        assert not SinkTarget(node_id=0).is_failure
        assert not ToleranceAmbiguity(coordinates=(0.0, 0.0, 0.0), digits=6).is_failure

    def test_str_is_message(self) -> None:
        issue = NoSinks(node_id=7)
        assert str(issue) == issue.message
        assert "Node 7" in issue.message


class TestAssignments:
    """DrainSegment, SolveSummary, ElevationReport."""

    def test_downhill_orders_high_first(self) -> None:
        low, high = Point3(0, 0, 0), Point3(1, 0, 0.5)
        assert DrainSegment.downhill(low, high).high == high
        assert DrainSegment.downhill(high, low).high == high

    def test_downhill_tie_keeps_order(self) -> None:
        a, b = Point3(0, 0, 0), Point3(1, 0, 0)
        segment = DrainSegment.downhill(a, b)
        assert segment.high == a and segment.low == b
        assert segment.length == pytest.approx(1.0)
        assert segment.undirected_key == DrainSegment(high=b, low=a).undirected_key

    def test_summary_counts(self) -> None:
        sink = GraphNode(id=0, point=Point3(0, 0))
        solved = GraphNode(id=1, point=Point3(1, 0))
        lost = GraphNode(id=2, point=Point3(9, 0))
        results = {
            sink: PathResult.for_sink(sink),
            solved: PathResult(node=solved, found=True, nearest_sink=sink, path=(solved, sink), total_length=1.0),
            lost: PathResult.not_found(lost, UnreachableTarget(node_id=2, component_size=1, sink_count=1)),
        }
        summary = SolveSummary.from_results(results)
        assert (summary.processed, summary.skipped, summary.failed) == (1, 1, 1)
        assert summary.total == 3
        assert len(summary.reasons) == 1
        message = summary.to_message()
        assert "Processed: 1" in message
        assert "Failed: 1" in message

    def test_report_unit_conversions(self) -> None:
        report = ElevationReport(
            assignments=(),
            unassigned=(),
            summary=SolveSummary(processed=0, skipped=0, failed=0),
            max_offset=1.0,
            longest_path=sqrt(100.0),
        )
        assert report.max_offset_mm == pytest.approx(304.8)
        assert report.longest_path_m == pytest.approx(3.048)
