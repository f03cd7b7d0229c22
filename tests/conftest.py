"""Shared pytest fixtures for roofslope_planner tests.

Provides reusable roof faces, point sets and hand-built graphs.
All fixtures use explicit values with documented rationale.

COORDINATE SYSTEM:
    Model units are feet. Roofs lie in the z=0 plane unless a test needs
    elevation, so plan distances equal graph edge lengths and expected
    path lengths can be written down by hand.
"""

from typing import Iterable, Sequence

import pytest

from roofslope_planner.core.face_membership import FaceMembership, PolygonFace
from roofslope_planner.generators.adjacency_builder import AdaptiveThreshold, AdjacencyGraphBuilder
from roofslope_planner.model.graph_node import GraphNode
from roofslope_planner.model.point3 import Point3
from roofslope_planner.model.surface_graph import SurfaceGraph


# =============================================================================
# HELPERS
# =============================================================================


def ring_edges(ring: Sequence[Point3]) -> list[tuple[Point3, Point3]]:
    """Closed boundary edges for a vertex ring."""
    return [(ring[i], ring[(i + 1) % len(ring)]) for i in range(len(ring))]


def rectangle(x0: float, y0: float, x1: float, y1: float) -> list[Point3]:
    """Counter-clockwise rectangle ring at z=0."""
    return [Point3(x0, y0), Point3(x1, y0), Point3(x1, y1), Point3(x0, y1)]


def grid_points(size: float, step: float, void: tuple[float, float, float, float] | None = None) -> list[Point3]:
    """Regular grid over [0, size]², skipping points strictly inside void (x0, y0, x1, y1)."""
    count = int(round(size / step)) + 1
    points = []
    for j in range(count):
        for i in range(count):
            x, y = i * step, j * step
            if void is not None:
                x0, y0, x1, y1 = void
                if x0 < x < x1 and y0 < y < y1:
                    continue
            points.append(Point3(x, y))
    return points


def make_graph(
    coords: Sequence[tuple[float, float, float]],
    edges: Iterable[tuple[int, int]],
    climb_penalty_factor: float = 0.0,
) -> SurfaceGraph:
    """Hand-built graph: nodes from coords (ids in order), explicit edges."""
    nodes = [GraphNode(id=i, point=Point3(*c)) for i, c in enumerate(coords)]
    graph = SurfaceGraph(nodes=nodes)
    for a, b in edges:
        graph.add_edge(nodes[a], nodes[b], climb_penalty_factor=climb_penalty_factor)
    return graph


# =============================================================================
# FACES
# =============================================================================


@pytest.fixture
def square_ring() -> list[Point3]:
    """10 x 10 ft square roof."""
    return rectangle(0.0, 0.0, 10.0, 10.0)


@pytest.fixture
def square_face(square_ring: list[Point3]) -> PolygonFace:
    return PolygonFace(outer=square_ring)


@pytest.fixture
def void_ring() -> list[Point3]:
    """5 x 5 ft opening centered in the 20 x 20 ft roof."""
    return rectangle(7.5, 7.5, 12.5, 12.5)


@pytest.fixture
def void_face(void_ring: list[Point3]) -> PolygonFace:
    """20 x 20 ft roof with a central 5 x 5 ft void."""
    return PolygonFace(outer=rectangle(0.0, 0.0, 20.0, 20.0), inners=[void_ring])


# =============================================================================
# GRAPHS
# =============================================================================


@pytest.fixture
def square_graph(square_face: PolygonFace) -> SurfaceGraph:
    """Square corners with the adaptive threshold.

    Every nearest-neighbour distance is 10, so the threshold is 25 and all
    six pairs (including both diagonals) are connected.
    """
    builder = AdjacencyGraphBuilder(membership=FaceMembership(face=square_face), threshold_policy=AdaptiveThreshold())
    return builder.build(rectangle(0.0, 0.0, 10.0, 10.0))


@pytest.fixture
def void_points() -> list[Point3]:
    """2.5 ft grid over the void roof; only (10, 10) lies strictly inside the void."""
    return grid_points(size=20.0, step=2.5, void=(7.5, 7.5, 12.5, 12.5))


@pytest.fixture
def void_graph(void_face: PolygonFace, void_points: list[Point3]) -> SurfaceGraph:
    """Adaptive threshold 6.25 ft (2.5 × grid spacing)."""
    builder = AdjacencyGraphBuilder(membership=FaceMembership(face=void_face), threshold_policy=AdaptiveThreshold())
    return builder.build(void_points)


@pytest.fixture
def hump_graph() -> SurfaceGraph:
    """Two routes from node 1 to drain 0 with a 100x climb penalty.

    Nodes: 0 drain (0, 0, 0), 1 target (10, 0, 0), 2 hump (5, 0, 1), 3 detour (5, 3, 0).
    Via the hump is shorter (2·√26 ≈ 10.198) but climbs 1 ft;
    the detour is longer (2·√34 ≈ 11.662) and flat.
    """
    return make_graph(
        coords=[(0, 0, 0), (10, 0, 0), (5, 0, 1), (5, 3, 0)],
        edges=[(1, 2), (2, 0), (1, 3), (3, 0)],
        climb_penalty_factor=100.0,
    )


@pytest.fixture
def line_graph() -> SurfaceGraph:
    """Three collinear nodes 0 - 1 - 2, one foot apart."""
    return make_graph(coords=[(0, 0, 0), (1, 0, 0), (2, 0, 0)], edges=[(0, 1), (1, 2)])
