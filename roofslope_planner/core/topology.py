"""Closed-loop topology classification for roof boundaries.

Traces a set of boundary edges into closed loops and classifies them:
- Every edge is flattened to z=0 first
- Every node must have exactly two incident edges (closed, manifold boundary)
- The loop enclosing the largest area is the outer boundary
- All remaining loops are inner voids (openings, drains, shafts)

Also derives crease "corner" nodes: nodes with exactly one incident edge
in the unflattened crease adjacency, used as drainage-path start points.
"""

import logging
from collections import defaultdict
from typing import Iterable

from roofslope_planner.constants import TopologyConfig
from roofslope_planner.core.geometry import GeometryCalculator
from roofslope_planner.errors import GeometryError
from roofslope_planner.model.loop import Edge2D, Loop, LoopKind, TopologyResult
from roofslope_planner.model.point3 import Point3

logger = logging.getLogger(__name__)


class TopologyClassifier:
    """Classifies boundary edges into one outer loop and inner voids.

    Example:
        classifier = TopologyClassifier()
        result = classifier.classify(edges)
        print(result.outer.perimeter, [loop.area for loop in result.inner])
    """

    def __init__(self, max_trace_steps: int = TopologyConfig.MAX_TRACE_STEPS) -> None:
        self.max_trace_steps = max_trace_steps

    def classify(self, edges: Iterable[Edge2D | tuple[Point3, Point3]]) -> TopologyResult:
        """Trace and classify boundary loops.

        Args:
            edges: Boundary edges as Edge2D or (start, end) Point3 pairs, any Z

        Returns:
            TopologyResult with the outer loop and inner loops.

        Raises:
            GeometryError: Open or non-manifold boundary, degenerate loop,
                empty input or trace cap exceeded.
        """
        flat_edges = self._flatten(edges)
        if not flat_edges:
            raise GeometryError("No boundary edges provided")

        incident = self._build_incidence(flat_edges)
        self._validate_degrees(incident)

        loops = self._trace_loops(flat_edges, incident)
        if not loops:
            raise GeometryError("No closed loops found")

        # Largest area wins; ties go to the longer perimeter, then trace order
        outer_index = max(
            range(len(loops)),
            key=lambda i: (abs(loops[i][1]), sum(e.length for e in loops[i][0]), -i),
        )

        outer = None
        inner: list[Loop] = []
        for index, (loop_edges, signed_area) in enumerate(loops):
            kind = LoopKind.OUTER if index == outer_index else LoopKind.INNER
            loop = Loop(edges=loop_edges, kind=kind, signed_area=signed_area)
            if kind is LoopKind.OUTER:
                outer = loop
            else:
                inner.append(loop)

        assert outer is not None
        logger.info(
            f"Classified {len(loops)} loop(s): outer area {outer.area:.3f}, "
            f"{len(inner)} inner void(s)"
        )
        return TopologyResult(outer=outer, inner=tuple(inner))

    # =========================================================================
    # Steps
    # =========================================================================

    @staticmethod
    def _flatten(edges: Iterable[Edge2D | tuple[Point3, Point3]]) -> list[Edge2D]:
        """Flatten, drop zero-length and repeated edges, sort for determinism."""
        unique: dict[tuple, Edge2D] = {}
        for edge in edges:
            if isinstance(edge, Edge2D):
                flat = Edge2D.flatten(edge.start, edge.end)
            else:
                start, end = edge
                flat = Edge2D.flatten(start, end)
            if flat.start == flat.end:
                logger.debug(f"Dropping zero-length boundary edge at {flat.start}")
                continue
            unique.setdefault(flat.sort_key, flat)
        return [unique[key] for key in sorted(unique)]

    @staticmethod
    def _build_incidence(edges: list[Edge2D]) -> dict[Point3, list[int]]:
        incident: dict[Point3, list[int]] = defaultdict(list)
        for index, edge in enumerate(edges):
            incident[edge.start].append(index)
            incident[edge.end].append(index)
        return incident

    @staticmethod
    def _validate_degrees(incident: dict[Point3, list[int]]) -> None:
        for node, edge_ids in incident.items():
            if len(edge_ids) < 2:
                logger.error(f"Open edge detected at {node}")
                raise GeometryError(f"Open edges found at {node}: boundary is not closed")
            if len(edge_ids) > 2:
                logger.error(f"Non-manifold node at {node} with {len(edge_ids)} edges")
                raise GeometryError(f"Non-manifold boundary at {node}: {len(edge_ids)} incident edges")

    def _trace_loops(
        self,
        edges: list[Edge2D],
        incident: dict[Point3, list[int]],
    ) -> list[tuple[tuple[Edge2D, ...], float]]:
        unused = set(range(len(edges)))
        loops: list[tuple[tuple[Edge2D, ...], float]] = []

        for seed_index in range(len(edges)):
            if seed_index not in unused:
                continue
            unused.discard(seed_index)

            seed = edges[seed_index]
            start = seed.start
            current = seed.end
            traced = [seed]

            steps = 0
            while current != start:
                steps += 1
                if steps > self.max_trace_steps:
                    raise GeometryError(
                        f"Loop tracing exceeded {self.max_trace_steps} steps starting at {start}"
                    )
                next_index = next((i for i in incident[current] if i in unused), None)
                if next_index is None:
                    raise GeometryError(f"Loop tracing stopped early at {current}: open traversal")
                unused.discard(next_index)
                oriented = edges[next_index].oriented_from(current)
                traced.append(oriented)
                current = oriented.end

            if len(traced) < TopologyConfig.MIN_LOOP_EDGES:
                raise GeometryError(f"Degenerate loop with {len(traced)} edge(s) at {start}")

            ring = [edge.start for edge in traced]
            loops.append((tuple(traced), GeometryCalculator.signed_area(ring)))

        return loops

    # =========================================================================
    # Crease corners
    # =========================================================================

    @staticmethod
    def corner_nodes(edges: Iterable[tuple[Point3, Point3]]) -> tuple[Point3, ...]:
        """Nodes with exactly one incident edge in the unflattened adjacency.

        Args:
            edges: Crease segments as (start, end) pairs, Z preserved

        Returns:
            Corner points in first-seen order.
        """
        neighbors: dict[Point3, set[Point3]] = {}
        order: list[Point3] = []
        for a, b in edges:
            if a == b:
                continue
            for p, q in ((a, b), (b, a)):
                if p not in neighbors:
                    neighbors[p] = set()
                    order.append(p)
                neighbors[p].add(q)
        return tuple(p for p in order if len(neighbors[p]) == 1)
