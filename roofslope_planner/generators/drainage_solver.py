"""Nearest-drain shortest paths over the surface graph.

Dijkstra search from a virtual source joined to every drain at zero cost.
Edges are relaxed in the reverse (towards-drain) direction, so predecessor
pointers lead from any node down to the drain it flows into.

Tie-break: the heap is keyed by (cost, sink_rank, node_id) and a node's
label only improves when (cost, sink_rank) strictly decreases. Equal-cost
paths therefore resolve to the drain listed first in the drain order.

Strategies:
- MULTI_SOURCE: one search, run until the frontier is exhausted
- PER_TARGET: the same search restarted for each target and stopped once
  that target settles (slower, identical results)
"""

import heapq
import logging
from enum import Enum
from typing import Callable, Iterable, Optional, Sequence

import numpy as np

from roofslope_planner.errors import ConfigurationError, SolveCancelledError
from roofslope_planner.model.graph_node import GraphNode
from roofslope_planner.model.issue import NoSinks, UnreachableTarget
from roofslope_planner.model.path_result import PathResult
from roofslope_planner.model.surface_graph import SurfaceGraph

logger = logging.getLogger(__name__)

CancelCheck = Callable[[], bool]


class SolverStrategy(Enum):
    """Search strategy for DrainageSolver."""

    MULTI_SOURCE = "multi_source"
    PER_TARGET = "per_target"


class _SearchState:
    """Labels of one virtual-source Dijkstra run, indexed by node id."""

    def __init__(self, size: int) -> None:
        self.cost = [float("inf")] * size
        # Unlabelled nodes rank after every real drain
        self.rank = [size + 1] * size
        self.toward: list[Optional[int]] = [None] * size
        self.settled = [False] * size

    def label(self, node_id: int) -> tuple[float, int]:
        return self.cost[node_id], self.rank[node_id]


class DrainageSolver:
    """Finds, for every target node, the shortest path to its nearest drain.

    Example:
        solver = DrainageSolver()
        results = solver.solve(graph, sinks=[graph.node(0)])
        for node, result in results.items():
            print(node.id, result.total_length, [n.id for n in result.path])
    """

    def __init__(self, strategy: SolverStrategy = SolverStrategy.MULTI_SOURCE) -> None:
        self.strategy = strategy

    def solve(
        self,
        graph: SurfaceGraph,
        sinks: Iterable[GraphNode],
        targets: Optional[Iterable[GraphNode]] = None,
        should_cancel: Optional[CancelCheck] = None,
    ) -> dict[GraphNode, PathResult]:
        """Solve drainage paths for targets (all nodes by default).

        Args:
            graph: Built surface graph
            sinks: Drain nodes; order is the tie-break order, a set is sorted by id
            targets: Nodes to solve; defaults to every node in the graph
            should_cancel: Polled once per settled node

        Returns:
            Mapping target -> PathResult in target order.

        Raises:
            ConfigurationError: A drain or target is not part of graph.
            SolveCancelledError: should_cancel returned True.
        """
        sink_order = self._normalize_sinks(graph, sinks)
        target_order = self._normalize_targets(graph, targets)

        if not sink_order:
            logger.warning(f"No drains supplied: {len(target_order)} target(s) cannot be solved")
            return {node: PathResult.not_found(node, NoSinks(node_id=node.id)) for node in target_order}

        sink_ids = {sink.id for sink in sink_order}
        results: dict[GraphNode, PathResult] = {}

        if self.strategy is SolverStrategy.MULTI_SOURCE:
            state = self._search(graph, sink_order, stop_at=None, should_cancel=should_cancel)
            for node in target_order:
                results[node] = self._result_for(graph, state, node, sink_ids)
        else:
            for node in target_order:
                if node.id in sink_ids:
                    results[node] = PathResult.for_sink(node)
                    continue
                state = self._search(graph, sink_order, stop_at=node.id, should_cancel=should_cancel)
                results[node] = self._result_for(graph, state, node, sink_ids)

        self._attach_unreachable_reasons(graph, results, len(sink_order))

        found = sum(1 for r in results.values() if r.found)
        logger.info(
            f"Solved {len(results)} target(s) with {len(sink_order)} drain(s) "
            f"[{self.strategy.value}]: {found} found, {len(results) - found} unreachable"
        )
        return results

    # =========================================================================
    # Input normalization
    # =========================================================================

    @staticmethod
    def _normalize_sinks(graph: SurfaceGraph, sinks: Iterable[GraphNode]) -> list[GraphNode]:
        if isinstance(sinks, (set, frozenset)):
            sinks = sorted(sinks)
        ordered: dict[int, GraphNode] = {}
        for sink in sinks:
            if sink not in graph:
                raise ConfigurationError(f"Drain {sink} is not a node of the graph")
            if sink.id in ordered:
                logger.debug(f"Duplicate drain {sink.id} dropped")
                continue
            ordered[sink.id] = sink
        return list(ordered.values())

    @staticmethod
    def _normalize_targets(graph: SurfaceGraph, targets: Optional[Iterable[GraphNode]]) -> list[GraphNode]:
        if targets is None:
            return list(graph.nodes)
        ordered: dict[int, GraphNode] = {}
        for node in targets:
            if node not in graph:
                raise ConfigurationError(f"Target {node} is not a node of the graph")
            ordered.setdefault(node.id, node)
        return list(ordered.values())

    # =========================================================================
    # Search
    # =========================================================================

    @staticmethod
    def _search(
        graph: SurfaceGraph,
        sinks: Sequence[GraphNode],
        stop_at: Optional[int],
        should_cancel: Optional[CancelCheck],
    ) -> _SearchState:
        state = _SearchState(len(graph))
        heap: list[tuple[float, int, int]] = []
        for rank, sink in enumerate(sinks):
            state.cost[sink.id] = 0.0
            state.rank[sink.id] = rank
            heapq.heappush(heap, (0.0, rank, sink.id))

        while heap:
            cost, rank, node_id = heapq.heappop(heap)
            if state.settled[node_id] or (cost, rank) != state.label(node_id):
                continue
            state.settled[node_id] = True

            if should_cancel is not None and should_cancel():
                raise SolveCancelledError("Drainage solve cancelled")
            if node_id == stop_at:
                break

            node = graph.node(node_id)
            for neighbor, edge in graph.incident_edges(node):
                if state.settled[neighbor.id]:
                    continue
                # Water flows neighbor -> node
                candidate = (cost + edge.cost(neighbor, node), rank)
                if candidate < state.label(neighbor.id):
                    state.cost[neighbor.id], state.rank[neighbor.id] = candidate
                    state.toward[neighbor.id] = node_id
                    heapq.heappush(heap, (candidate[0], rank, neighbor.id))

        return state

    @staticmethod
    def _result_for(
        graph: SurfaceGraph,
        state: _SearchState,
        node: GraphNode,
        sink_ids: set[int],
    ) -> PathResult:
        if node.id in sink_ids:
            return PathResult.for_sink(node)
        if not state.settled[node.id]:
            # Reason is attached once all targets are known
            return PathResult(node=node, found=False)

        path = [node]
        length = 0.0
        current = node.id
        while state.toward[current] is not None:
            nxt = graph.node(state.toward[current])
            length += graph.edge(path[-1], nxt).length
            path.append(nxt)
            current = nxt.id

        return PathResult(
            node=node,
            found=True,
            nearest_sink=path[-1],
            path=tuple(path),
            total_length=length,
            cost=state.cost[node.id],
        )

    @staticmethod
    def _attach_unreachable_reasons(
        graph: SurfaceGraph,
        results: dict[GraphNode, PathResult],
        sink_count: int,
    ) -> None:
        unreached = [node for node, result in results.items() if not result.found]
        if not unreached:
            return

        labels = graph.connected_components()
        sizes = np.bincount(labels)
        for node in unreached:
            issue = UnreachableTarget(
                node_id=node.id,
                component_size=int(sizes[labels[node.id]]),
                sink_count=sink_count,
            )
            logger.warning(issue.message)
            results[node] = PathResult.not_found(node, issue)
