"""PathResult - Outcome of the drainage search for one node."""

from dataclasses import dataclass, field
from typing import Optional

from roofslope_planner.model.graph_node import GraphNode
from roofslope_planner.model.issue import NodeIssue, SinkTarget


@dataclass(frozen=True)
class PathResult:
    """Shortest drainage path from a node to its nearest reachable drain.

    Attributes:
        node: The solved node (path[0])
        found: True when a drain was reached
        nearest_sink: Drain at the end of the path (path[-1]), None if not found
        path: Ordered nodes from node down to nearest_sink
        total_length: Geometric length along path
        cost: Accumulated search cost (length plus any climb penalty)
        is_sink: True when node is itself a drain (trivial path)
        failure: Reason when found is False
    """

    node: GraphNode
    found: bool
    nearest_sink: Optional[GraphNode] = None
    path: tuple[GraphNode, ...] = field(default_factory=tuple)
    total_length: float = 0.0
    cost: float = 0.0
    is_sink: bool = False
    failure: Optional[NodeIssue] = None

    @classmethod
    def for_sink(cls, sink: GraphNode) -> "PathResult":
        """Trivial zero-length result for a node that is itself a drain."""
        return cls(node=sink, found=True, nearest_sink=sink, path=(sink,), is_sink=True)

    @classmethod
    def not_found(cls, node: GraphNode, failure: NodeIssue) -> "PathResult":
        return cls(node=node, found=False, failure=failure)

    @property
    def failure_reason(self) -> Optional[str]:
        """Human-readable failure reason, None on success."""
        return self.failure.message if self.failure is not None else None

    @property
    def note(self) -> Optional[NodeIssue]:
        """SinkTarget note for drains, otherwise the failure (if any)."""
        if self.is_sink:
            return SinkTarget(node_id=self.node.id)
        return self.failure

    @property
    def segment_count(self) -> int:
        return max(0, len(self.path) - 1)

    def __repr__(self) -> str:
        if not self.found:
            return f"PathResult(node={self.node.id}, found=False, reason={self.failure_reason!r})"
        sink_id = self.nearest_sink.id if self.nearest_sink is not None else None
        return f"PathResult(node={self.node.id}, sink={sink_id}, length={self.total_length:.3f})"
