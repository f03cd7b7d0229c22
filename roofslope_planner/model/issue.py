"""NodeIssue - Per-node outcomes that are reported rather than raised.

Issues explain why a node received no (or a trivial) drainage result:
- Node has no path to any drain
- No drains were supplied at all
- Node is itself a drain
- Coordinate sat on a quantization half-step during sampling

Whole-input failures are exceptions instead (see errors.py).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class NodeIssue(ABC):
    """Abstract base class for per-node issues.

    Subclasses store specific parameters and compute message as property.
    Use isinstance() to check the issue type.
    """

    @property
    @abstractmethod
    def message(self) -> str:
        """Human-readable reason."""

    @property
    def is_failure(self) -> bool:
        """Whether the node counts as failed (as opposed to skipped) in summaries."""
        return False

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class UnreachableTarget(NodeIssue):
    """Node has no path to any drain in the built graph.

    Attributes:
        node_id: Graph node id
        component_size: Number of nodes in the node's connected component
        sink_count: Number of drains supplied
    """

    node_id: int
    component_size: int
    sink_count: int
    issue_type: str = "UnreachableTarget"

    @property
    def is_failure(self) -> bool:
        return True

    @property
    def message(self) -> str:
        return (
            f"Node {self.node_id} cannot reach any of {self.sink_count} drain(s): "
            f"its connected region holds {self.component_size} node(s) and no drain"
        )


@dataclass(frozen=True)
class NoSinks(NodeIssue):
    """No drains were supplied, so no node can be solved."""

    node_id: int
    issue_type: str = "NoSinks"

    @property
    def is_failure(self) -> bool:
        return True

    @property
    def message(self) -> str:
        return f"Node {self.node_id} skipped: no drain points supplied"


@dataclass(frozen=True)
class SinkTarget(NodeIssue):
    """Node is itself a drain; it gets a trivial zero-length path."""

    node_id: int
    issue_type: str = "SinkTarget"

    @property
    def message(self) -> str:
        return f"Node {self.node_id} is a drain (zero-length path)"


@dataclass(frozen=True)
class ToleranceAmbiguity(NodeIssue):
    """A raw coordinate fell exactly on a quantization half-step.

    Resolved by the deterministic sampling tie-break; never a failure.

    Attributes:
        coordinates: Raw (x, y, z) of the ambiguous point
        digits: Quantization precision in decimals
    """

    coordinates: tuple[float, float, float]
    digits: int
    issue_type: str = "ToleranceAmbiguity"

    @property
    def message(self) -> str:
        x, y, z = self.coordinates
        return (
            f"Point ({x}, {y}, {z}) lies on a {self.digits}-decimal quantization boundary; "
            f"resolved by the deterministic tie-break"
        )
