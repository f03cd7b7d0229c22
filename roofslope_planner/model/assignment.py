"""Elevation and polyline outputs consumed by the host document mutator.

- ElevationAssignment: scalar offset for one node
- DrainSegment: one high-to-low polyline segment
- SolveSummary: processed / skipped / failed counts with reasons
- ElevationReport / PolylineReport: batch outputs with statistics

The engine never applies these itself.
"""

from dataclasses import dataclass, field
from typing import Optional

from roofslope_planner.constants import UnitConfig
from roofslope_planner.model.graph_node import GraphNode
from roofslope_planner.model.path_result import PathResult
from roofslope_planner.model.point3 import Point3


@dataclass(frozen=True)
class ElevationAssignment:
    """Elevation offset for one node.

    Attributes:
        node: Target node
        offset: Elevation delta (slope_fraction * path_length)
        base_elevation: Elevation the offset is applied to
        path_length: Drainage path length the offset was derived from
        nearest_sink: Drain the node flows to (None under zero fallback)
    """

    node: GraphNode
    offset: float
    base_elevation: float
    path_length: float
    nearest_sink: Optional[GraphNode] = None

    @property
    def elevation(self) -> float:
        """Absolute elevation after applying the offset."""
        return self.base_elevation + self.offset


@dataclass(frozen=True)
class DrainSegment:
    """Polyline segment with the higher endpoint first (flow direction).

    Attributes:
        high: Upstream endpoint (higher or equal Z)
        low: Downstream endpoint
    """

    high: Point3
    low: Point3

    @classmethod
    def downhill(cls, a: Point3, b: Point3) -> "DrainSegment":
        """Order a and b so the higher Z comes first; ties keep path order."""
        if a.z >= b.z:
            return cls(high=a, low=b)
        return cls(high=b, low=a)

    @property
    def length(self) -> float:
        return self.high.distance_to(self.low)

    @property
    def undirected_key(self) -> tuple:
        """Direction-independent identity for de-duplication."""
        a, b = sorted((self.high.key, self.low.key))
        return a + b


@dataclass(frozen=True)
class SolveSummary:
    """Minimum telemetry for one batch.

    Attributes:
        processed: Nodes that received a result from a real drainage path
        skipped: Drain nodes (not moved by the slope)
        failed: Nodes with no path to a drain
        reasons: Human-readable reason per failed node
    """

    processed: int
    skipped: int
    failed: int
    reasons: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_results(cls, results: dict[GraphNode, PathResult]) -> "SolveSummary":
        processed = skipped = failed = 0
        reasons: list[str] = []
        for node in sorted(results):
            result = results[node]
            if not result.found:
                failed += 1
                if result.failure_reason:
                    reasons.append(result.failure_reason)
            elif result.is_sink:
                skipped += 1
            else:
                processed += 1
        return cls(processed=processed, skipped=skipped, failed=failed, reasons=tuple(reasons))

    @property
    def total(self) -> int:
        return self.processed + self.skipped + self.failed

    def to_message(self) -> str:
        lines = [f"Processed: {self.processed}", f"Skipped: {self.skipped}", f"Failed: {self.failed}"]
        lines.extend(f"  - {reason}" for reason in self.reasons)
        return "\n".join(lines)


@dataclass(frozen=True)
class ElevationReport:
    """Batch elevation output.

    Attributes:
        assignments: One per node that receives an offset (drains at 0)
        unassigned: Unreachable results that produced no elevation output
            (counted as failed in summary)
        summary: processed / skipped / failed counts; skipped are the drains
        max_offset: Largest offset assigned (feet)
        longest_path: Longest drainage path used (feet)
    """

    assignments: tuple[ElevationAssignment, ...]
    unassigned: tuple[PathResult, ...]
    summary: SolveSummary
    max_offset: float = 0.0
    longest_path: float = 0.0

    @property
    def max_offset_mm(self) -> float:
        return self.max_offset * UnitConfig.FEET_TO_MM

    @property
    def longest_path_m(self) -> float:
        return self.longest_path * UnitConfig.FEET_TO_M

    def offsets_by_node(self) -> dict[GraphNode, float]:
        return {assignment.node: assignment.offset for assignment in self.assignments}


@dataclass(frozen=True)
class PolylineReport:
    """Batch polyline output with Creaser workflow statistics.

    Attributes:
        segments: Unique high-to-low segments across all paths
        paths_found: Non-trivial paths that contributed segments
        paths_failed: Nodes without a path
        duplicates_removed: Segments shared by more than one path
        degenerate_skipped: Zero-length segments dropped
        average_path_length: Mean length of the contributing paths
    """

    segments: tuple[DrainSegment, ...]
    paths_found: int
    paths_failed: int
    duplicates_removed: int
    degenerate_skipped: int
    average_path_length: float
    summary: SolveSummary
