"""Turns drainage paths into elevation offsets or drainage polylines.

Two outputs, matching the two families of roof tools:
- Elevation: offset = slope_fraction × path length (slab sub-element points)
- Polyline: consecutive path nodes as high-to-low segments (crease lines)

Batch helpers aggregate per-node results into reports with the statistics
the host tools display (max offset, longest path, duplicates removed).
"""

import logging
from typing import Mapping

from roofslope_planner.constants import MapperConfig
from roofslope_planner.errors import ConfigurationError
from roofslope_planner.model.assignment import (
    DrainSegment,
    ElevationAssignment,
    ElevationReport,
    PolylineReport,
    SolveSummary,
)
from roofslope_planner.model.graph_node import GraphNode
from roofslope_planner.model.path_result import PathResult

logger = logging.getLogger(__name__)


class ElevationMapper:
    """Maps PathResults to elevation offsets and polylines.

    Example:
        mapper = ElevationMapper()
        offset = mapper.map_to_elevation(result, slope_fraction=0.02)
        report = mapper.assign_elevations(results, slope_pct=2.0)
    """

    def __init__(self, min_segment_length: float = MapperConfig.MIN_SEGMENT_LENGTH) -> None:
        self.min_segment_length = min_segment_length

    # =========================================================================
    # Single result
    # =========================================================================

    @staticmethod
    def map_to_elevation(result: PathResult, slope_fraction: float) -> float:
        """Elevation offset for one result.

        Args:
            result: A found PathResult
            slope_fraction: Rise per unit run, e.g. 0.02 for 2 %

        Raises:
            ConfigurationError: slope_fraction is not positive.
            ValueError: result has no path.
        """
        if not slope_fraction > 0:
            raise ConfigurationError(f"Slope must be positive, got {slope_fraction}")
        if not result.found:
            raise ValueError(f"Node {result.node.id} has no drainage path: {result.failure_reason}")
        return slope_fraction * result.total_length

    def map_to_polyline(self, result: PathResult) -> tuple[DrainSegment, ...]:
        """High-to-low segments along the path, zero-length segments dropped."""
        return self._segments_with_skips(result)[0]

    def _segments_with_skips(self, result: PathResult) -> tuple[tuple[DrainSegment, ...], int]:
        segments = []
        skipped = 0
        for a, b in zip(result.path, result.path[1:]):
            if a.point == b.point or a.distance_to(b) <= self.min_segment_length:
                skipped += 1
                continue
            segments.append(DrainSegment.downhill(a.point, b.point))
        return tuple(segments), skipped

    # =========================================================================
    # Batches
    # =========================================================================

    def assign_elevations(
        self,
        results: Mapping[GraphNode, PathResult],
        slope_pct: float = MapperConfig.DEFAULT_SLOPE_PCT,
        zero_fallback: bool = False,
    ) -> ElevationReport:
        """Elevation assignments for a whole solve.

        Args:
            results: Solver output
            slope_pct: Slope in percent (2.0 = 2 %)
            zero_fallback: Give unreachable nodes offset 0 instead of leaving them unassigned

        Returns:
            ElevationReport with drains at offset 0 and aggregate statistics.
        """
        if not slope_pct > 0:
            raise ConfigurationError(f"Slope percentage must be positive, got {slope_pct}")
        slope_fraction = slope_pct / 100.0

        assignments: list[ElevationAssignment] = []
        unassigned: list[PathResult] = []
        max_offset = 0.0
        longest_path = 0.0

        for node, result in results.items():
            if not result.found:
                if zero_fallback:
                    assignments.append(
                        ElevationAssignment(node=node, offset=0.0, base_elevation=node.z, path_length=0.0)
                    )
                else:
                    unassigned.append(result)
                continue

            offset = self.map_to_elevation(result, slope_fraction)
            assignments.append(
                ElevationAssignment(
                    node=node,
                    offset=offset,
                    base_elevation=node.z,
                    path_length=result.total_length,
                    nearest_sink=result.nearest_sink,
                )
            )
            max_offset = max(max_offset, offset)
            longest_path = max(longest_path, result.total_length)

        summary = SolveSummary.from_results(dict(results))
        report = ElevationReport(
            assignments=tuple(assignments),
            unassigned=tuple(unassigned),
            summary=summary,
            max_offset=max_offset,
            longest_path=longest_path,
        )
        logger.info(
            f"Assigned {len(assignments)} elevation(s) at {slope_pct}%: "
            f"max offset {report.max_offset_mm:.1f} mm, longest path {report.longest_path_m:.2f} m"
        )
        return report

    def collect_polylines(self, results: Mapping[GraphNode, PathResult]) -> PolylineReport:
        """Unique drainage segments across all paths.

        Segments shared by several paths are kept once; identity ignores
        direction. The first occurrence wins, in result order.
        """
        unique: dict[tuple, DrainSegment] = {}
        paths_found = 0
        paths_failed = 0
        duplicates = 0
        degenerate = 0
        total_length = 0.0

        for result in results.values():
            if not result.found:
                paths_failed += 1
                continue
            if result.is_sink or not result.path[1:]:
                continue

            segments, skipped = self._segments_with_skips(result)
            degenerate += skipped
            paths_found += 1
            total_length += result.total_length
            for segment in segments:
                key = segment.undirected_key
                if key in unique:
                    duplicates += 1
                    continue
                unique[key] = segment

        average = total_length / paths_found if paths_found else 0.0
        report = PolylineReport(
            segments=tuple(unique.values()),
            paths_found=paths_found,
            paths_failed=paths_failed,
            duplicates_removed=duplicates,
            degenerate_skipped=degenerate,
            average_path_length=average,
            summary=SolveSummary.from_results(dict(results)),
        )
        logger.info(
            f"Collected {len(report.segments)} segment(s) from {paths_found} path(s): "
            f"{duplicates} duplicate(s) removed, {degenerate} degenerate skipped"
        )
        return report
