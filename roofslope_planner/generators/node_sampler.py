"""Node sampling from raw roof geometry.

Extracts a deduplicated, ordered set of candidate surface points from:
- Shape-editor vertices (flat point list)
- Triangulated meshes (corner triples, edges registered both ways)
- Crease curves (segment endpoints)

Points are collapsed through their quantized keys. When several raw points
collapse onto one key the representative is chosen deterministically:
- Grouping by XY only: highest Z wins, then first occurrence
- Grouping by XYZ: first occurrence
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from roofslope_planner.constants import QuantizeConfig, SamplingConfig
from roofslope_planner.model.issue import ToleranceAmbiguity
from roofslope_planner.model.point3 import Point3, is_half_step

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SampleResult:
    """Sampled surface nodes.

    Attributes:
        points: Canonical points in first-seen order
        adjacency: Undirected raw connectivity (mesh/crease input only)
        ambiguities: Coordinates that sat on a quantization half-step
    """

    points: tuple[Point3, ...]
    adjacency: dict[Point3, tuple[Point3, ...]] = field(default_factory=dict)
    ambiguities: tuple[ToleranceAmbiguity, ...] = field(default_factory=tuple)

    @property
    def edges(self) -> list[tuple[Point3, Point3]]:
        """Each undirected raw edge once, in first-seen order."""
        seen: set[frozenset] = set()
        result = []
        for a, neighbors in self.adjacency.items():
            for b in neighbors:
                pair = frozenset((a, b))
                if pair not in seen:
                    seen.add(pair)
                    result.append((a, b))
        return result

    def __len__(self) -> int:
        return len(self.points)


class NodeSampler:
    """Collapses raw geometry into canonical surface nodes.

    Example:
        sampler = NodeSampler()
        result = sampler.sample_vertices([Point3(0, 0, 1), Point3(0, 0, 1.0000001)])
        # both round to (0.0, 0.0, 1.0)
        assert len(result.points) == 1
    """

    @staticmethod
    def _check_ambiguity(point: Point3, found: list[ToleranceAmbiguity]) -> None:
        if any(is_half_step(value) for value in point.xyz):
            issue = ToleranceAmbiguity(coordinates=point.xyz, digits=QuantizeConfig.DIGITS)
            logger.warning(issue.message)
            found.append(issue)

    def sample_vertices(
        self,
        points: Iterable[Point3],
        group_by_xy: bool = SamplingConfig.GROUP_BY_XY_DEFAULT,
    ) -> SampleResult:
        """Deduplicate a flat vertex list.

        Args:
            points: Raw vertices
            group_by_xy: Collapse by plan position only, keeping the highest Z

        Returns:
            SampleResult with canonical points and no adjacency.
        """
        ambiguities: list[ToleranceAmbiguity] = []
        chosen: dict[tuple, Point3] = {}
        raw_count = 0

        for point in points:
            raw_count += 1
            self._check_ambiguity(point, ambiguities)
            key = point.xy_key if group_by_xy else point.key
            current = chosen.get(key)
            if current is None:
                chosen[key] = point
            elif group_by_xy and point.z > current.z:
                chosen[key] = point

        logger.info(f"Sampled {len(chosen)} node(s) from {raw_count} vertex(es)")
        return SampleResult(points=tuple(chosen.values()), ambiguities=tuple(ambiguities))

    def sample_mesh(self, triangles: Iterable[Sequence[Point3]]) -> SampleResult:
        """Collect triangle corners and register every triangle edge both ways.

        Args:
            triangles: Corner triples

        Returns:
            SampleResult with canonical corners and mesh adjacency.
        """
        builder = _AdjacencyCollector()
        triangle_count = 0
        for triangle in triangles:
            if len(triangle) != 3:
                raise ValueError(f"Triangle must have 3 corners, got {len(triangle)}")
            triangle_count += 1
            a, b, c = (builder.add_point(p) for p in triangle)
            builder.connect(a, b)
            builder.connect(b, c)
            builder.connect(c, a)

        logger.info(f"Sampled {len(builder.points)} node(s) from {triangle_count} triangle(s)")
        return builder.result()

    def sample_creases(self, segments: Iterable[tuple[Point3, Point3]]) -> SampleResult:
        """Collect crease endpoints and their undirected connectivity."""
        builder = _AdjacencyCollector()
        segment_count = 0
        for start, end in segments:
            segment_count += 1
            a = builder.add_point(start)
            b = builder.add_point(end)
            builder.connect(a, b)

        logger.info(f"Sampled {len(builder.points)} node(s) from {segment_count} crease(s)")
        return builder.result()


class _AdjacencyCollector:
    """Ordered point set plus undirected adjacency, keyed by quantized point."""

    def __init__(self) -> None:
        self.points: dict[Point3, Point3] = {}
        self.adjacency: dict[Point3, list[Point3]] = {}
        self.ambiguities: list[ToleranceAmbiguity] = []

    def add_point(self, point: Point3) -> Point3:
        NodeSampler._check_ambiguity(point, self.ambiguities)
        canonical = self.points.setdefault(point, point)
        self.adjacency.setdefault(canonical, [])
        return canonical

    def connect(self, a: Point3, b: Point3) -> None:
        if a == b:
            return
        if b not in self.adjacency[a]:
            self.adjacency[a].append(b)
        if a not in self.adjacency[b]:
            self.adjacency[b].append(a)

    def result(self) -> SampleResult:
        return SampleResult(
            points=tuple(self.points.values()),
            adjacency={p: tuple(neighbors) for p, neighbors in self.adjacency.items()},
            ambiguities=tuple(self.ambiguities),
        )
