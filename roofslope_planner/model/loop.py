"""Loop - Closed boundary loops produced by the TopologyClassifier.

Boundary edges are flattened to z=0 before tracing. A Loop is an ordered,
closed sequence of Edge2D where consecutive edges share an endpoint and
the last edge ends where the first one starts.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from roofslope_planner.model.point3 import Point3


class LoopKind(Enum):
    """Classification of a closed loop."""

    OUTER = "outer"
    INNER = "inner"


@dataclass(frozen=True)
class Edge2D:
    """A flattened boundary edge.

    Attributes:
        start: Start point (z=0)
        end: End point (z=0)
    """

    start: Point3
    end: Point3

    @classmethod
    def flatten(cls, start: Point3, end: Point3) -> "Edge2D":
        return cls(start=start.flattened(), end=end.flattened())

    def reversed(self) -> "Edge2D":
        return Edge2D(start=self.end, end=self.start)

    def oriented_from(self, point: Point3) -> "Edge2D":
        """Return this edge re-oriented to start at point."""
        if self.start == point:
            return self
        if self.end == point:
            return self.reversed()
        raise ValueError(f"Edge {self} does not touch {point}")

    @property
    def length(self) -> float:
        return self.start.distance_2d_to(self.end)

    @property
    def sort_key(self) -> tuple:
        """Direction-independent ordering key."""
        a, b = sorted((self.start.key, self.end.key))
        return a + b


@dataclass(frozen=True)
class Loop:
    """A closed loop of oriented edges.

    Attributes:
        edges: Oriented edges, edges[i].end == edges[i+1].start
        kind: OUTER or INNER
        signed_area: Shoelace area (positive = counter-clockwise)
    """

    edges: tuple[Edge2D, ...]
    kind: LoopKind
    signed_area: float

    @property
    def area(self) -> float:
        """Absolute enclosed area (the loop's size)."""
        return abs(self.signed_area)

    @property
    def perimeter(self) -> float:
        return sum(edge.length for edge in self.edges)

    @property
    def start(self) -> Point3:
        return self.edges[0].start

    @property
    def nodes(self) -> tuple[Point3, ...]:
        """Loop vertices, closed: the first node is repeated at the end."""
        return (self.edges[0].start,) + tuple(edge.end for edge in self.edges)

    @property
    def is_closed(self) -> bool:
        if not self.edges:
            return False
        for current, following in zip(self.edges, self.edges[1:]):
            if current.end != following.start:
                return False
        return self.edges[-1].end == self.edges[0].start

    @property
    def is_counter_clockwise(self) -> bool:
        return self.signed_area > 0

    def polygon_coords(self) -> list[tuple[float, float]]:
        """Open ring of (x, y) tuples for shapely."""
        return [edge.start.xy for edge in self.edges]

    def __len__(self) -> int:
        return len(self.edges)


@dataclass(frozen=True)
class TopologyResult:
    """Outer boundary and inner voids of one classification call."""

    outer: Loop
    inner: tuple[Loop, ...]

    @property
    def loops(self) -> tuple[Loop, ...]:
        return (self.outer,) + self.inner

    def find_loop(self, point: Point3) -> Optional[Loop]:
        """Loop that has point as one of its vertices."""
        flat = point.flattened()
        for loop in self.loops:
            if flat in loop.nodes:
                return loop
        return None
