"""Face membership tests for roof surfaces.

Decides whether a point, or a sampled segment, lies within the valid roof
region (outer boundary minus inner voids). This is what stops graph edges
from shortcutting across openings or outside the roof silhouette.

The surface itself is a geometry provider behind the SurfaceFace protocol:
- project(point) -> (parametric coords, success)
- parametric_bounds_contain(coords) -> bool

PolygonFace is the built-in provider: a shapely polygon with holes whose
parametric domain is the plan (XY) region.
"""

import logging
from typing import Optional, Protocol, Sequence

import numpy as np
from shapely.geometry import Point, Polygon
from shapely.prepared import prep

from roofslope_planner.constants import MembershipConfig
from roofslope_planner.errors import ConfigurationError, GeometryError
from roofslope_planner.model.loop import TopologyResult
from roofslope_planner.model.point3 import Point3

logger = logging.getLogger(__name__)

ParamCoords = tuple[float, float]


class SurfaceFace(Protocol):
    """Geometry provider contract for a reference surface."""

    def project(self, point: Point3) -> tuple[Optional[ParamCoords], bool]:
        """Project point onto the surface, returning parametric coordinates."""
        ...

    def parametric_bounds_contain(self, coords: ParamCoords) -> bool:
        """Whether parametric coordinates fall inside the valid region."""
        ...


class PolygonFace:
    """Planar roof region backed by a shapely polygon with holes.

    Projection drops Z (plan projection). When plane_tolerance is given,
    projection fails for points farther than the tolerance from the
    least-squares plane through the outer ring, which makes the normal
    offset retry of FaceMembership meaningful for on-boundary points.

    Example:
        face = PolygonFace(outer=[Point3(0, 0), Point3(10, 0), Point3(10, 10), Point3(0, 10)])
        coords, ok = face.project(Point3(5, 5))
        assert ok and face.parametric_bounds_contain(coords)
    """

    def __init__(
        self,
        outer: Sequence[Point3],
        inners: Sequence[Sequence[Point3]] = (),
        plane_tolerance: Optional[float] = None,
        boundary_tolerance: float = MembershipConfig.BOUNDARY_TOLERANCE,
    ) -> None:
        if len(outer) < 3:
            raise GeometryError(f"Outer boundary needs at least 3 vertices, got {len(outer)}")
        if plane_tolerance is not None and plane_tolerance <= 0:
            raise ConfigurationError(f"plane_tolerance must be positive, got {plane_tolerance}")
        if boundary_tolerance < 0:
            raise ConfigurationError(f"boundary_tolerance must be non-negative, got {boundary_tolerance}")

        self.polygon = Polygon(
            [p.xy for p in outer],
            holes=[[p.xy for p in ring] for ring in inners] or None,
        )
        if self.polygon.is_empty or self.polygon.area <= 0:
            raise GeometryError("Outer boundary encloses no area")

        self._prepared = prep(self.polygon)
        self._boundary = self.polygon.boundary
        self._boundary_tolerance = boundary_tolerance
        self._plane_tolerance = plane_tolerance
        self._plane = self._fit_plane(outer) if plane_tolerance is not None else None

    @classmethod
    def from_topology(cls, topology: TopologyResult, **kwargs) -> "PolygonFace":
        """Build the face from a classified outer loop and its voids."""
        outer = [edge.start for edge in topology.outer.edges]
        inners = [[edge.start for edge in loop.edges] for loop in topology.inner]
        return cls(outer=outer, inners=inners, **kwargs)

    @staticmethod
    def _fit_plane(ring: Sequence[Point3]) -> tuple[float, float, float]:
        """Least-squares plane z = a*x + b*y + c through the ring vertices."""
        coords = np.array([p.xyz for p in ring], dtype=np.float64)
        design = np.column_stack([coords[:, 0], coords[:, 1], np.ones(len(coords))])
        solution, *_ = np.linalg.lstsq(design, coords[:, 2], rcond=None)
        a, b, c = (float(v) for v in solution)
        return a, b, c

    def plane_z(self, x: float, y: float) -> Optional[float]:
        if self._plane is None:
            return None
        a, b, c = self._plane
        return a * x + b * y + c

    def project(self, point: Point3) -> tuple[Optional[ParamCoords], bool]:
        if self._plane is not None and self._plane_tolerance is not None:
            surface_z = self.plane_z(point.x, point.y)
            if surface_z is None or abs(point.z - surface_z) > self._plane_tolerance:
                return None, False
        return (point.x, point.y), True

    def parametric_bounds_contain(self, coords: ParamCoords) -> bool:
        candidate = Point(coords)
        if self._prepared.covers(candidate):
            return True
        # Samples on a slanted boundary edge can land a rounding error outside
        return self._boundary.distance(candidate) <= self._boundary_tolerance


class FaceMembership:
    """Point and segment membership tests against a SurfaceFace.

    Both checks return False on failure and never raise.

    Example:
        membership = FaceMembership(face=PolygonFace(outer=square))
        membership.is_on_face(Point3(5, 5))  # True
        membership.is_segment_on_face(Point3(1, 1), Point3(9, 9))  # True
    """

    def __init__(
        self,
        face: SurfaceFace,
        normal_offset: float = MembershipConfig.NORMAL_OFFSET,
        min_samples: int = MembershipConfig.MIN_SEGMENT_SAMPLES,
        samples_per_unit: float = MembershipConfig.SAMPLES_PER_UNIT,
    ) -> None:
        if normal_offset <= 0:
            raise ConfigurationError(f"normal_offset must be positive, got {normal_offset}")
        if min_samples < 1:
            raise ConfigurationError(f"min_samples must be at least 1, got {min_samples}")
        if samples_per_unit < 0:
            raise ConfigurationError(f"samples_per_unit must be non-negative, got {samples_per_unit}")
        self.face = face
        self.normal_offset = normal_offset
        self.min_samples = min_samples
        self.samples_per_unit = samples_per_unit

    def _project_with_retry(self, point: Point3) -> Optional[ParamCoords]:
        """Project point, retrying just above and just below the surface."""
        for dz in (0.0, self.normal_offset, -self.normal_offset):
            coords, ok = self.face.project(point.offset_z(dz) if dz else point)
            if ok and coords is not None:
                return coords
        return None

    def is_on_face(self, point: Point3) -> bool:
        """Whether point projects into the valid surface region."""
        try:
            coords = self._project_with_retry(point)
            if coords is None:
                return False
            return bool(self.face.parametric_bounds_contain(coords))
        except Exception as e:
            logger.debug(f"Face membership check failed at {point}: {e}")
            return False

    def sample_count_for(self, length: float) -> int:
        """Interior samples for a segment of the given length."""
        return max(self.min_samples, int(length * self.samples_per_unit))

    def is_segment_on_face(self, a: Point3, b: Point3, sample_count: Optional[int] = None) -> bool:
        """Whether every interior sample of segment a-b lies on the face.

        Samples are taken at t = i / (N + 1) for i = 1..N, excluding the
        endpoints, with N scaled by length and never below min_samples.
        """
        n = self.sample_count_for(a.distance_to(b))
        if sample_count is not None:
            n = max(self.min_samples, sample_count)

        for i in range(1, n + 1):
            if not self.is_on_face(a.lerp(b, i / (n + 1))):
                return False
        return True
