"""Planar and spatial geometry helpers for roof drainage planning.

Provides the small amount of computational geometry the engine needs:
- Signed polygon area (shoelace formula)
- Polyline length
- Nearest-neighbour distances and candidate pairs (SciPy k-d tree)

All coordinates are model units (feet). Z is ignored by the planar helpers.
"""

from typing import Sequence

import numpy as np
from scipy.spatial import cKDTree

from roofslope_planner.model.point3 import Point3


class GeometryCalculator:
    """Static methods for planar and spatial calculations."""

    @staticmethod
    def signed_area(ring: Sequence[Point3]) -> float:
        """Signed area of a closed ring using the shoelace formula.

        Args:
            ring: Ring vertices in order; the closing vertex may be repeated or omitted

        Returns:
            Area in square units, positive for counter-clockwise rings.
        """
        if len(ring) < 3:
            return 0.0
        total = 0.0
        count = len(ring)
        for i in range(count):
            a = ring[i]
            b = ring[(i + 1) % count]
            total += a.x * b.y - b.x * a.y
        return total / 2.0

    @staticmethod
    def polyline_length(points: Sequence[Point3]) -> float:
        """Sum of 3D distances between consecutive points."""
        return sum(a.distance_to(b) for a, b in zip(points, points[1:]))

    @staticmethod
    def as_array(points: Sequence[Point3]) -> np.ndarray:
        """(n, 3) float array of point coordinates."""
        if not points:
            return np.zeros((0, 3), dtype=np.float64)
        return np.array([p.xyz for p in points], dtype=np.float64)

    @staticmethod
    def nearest_neighbor_distances(points: Sequence[Point3]) -> np.ndarray:
        """Distance from each point to its closest distinct neighbour.

        Coincident neighbours (distance 0) are skipped so duplicated raw
        vertices do not collapse the statistic. Points with no distinct
        neighbour are omitted from the result.

        Returns:
            1D array of positive distances (may be shorter than points).
        """
        if len(points) < 2:
            return np.zeros(0, dtype=np.float64)

        coords = GeometryCalculator.as_array(points)
        tree = cKDTree(coords)
        # k=2 is enough unless a point has exact duplicates; widen until every
        # row sees a positive distance or the whole set is exhausted
        k = min(2, len(points))
        while True:
            dists, _ = tree.query(coords, k=k)
            dists = np.atleast_2d(dists)
            positive = np.where(dists > 0, dists, np.inf)
            nearest = positive.min(axis=1)
            if np.all(np.isfinite(nearest)) or k >= len(points):
                break
            k = min(len(points), k * 2)
        return nearest[np.isfinite(nearest)]

    @staticmethod
    def candidate_pairs(points: Sequence[Point3], max_distance: float) -> list[tuple[int, int]]:
        """All index pairs (i < j) within max_distance, ascending.

        Pure prefilter: returns the same pairs as the naive O(n²) scan.
        """
        if len(points) < 2:
            return []
        tree = cKDTree(GeometryCalculator.as_array(points))
        return sorted(tree.query_pairs(r=max_distance))
