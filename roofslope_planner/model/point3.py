"""Point3 - The fundamental geometry atom for roof drainage planning.

A Point3 is an immutable (x, y, z) location in model units (feet).
Equality and hashing go through a quantized key so that near-coincident
points extracted from independent primitives (triangle corners, curve
endpoints) collapse to one logical node.

Used by:
- GraphNode (wraps a Point3 for its location)
- Edge2D / Loop (flattened boundary geometry)
- DrainSegment (polyline output)
"""

from dataclasses import dataclass, field
from math import floor, sqrt

import numpy as np

from roofslope_planner.constants import QuantizeConfig


def quantize(value: float, digits: int = QuantizeConfig.DIGITS) -> float:
    """Round a coordinate to the quantization grid."""
    return round(value, digits)


def is_half_step(value: float, digits: int = QuantizeConfig.DIGITS) -> bool:
    """True when value sits on a rounding half-step of the quantization grid.

    Such values may round either way depending on representation error, so
    two nearly identical raw points can land on different keys.
    """
    scaled = value * 10**digits
    return abs((scaled - floor(scaled)) - 0.5) < QuantizeConfig.HALF_STEP_EPSILON * 10**digits


@dataclass(frozen=True, eq=False)
class Point3:
    """An immutable 3D point with tolerance-quantized identity.

    Attributes:
        x: X coordinate (feet)
        y: Y coordinate (feet)
        z: Elevation (feet)

    Example:
        a = Point3(x=1.0, y=2.0, z=0.0)
        b = Point3(x=1.0000001, y=2.0, z=0.0)
        assert a == b and hash(a) == hash(b)
    """

    x: float
    y: float
    z: float = 0.0
    _key: tuple[float, float, float] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Validate coordinates and cache the quantized key."""
        if np.isnan(self.x) or np.isnan(self.y) or np.isnan(self.z):
            raise ValueError(f"Point3 cannot have NaN coordinates ({self.x}, {self.y}, {self.z})")
        object.__setattr__(self, "_key", (quantize(self.x), quantize(self.y), quantize(self.z)))

    @property
    def key(self) -> tuple[float, float, float]:
        """Quantized (x, y, z) key used for equality and hashing."""
        return self._key

    @property
    def xy_key(self) -> tuple[float, float]:
        """Quantized (x, y) key used when grouping by plan position."""
        return self._key[0], self._key[1]

    @property
    def xy(self) -> tuple[float, float]:
        """Return (x, y) tuple - plan coordinates."""
        return (self.x, self.y)

    @property
    def xyz(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Point3):
            return NotImplemented
        return self._key == other._key

    def __hash__(self) -> int:
        return hash(self._key)

    def flattened(self) -> "Point3":
        """Project onto the z=0 plane."""
        return Point3(x=self.x, y=self.y, z=0.0)

    def distance_to(self, other: "Point3") -> float:
        """Euclidean 3D distance to another point."""
        dx = other.x - self.x
        dy = other.y - self.y
        dz = other.z - self.z
        return sqrt(dx * dx + dy * dy + dz * dz)

    def distance_2d_to(self, other: "Point3") -> float:
        """Plan (XY) distance to another point."""
        dx = other.x - self.x
        dy = other.y - self.y
        return sqrt(dx * dx + dy * dy)

    def lerp(self, other: "Point3", t: float) -> "Point3":
        """Linear interpolation: t=0 gives self, t=1 gives other."""
        return Point3(
            x=self.x + (other.x - self.x) * t,
            y=self.y + (other.y - self.y) * t,
            z=self.z + (other.z - self.z) * t,
        )

    def offset_z(self, dz: float) -> "Point3":
        return Point3(x=self.x, y=self.y, z=self.z + dz)

    def __repr__(self) -> str:
        return f"Point3({self.x:.4f}, {self.y:.4f}, {self.z:.4f})"
