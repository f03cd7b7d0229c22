"""Configuration constants for Roof Slope Planner.

All tunable parameters are centralized here for easy tuning.
Model units are feet, matching the host CAD document.

Classes:
    QuantizeConfig: Point quantization precision
    SamplingConfig: Node sampling tolerances
    MembershipConfig: Face membership projection and segment sampling
    ThresholdConfig: Fixed and adaptive connectivity thresholds
    GraphConfig: Edge admission and climb penalty
    TopologyConfig: Loop tracing limits
    SolverConfig: Drain inference tolerance
    MapperConfig: Slope bounds and polyline filtering
    UnitConfig: Unit conversions used in summaries
"""


class QuantizeConfig:
    """Point quantization precision."""

    # Coordinates are rounded to this many decimals before hashing/equality
    DIGITS = 6

    # Distance from a rounding half-step below which a value counts as ambiguous
    HALF_STEP_EPSILON = 1e-9


class SamplingConfig:
    """Node sampling tolerances."""

    # Group shape-editor vertices by XY only (highest Z wins) unless told otherwise
    GROUP_BY_XY_DEFAULT = False


class MembershipConfig:
    """Face membership projection and segment sampling."""

    # Retry offset along the face normal when projection fails (~1 mm)
    NORMAL_OFFSET = 0.00328084

    # Interior samples per segment: max(MIN_SEGMENT_SAMPLES, length * SAMPLES_PER_UNIT)
    MIN_SEGMENT_SAMPLES = 10
    SAMPLES_PER_UNIT = 4

    # Plan distance from the polygon boundary still counted as on the face
    BOUNDARY_TOLERANCE = 1e-6


class ThresholdConfig:
    """Fixed and adaptive connectivity thresholds."""

    # Fixed strategies found in the slab tools
    DEFAULT_FIXED = 1.0  # 1 ft
    LONG_RANGE_FIXED = 164.042  # 50 m

    # Adaptive: clamp(median * MULTIPLIER, median * MIN_FACTOR, median * MAX_FACTOR)
    ADAPTIVE_MULTIPLIER = 2.5
    ADAPTIVE_MIN_FACTOR = 1.25
    ADAPTIVE_MAX_FACTOR = 6.0
    ADAPTIVE_ABSOLUTE_MIN = 0.5  # ~152 mm

    # Used when fewer than two distinct points exist
    ADAPTIVE_FALLBACK = 1.0


class GraphConfig:
    """Edge admission and climb penalty."""

    # Pairs closer than this are never connected (no zero-length edges)
    MIN_SEPARATION = 1e-6

    # Extra cost per unit of climb towards the drain; 0 disables the penalty
    CLIMB_PENALTY_FACTOR = 100.0


class TopologyConfig:
    """Loop tracing limits."""

    MAX_TRACE_STEPS = 100_000
    MIN_LOOP_EDGES = 3


class SolverConfig:
    """Drain inference tolerance."""

    # Nodes within this height of the lowest node count as drains
    LOWEST_Z_TOLERANCE = 1e-6


class MapperConfig:
    """Slope bounds and polyline filtering."""

    DEFAULT_SLOPE_PCT = 2.0

    # Segments shorter than this are dropped from drainage polylines
    MIN_SEGMENT_LENGTH = 1e-6


class UnitConfig:
    """Unit conversions used in summaries."""

    FEET_TO_MM = 304.8
    FEET_TO_M = 0.3048
