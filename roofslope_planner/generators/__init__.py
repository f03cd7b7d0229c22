"""Pipeline stages for roof drainage.

- NodeSampler: Raw geometry to deduplicated surface points
- AdjacencyGraphBuilder: Boundary-aware graph with fixed or adaptive threshold
- DrainLocator: Drain snapping and inference
- DrainageSolver: Nearest-drain Dijkstra (multi-source or per-target)
- ElevationMapper: Paths to elevation offsets or polylines
"""

from roofslope_planner.generators.adjacency_builder import (
    AdaptiveThreshold,
    AdjacencyGraphBuilder,
    FixedThreshold,
    ThresholdPolicy,
)
from roofslope_planner.generators.drain_locator import DrainLocator
from roofslope_planner.generators.drainage_solver import DrainageSolver, SolverStrategy
from roofslope_planner.generators.elevation_mapper import ElevationMapper
from roofslope_planner.generators.node_sampler import NodeSampler, SampleResult

__all__ = [
    "NodeSampler",
    "SampleResult",
    "AdjacencyGraphBuilder",
    "FixedThreshold",
    "AdaptiveThreshold",
    "ThresholdPolicy",
    "DrainLocator",
    "DrainageSolver",
    "SolverStrategy",
    "ElevationMapper",
]
