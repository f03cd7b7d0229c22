"""Exception hierarchy for the drainage engine.

Whole-input failures are raised; per-node failures are recorded as
NodeIssue values on the PathResult instead (see model/issue.py).
"""


class DrainageError(Exception):
    """Base class for all drainage engine errors."""


class GeometryError(DrainageError):
    """Degenerate or insufficient geometry (too few nodes, open boundary, degenerate loop)."""


class ConfigurationError(DrainageError):
    """Invalid threshold, slope or solver parameters. Raised before any computation."""


class SolveCancelledError(DrainageError):
    """The caller requested cancellation between stages or settle steps."""
