"""
Exception hierarchy for the Voronoi engine.

Every error is fatal to the computation that raised it. Nothing in the engine
catches these; callers distinguish them by type to decide whether to retry
with other parameters or fall back to a simpler layout.
"""


class VoronoiError(Exception):
    """Base class for all engine failures."""


class DegenerateInputError(VoronoiError):
    """Fewer than 4 usable points, or all points collinear/coplanar."""


class HullInvariantError(VoronoiError):
    """An expected topological relationship of the hull is missing."""


class OverweightCorrectionError(VoronoiError):
    """Pairwise weight correction did not settle within its iteration bound."""


class InvariantViolationError(VoronoiError):
    """A site lost its cell during the simulation."""
