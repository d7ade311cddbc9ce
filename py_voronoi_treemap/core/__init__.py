"""
Core layout functionality.
"""

from .errors import (DegenerateInputError, HullInvariantError, InvariantViolationError,
                     OverweightCorrectionError, VoronoiError)
from .weighted_voronoi import Boundary, CellPolygon, WeightedVoronoi, normalize_boundary
from .voronoi_map import MapPoint, SimulationState, SimulationStatus, VoronoiMapSimulation
from .voronoi_treemap import VoronoiTreemap
from .hierarchy import HierarchyNode
from .clip_shapes import ClipShape, generate_clip_polygon
from .fallback_treemap import squarify
from .alea_prng import AleaPRNG

__all__ = ['VoronoiError', 'DegenerateInputError', 'HullInvariantError',
           'InvariantViolationError', 'OverweightCorrectionError',
           'Boundary', 'CellPolygon', 'WeightedVoronoi', 'normalize_boundary',
           'MapPoint', 'SimulationState', 'SimulationStatus', 'VoronoiMapSimulation',
           'VoronoiTreemap', 'HierarchyNode', 'ClipShape', 'generate_clip_polygon',
           'squarify', 'AleaPRNG']
