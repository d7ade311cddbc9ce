"""
Weighted Voronoi (power diagram) computation.

Sites are lifted onto a paraboloid, wrapped in a 3D convex hull together with
four boundary sites, and the lower hull is read back as a power diagram whose
cells are finally clipped against the boundary polygon.
"""

import uuid
from collections.abc import Mapping
from typing import Any, Callable, List, NamedTuple, Optional, Sequence, Tuple

import structlog

from .convex_hull import ConvexHull
from .geometry import (
    EPSILON, Extent, LiftedVertex, Point, polygon_area, polygon_direction,
    polygon_extent, polygon_hull,
)
from .polygon_clipping import clip_polygon
from .power_diagram import extract_power_cells

logger = structlog.get_logger()

Accessor = Callable[[Any], float]

UNIT_SQUARE: List[Point] = [(0.0, 0.0), (0.0, 1.0), (1.0, 1.0), (1.0, 0.0)]


class Boundary(NamedTuple):
    """Clip polygon with its axis-aligned extent and size."""
    clip: List[Point]
    extent: Extent
    size: Tuple[float, float]


def normalize_boundary(clip: Optional[Sequence[Point]] = None,
                       extent: Optional[Sequence[Point]] = None,
                       size: Optional[Sequence[float]] = None) -> Boundary:
    """
    Derive a clip polygon, extent and size from whichever one is given.

    A clip polygon is re-wound to the engine's winding when it is convex and
    replaced by its convex hull otherwise. Precedence is clip, then extent,
    then size; with nothing given the unit square is used.

    Args:
        clip: Boundary polygon as a list of (x, y)
        extent: [[x0, y0], [x1, y1]] rectangle
        size: [width, height] rectangle anchored at the origin

    Returns:
        Boundary tuple
    """
    if clip is not None:
        if len(clip) < 3:
            raise ValueError(f"clip polygon needs at least 3 points, got {len(clip)}")
        ring = [(float(p[0]), float(p[1])) for p in clip]
        direction = polygon_direction(ring)
        if direction is None:
            ring = polygon_hull(ring)
        elif direction == 1:
            ring.reverse()
        (x0, y0), (x1, y1) = polygon_extent(ring)
        return Boundary(ring, ((x0, y0), (x1, y1)), (x1 - x0, y1 - y0))

    if extent is not None:
        (x0, y0), (x1, y1) = (float(extent[0][0]), float(extent[0][1])), \
            (float(extent[1][0]), float(extent[1][1]))
        if x1 <= x0 or y1 <= y0:
            raise ValueError(f"extent must have positive width and height, got {extent}")
        ring = [(x0, y0), (x0, y1), (x1, y1), (x1, y0)]
        return Boundary(ring, ((x0, y0), (x1, y1)), (x1 - x0, y1 - y0))

    if size is not None:
        width, height = float(size[0]), float(size[1])
        if width <= 0 or height <= 0:
            raise ValueError(f"size must be positive, got {size}")
        ring = [(0.0, 0.0), (0.0, height), (width, height), (width, 0.0)]
        return Boundary(ring, ((0.0, 0.0), (width, height)), (width, height))

    return Boundary(list(UNIT_SQUARE), ((0.0, 0.0), (1.0, 1.0)), (1.0, 1.0))


def field_accessor(name: str) -> Accessor:
    """Read ``name`` from a mapping key or an attribute."""
    def get(datum):
        if isinstance(datum, Mapping):
            return datum[name]
        return getattr(datum, name)
    return get


class CellPolygon(list):
    """Clipped cell: a list of (x, y) with its site and neighbouring sites."""

    def __init__(self, points: Sequence[Point], site: Any = None,
                 neighbours: Optional[List[Any]] = None):
        super().__init__(points)
        self.site = site
        self.neighbours = neighbours if neighbours is not None else []

    @property
    def area(self) -> float:
        return polygon_area(self)


class WeightedVoronoi:
    """
    Computes clipped power diagrams.

    Args:
        x, y, weight: Accessors reading a site's coordinates and weight
        clip, extent, size: Boundary, see normalize_boundary()
        prng: Optional generator with ``random()`` shuffling hull insertion order
        log: Optional structlog logger scoped to this computation
    """

    def __init__(self, x: Optional[Accessor] = None, y: Optional[Accessor] = None,
                 weight: Optional[Accessor] = None,
                 clip: Optional[Sequence[Point]] = None,
                 extent: Optional[Sequence[Point]] = None,
                 size: Optional[Sequence[float]] = None,
                 prng=None, log=None):
        self.x = x or field_accessor("x")
        self.y = y or field_accessor("y")
        self.weight = weight or field_accessor("weight")
        self.prng = prng
        self._boundary = normalize_boundary(clip, extent, size)
        self._log = log or logger.bind(run_id=str(uuid.uuid4()))

    @property
    def boundary(self) -> Boundary:
        return self._boundary

    @property
    def clip(self) -> List[Point]:
        return self._boundary.clip

    @clip.setter
    def clip(self, polygon: Sequence[Point]) -> None:
        self._boundary = normalize_boundary(clip=polygon)

    @property
    def extent(self) -> Extent:
        return self._boundary.extent

    @extent.setter
    def extent(self, extent: Sequence[Point]) -> None:
        self._boundary = normalize_boundary(extent=extent)

    @property
    def size(self) -> Tuple[float, float]:
        return self._boundary.size

    @size.setter
    def size(self, size: Sequence[float]) -> None:
        self._boundary = normalize_boundary(size=size)

    def bounding_sites(self) -> List[LiftedVertex]:
        """Four unweighted sites at the corners of the extent grown 3x."""
        (min_x, min_y), (max_x, max_y) = self._boundary.extent
        width = max_x - min_x
        height = max_y - min_y
        x0, x1 = min_x - width, max_x + width
        y0, y1 = min_y - height, max_y + height
        return [
            LiftedVertex(x, y, EPSILON, is_boundary=True)
            for x, y in ((x0, y0), (x0, y1), (x1, y1), (x1, y0))
        ]

    def compute(self, data: Sequence[Any]) -> List[CellPolygon]:
        """Clipped cells of ``data``; sites whose cell vanishes are left out."""
        sites = [
            LiftedVertex(float(self.x(d)), float(self.y(d)), float(self.weight(d)), original=d)
            for d in data
        ]
        hull = ConvexHull(sites + self.bounding_sites(), prng=self.prng, log=self._log)
        hull.compute()

        polygons: List[CellPolygon] = []
        for cell in extract_power_cells(hull):
            clipped = clip_polygon(self._boundary.clip, cell.polygon)
            if len(clipped) < 3 or polygon_area(clipped) <= 0:
                continue
            polygons.append(CellPolygon(clipped, site=cell.vertex.original,
                                        neighbours=cell.neighbours))

        self._log.debug("Weighted voronoi computed", sites=len(sites), polygons=len(polygons))
        return polygons

    __call__ = compute
