"""
Geometry primitives for the power diagram engine.

Polygons are sequences of ``(x, y)`` pairs. Signed areas follow the d3
convention: a ring that runs clockwise in a y-up frame (counter-clockwise on a
y-down screen) has a positive area, and that is the winding every clip polygon
and every produced cell uses.
"""

import math
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np
from scipy.spatial import ConvexHull, QhullError

from .errors import DegenerateInputError

EPSILON = 1e-10

Point = Tuple[float, float]
Extent = Tuple[Point, Point]


def epsilonesque(n: float) -> bool:
    """True when n is zero within EPSILON."""
    return -EPSILON <= n <= EPSILON


def lift(x: float, y: float, weight: float) -> float:
    """Paraboloid lifting transform used to turn a power diagram into a hull."""
    return x * x + y * y - weight


@dataclass(eq=False)
class LiftedVertex:
    """A weighted site lifted onto the paraboloid ``z = x^2 + y^2 - weight``.

    ``index`` is the vertex identity used for ordering inside the conflict
    graph; the hull builder rewrites it as it settles the processing order.
    """
    x: float
    y: float
    weight: float = EPSILON
    original: Any = None
    is_boundary: bool = False
    index: int = 0
    z: float = field(init=False)

    def __post_init__(self):
        self.z = lift(self.x, self.y, self.weight)

    @property
    def position(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z])

    def set_weight(self, weight: float) -> None:
        self.weight = weight
        self.z = lift(self.x, self.y, weight)


def face_normal(a: LiftedVertex, b: LiftedVertex, c: LiftedVertex) -> np.ndarray:
    """Unit normal of triangle (a, b, c), pointing along -(b - a) x (c - b)."""
    t = np.cross(b.position - a.position, c.position - b.position)
    normal = -t
    length = np.linalg.norm(normal)
    if length > 0:
        normal = normal / length
    return normal


def plane_coefficients(p1: LiftedVertex, p2: LiftedVertex,
                       p3: LiftedVertex) -> Tuple[float, float, float, float]:
    """Coefficients (a, b, c, d) of the plane ``a*x + b*y + c*z + d = 0``."""
    a = p1.y * (p2.z - p3.z) + p2.y * (p3.z - p1.z) + p3.y * (p1.z - p2.z)
    b = p1.z * (p2.x - p3.x) + p2.z * (p3.x - p1.x) + p3.z * (p1.x - p2.x)
    c = p1.x * (p2.y - p3.y) + p2.x * (p3.y - p1.y) + p3.x * (p1.y - p2.y)
    d = -(p1.x * (p2.y * p3.z - p3.y * p2.z)
          + p2.x * (p3.y * p1.z - p1.y * p3.z)
          + p3.x * (p1.y * p2.z - p2.y * p1.z))
    return a, b, c, d


def dual_point(p1: LiftedVertex, p2: LiftedVertex, p3: LiftedVertex) -> Point:
    """Power vertex of a lower-hull face, projected back onto the 2D plane."""
    a, b, c, _ = plane_coefficients(p1, p2, p3)
    return (-a / c / 2, -b / c / 2)


def orientation(p: Sequence[float], q: Sequence[float], r: Sequence[float]) -> float:
    """Cross product of (q - p) and (r - q); its sign gives the turn direction."""
    return (q[0] - p[0]) * (r[1] - q[1]) - (q[1] - p[1]) * (r[0] - q[0])


def polygon_direction(polygon: Sequence[Point]) -> Optional[int]:
    """Common sign of every turn of the polygon, or None when it is not convex.

    A return of -1 means the ring already has the engine's winding; +1 means it
    must be reversed.
    """
    n = len(polygon)
    if n < 3:
        return None
    sign = None
    for i in range(n):
        turn = orientation(polygon[i - 2], polygon[i - 1], polygon[i])
        turn_sign = int(math.copysign(1, turn)) if turn != 0 else 0
        if sign is None:
            sign = turn_sign
        elif turn_sign != sign:
            return None
    return sign if sign != 0 else None


def polygon_area(polygon: Sequence[Point]) -> float:
    """Signed area, positive for the engine's winding."""
    if len(polygon) < 3:
        return 0.0
    pts = np.asarray(polygon, dtype=float)
    prev = np.roll(pts, 1, axis=0)
    return float(np.sum(prev[:, 1] * pts[:, 0] - prev[:, 0] * pts[:, 1]) / 2)


def polygon_centroid(polygon: Sequence[Point]) -> Point:
    """Area centroid of a polygon (shoelace formula)."""
    pts = np.asarray(polygon, dtype=float)
    if len(pts) < 3:
        mean = pts.mean(axis=0)
        return (float(mean[0]), float(mean[1]))

    nxt = np.roll(pts, -1, axis=0)
    cross = pts[:, 0] * nxt[:, 1] - nxt[:, 0] * pts[:, 1]
    area = cross.sum()
    if abs(area) < EPSILON:
        mean = pts.mean(axis=0)
        return (float(mean[0]), float(mean[1]))

    cx = np.sum((pts[:, 0] + nxt[:, 0]) * cross) / (3.0 * area)
    cy = np.sum((pts[:, 1] + nxt[:, 1]) * cross) / (3.0 * area)
    return (float(cx), float(cy))


def polygon_contains(polygon: Sequence[Point], point: Sequence[float]) -> bool:
    """Even-odd ray casting point-in-polygon test."""
    n = len(polygon)
    x, y = point[0], point[1]
    inside = False
    x0, y0 = polygon[n - 1][0], polygon[n - 1][1]
    for i in range(n):
        x1, y1 = polygon[i][0], polygon[i][1]
        if (y1 > y) != (y0 > y) and x < (x0 - x1) * (y - y1) / (y0 - y1) + x1:
            inside = not inside
        x0, y0 = x1, y1
    return inside


def polygon_length(polygon: Sequence[Point]) -> float:
    """Perimeter of the closed ring."""
    if len(polygon) == 0:
        return 0.0
    pts = np.asarray(polygon, dtype=float)
    deltas = pts - np.roll(pts, 1, axis=0)
    return float(np.sum(np.hypot(deltas[:, 0], deltas[:, 1])))


def polygon_extent(polygon: Sequence[Point]) -> Extent:
    pts = np.asarray(polygon, dtype=float)
    mins = pts.min(axis=0)
    maxs = pts.max(axis=0)
    return ((float(mins[0]), float(mins[1])), (float(maxs[0]), float(maxs[1])))


def polygon_hull(polygon: Sequence[Point]) -> List[Point]:
    """Convex hull of a point set, returned with the engine's winding."""
    pts = np.asarray(polygon, dtype=float)
    try:
        hull = ConvexHull(pts)
    except (QhullError, ValueError) as e:
        raise DegenerateInputError(f"cannot wrap clip polygon in a convex hull: {e}") from e

    ring = [(float(pts[i][0]), float(pts[i][1])) for i in hull.vertices]
    if polygon_area(ring) < 0:
        ring.reverse()
    return ring


def line_intersection(c: Point, d: Point, a: Point, b: Point) -> Point:
    """Intersection of line (c, d) with line (a, b).

    Parallel lines produce non-finite coordinates; callers check for that.
    """
    x1, y1 = c[0], c[1]
    x3, y3 = a[0], a[1]
    x21, y21 = d[0] - x1, d[1] - y1
    x43, y43 = b[0] - x3, b[1] - y3
    denominator = y43 * x21 - x43 * y21
    if denominator == 0:
        return (math.inf, math.inf)
    ua = (x43 * (y1 - y3) - y43 * (x1 - x3)) / denominator
    return (x1 + ua * x21, y1 + ua * y21)


def point_segment_distance(point: Point, start: Point, end: Point) -> float:
    """Distance from a point to the closest point of segment [start, end]."""
    x, y = point
    x1, y1 = start
    x2, y2 = end
    cx, cy = x2 - x1, y2 - y1
    len_sq = cx * cx + cy * cy
    param = ((x - x1) * cx + (y - y1) * cy) / len_sq if len_sq != 0 else -1

    if param < 0:
        xx, yy = x1, y1
    elif param > 1:
        xx, yy = x2, y2
    else:
        xx, yy = x1 + param * cx, y1 + param * cy
    return math.hypot(x - xx, y - yy)
