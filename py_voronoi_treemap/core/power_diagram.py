"""
Power diagram extraction from a finished convex hull.

Each downward-facing hull face is dual to one vertex of the power diagram.
Walking the faces around a lifted site yields that site's cell.
"""

from dataclasses import dataclass, field
from typing import Any, List, Set, Tuple

from .convex_hull import ConvexHull, Face
from .errors import HullInvariantError
from .geometry import EPSILON, LiftedVertex, Point, polygon_area, polygon_length


@dataclass
class PowerCell:
    """Unclipped cell of one non-boundary site."""
    vertex: LiftedVertex
    polygon: List[Point]
    neighbours: List[Any] = field(default_factory=list)


def faces_around_destination(hull: ConvexHull, start: int) -> Tuple[List[Face], List[Any]]:
    """Ring of downward faces around the destination vertex of edge ``start``.

    Also returns the originating sites of the ring's neighbouring vertices,
    boundary sites excluded.
    """
    faces: List[Face] = []
    neighbours: List[Any] = []
    e = start
    for _ in range(len(hull.edges)):
        twin = hull.edges[e].twin
        if twin is None:
            raise HullInvariantError(f"edge {e} has no twin while walking a vertex ring")
        e = hull.edges[twin].prev

        origin = hull.edges[e].origin
        if not origin.is_boundary:
            neighbours.append(origin.original)
        face = hull.faces[hull.edges[e].face]
        if face.is_visible_from_below():
            faces.append(face)
        if e == start:
            return faces, neighbours
    raise HullInvariantError(f"vertex ring starting at edge {start} does not close")


def extract_power_cells(hull: ConvexHull) -> List[PowerCell]:
    """One unclipped cell per non-boundary site that has a non-empty cell."""
    visited: Set[int] = set()
    cells: List[PowerCell] = []

    for handle in hull.alive_faces():
        face = hull.faces[handle]
        if not face.is_visible_from_below():
            continue

        for e in face.edges:
            vertex = hull.edges[e].destination
            if vertex.index in visited:
                continue
            visited.add(vertex.index)
            if vertex.is_boundary:
                continue

            ring, neighbours = faces_around_destination(hull, e)
            polygon: List[Point] = []
            last = None
            for ring_face in ring:
                x, y = ring_face.dual_point
                if last is None or abs(last[0] - x) > EPSILON or abs(last[1] - y) > EPSILON:
                    polygon.append((x, y))
                    last = (x, y)
            polygon.reverse()

            if polygon_length(polygon) <= 0:
                continue
            # A ring walked against the engine winding is reversed, not dropped.
            if polygon_area(polygon) < 0:
                polygon.reverse()
            cells.append(PowerCell(vertex=vertex, polygon=polygon, neighbours=neighbours))

    return cells
