"""
Incremental randomized 3D convex hull.

Faces and half-edges live in arenas (plain lists) and refer to each other by
integer handle, so the half-edge mesh carries no reference cycles. Points that
are not yet inside the hull are tracked through a ConflictGraph.

The construction follows the classic algorithm: seed a tetrahedron, then add
one point at a time by finding the horizon of the faces it can see, fanning
new faces from the point to the horizon, and deleting the visible faces.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np
import structlog

from .conflict_graph import ConflictGraph
from .errors import DegenerateInputError, HullInvariantError
from .geometry import EPSILON, LiftedVertex, dual_point, epsilonesque, face_normal

logger = structlog.get_logger()

# A face whose normal z-component is below this points downward and so
# belongs to the lower hull, whose faces are the power diagram's vertices.
DOWNWARD_NORMAL_Z = -1.4259414393190911e-9


@dataclass
class HalfEdge:
    """Directed edge origin -> destination of one face."""
    origin: LiftedVertex
    destination: LiftedVertex
    face: int
    next: int = -1
    prev: int = -1
    twin: Optional[int] = None


@dataclass
class Face:
    """Triangular hull face with an outward unit normal."""
    vertices: List[LiftedVertex]
    normal: np.ndarray
    edges: List[int] = field(default_factory=list)
    marked: bool = False
    alive: bool = True
    _dual_point: Optional[tuple] = field(default=None, repr=False)

    def is_visible_from_below(self) -> bool:
        return self.normal[2] < DOWNWARD_NORMAL_Z

    def conflicts_with(self, vertex: LiftedVertex) -> bool:
        """True when the vertex lies strictly above this face's plane."""
        return (float(np.dot(self.normal, vertex.position))
                > float(np.dot(self.normal, self.vertices[0].position)) + EPSILON)

    @property
    def dual_point(self) -> tuple:
        if self._dual_point is None:
            self._dual_point = dual_point(*self.vertices)
        return self._dual_point


class ConvexHull:
    """Convex hull of a set of lifted vertices.

    Args:
        points: Vertices to wrap. Their ``index`` is overwritten.
        prng: Optional generator exposing ``random()``; when given, the
            processing order is shuffled with it.
        log: Optional structlog logger for this run.
    """

    def __init__(self, points: Sequence[LiftedVertex], prng=None, log=None):
        self.points: List[LiftedVertex] = list(points)
        self.faces: List[Face] = []
        self.edges: List[HalfEdge] = []
        self.conflicts = ConflictGraph()
        self.current = 0
        self._prng = prng
        self._log = log or logger

    # -- arena helpers -----------------------------------------------------

    def _create_face(self, a: LiftedVertex, b: LiftedVertex, c: LiftedVertex,
                     orient: Optional[LiftedVertex] = None) -> int:
        """Add a face, flipped if needed so that ``orient`` lies below it."""
        normal = face_normal(a, b, c)
        if orient is not None:
            if not np.dot(normal, orient.position) < np.dot(normal, a.position):
                b, c = c, b
                normal = -normal

        handle = len(self.faces)
        face = Face(vertices=[a, b, c], normal=normal)
        base = len(self.edges)
        for i, (origin, destination) in enumerate(((a, b), (b, c), (c, a))):
            self.edges.append(HalfEdge(
                origin=origin,
                destination=destination,
                face=handle,
                next=base + (i + 1) % 3,
                prev=base + (i + 2) % 3,
            ))
        face.edges = [base, base + 1, base + 2]
        self.faces.append(face)
        return handle

    def _edge_between(self, face: int, v0: LiftedVertex, v1: LiftedVertex) -> Optional[int]:
        for e in self.faces[face].edges:
            edge = self.edges[e]
            if ((edge.origin is v0 and edge.destination is v1)
                    or (edge.origin is v1 and edge.destination is v0)):
                return e
        return None

    def _link(self, face: int, other: int, v0: LiftedVertex, v1: LiftedVertex) -> None:
        """Make the edges of two faces along (v0, v1) twins of each other."""
        twin = self._edge_between(other, v0, v1)
        edge = self._edge_between(face, v0, v1)
        if twin is None or edge is None:
            raise HullInvariantError(
                f"when linking faces {face} and {other}, twin edge is missing")
        self.edges[twin].twin = edge
        self.edges[edge].twin = twin

    def _link_to_edge(self, face: int, twin: int) -> None:
        twin_edge = self.edges[twin]
        edge = self._edge_between(face, twin_edge.origin, twin_edge.destination)
        if edge is None:
            raise HullInvariantError(
                f"when linking face {face} to edge {twin}, twin edge is missing")
        twin_edge.twin = edge
        self.edges[edge].twin = twin

    # -- horizon -----------------------------------------------------------

    def _is_horizon(self, e: int) -> bool:
        edge = self.edges[e]
        return (edge.twin is not None
                and not self.faces[edge.face].marked
                and self.faces[self.edges[edge.twin].face].marked)

    def _face_horizon(self, face: int) -> Optional[int]:
        for e in self.faces[face].edges:
            twin = self.edges[e].twin
            if twin is not None and self._is_horizon(twin):
                return e
        return None

    def _find_horizon(self, start: int) -> List[int]:
        """Walk the boundary between marked and unmarked faces from ``start``."""
        horizon: List[int] = []
        e = start
        steps = 0
        while True:
            steps += 1
            if steps > 2 * len(self.edges):
                raise HullInvariantError("horizon walk does not close")
            if self._is_horizon(e):
                if horizon and e == horizon[0]:
                    return horizon
                horizon.append(e)
                e = self.edges[e].next
            else:
                twin = self.edges[e].twin
                if twin is None:
                    return horizon
                e = self.edges[twin].next

    # -- construction ------------------------------------------------------

    def _permute(self) -> None:
        for i in range(len(self.points) - 1, 0, -1):
            j = int(math.floor(self._prng.random() * (i + 1)))
            self.points[i], self.points[j] = self.points[j], self.points[i]

    def _swap_into(self, position: int, i: int) -> None:
        self.points[position], self.points[i] = self.points[i], self.points[position]
        self.points[position].index = position
        self.points[i].index = i

    def _prepare(self) -> None:
        """Seed the hull with a tetrahedron and its conflicts."""
        if len(self.points) < 4:
            raise DegenerateInputError(
                f"need at least 4 points to build a hull, got {len(self.points)}")

        if self._prng is not None:
            self._permute()
        for i, point in enumerate(self.points):
            point.index = i

        v0, v1 = self.points[0], self.points[1]
        v2 = None
        for i in range(2, len(self.points)):
            candidate = self.points[i]
            cross = np.cross(v1.position - v0.position, candidate.position - v0.position)
            if np.linalg.norm(cross) > EPSILON:
                self._swap_into(2, i)
                v2 = candidate
                break
        if v2 is None:
            raise DegenerateInputError("insufficient non-planar points")

        normal = face_normal(v0, v1, v2)
        base = float(np.dot(normal, v0.position))
        v3 = None
        for i in range(3, len(self.points)):
            candidate = self.points[i]
            if not epsilonesque(base - float(np.dot(normal, candidate.position))):
                self._swap_into(3, i)
                v3 = candidate
                break
        if v3 is None:
            raise DegenerateInputError("insufficient non-planar points")

        f0 = self._create_face(v0, v1, v2, orient=v3)
        f1 = self._create_face(v0, v2, v3, orient=v1)
        f2 = self._create_face(v0, v1, v3, orient=v2)
        f3 = self._create_face(v1, v2, v3, orient=v0)
        self._link(f0, f1, v0, v2)
        self._link(f0, f2, v0, v1)
        self._link(f0, f3, v1, v2)
        self._link(f1, f2, v0, v3)
        self._link(f1, f3, v2, v3)
        self._link(f2, f3, v3, v1)
        self.current = 4

        for point in self.points[self.current:]:
            for face in (f0, f1, f2, f3):
                if self.faces[face].conflicts_with(point):
                    self.conflicts.add(face, point)

    def _add_point(self, point: LiftedVertex) -> None:
        visible = self.conflicts.faces_of(point)
        for face in visible:
            self.faces[face].marked = True

        horizon: List[int] = []
        for face in visible:
            e = self._face_horizon(face)
            if e is not None:
                horizon = self._find_horizon(e)
                break
        if not horizon:
            raise HullInvariantError(
                f"no horizon found for point {point.index} with {len(visible)} visible faces")

        first = last = None
        for h in horizon:
            edge = self.edges[h]
            twin = self.edges[edge.twin]
            far_vertex = self.edges[twin.next].destination
            created = self._create_face(point, edge.origin, edge.destination, orient=far_vertex)

            for vertex in reversed(self.conflicts.merged_vertices(edge.face, twin.face)):
                if self.faces[created].conflicts_with(vertex):
                    self.conflicts.add(created, vertex)

            self._link_to_edge(created, h)
            if last is not None:
                self._link(created, last, point, edge.origin)
            last = created
            if first is None:
                first = created

        self._link(last, first, point, self.edges[horizon[0]].origin)

        for face in visible:
            self.conflicts.remove_face(face)
            self.faces[face].alive = False

    def compute(self) -> List[int]:
        """Build the hull and return the handles of its faces."""
        self._prepare()
        while self.current < len(self.points):
            point = self.points[self.current]
            if self.conflicts.has_conflicts(point):
                self._add_point(point)
            self.current += 1

        faces = self.alive_faces()
        self._log.debug("Convex hull computed", points=len(self.points), faces=len(faces))
        return faces

    def alive_faces(self) -> List[int]:
        return [handle for handle, face in enumerate(self.faces) if face.alive]
