"""
Conflict graph for the incremental convex hull.

A conflict links a hull face to a vertex that is not yet part of the hull and
lies strictly above that face's plane. Faces are addressed by their integer
handle in the hull's face arena and vertices by their ``index``; the graph
holds no references back into the hull.
"""

from dataclasses import dataclass
from typing import Dict, List

from .geometry import LiftedVertex


@dataclass(frozen=True)
class ConflictEdge:
    """One (face, vertex) conflict."""
    face: int
    vertex: LiftedVertex


class ConflictGraph:
    """Bipartite face/vertex structure with O(1) edge removal.

    Each side keeps its edges in an insertion-ordered dict, so removing an
    edge from both endpoints is two dict deletions. Lists are reported most
    recently added first.
    """

    def __init__(self):
        self._by_face: Dict[int, Dict[int, ConflictEdge]] = {}
        self._by_vertex: Dict[int, Dict[int, ConflictEdge]] = {}

    def __len__(self) -> int:
        return sum(len(edges) for edges in self._by_face.values())

    def add(self, face: int, vertex: LiftedVertex) -> ConflictEdge:
        edge = ConflictEdge(face, vertex)
        self._by_face.setdefault(face, {})[vertex.index] = edge
        self._by_vertex.setdefault(vertex.index, {})[face] = edge
        return edge

    def remove(self, edge: ConflictEdge) -> None:
        face_edges = self._by_face.get(edge.face)
        if face_edges is not None:
            face_edges.pop(edge.vertex.index, None)
            if not face_edges:
                del self._by_face[edge.face]

        vertex_edges = self._by_vertex.get(edge.vertex.index)
        if vertex_edges is not None:
            vertex_edges.pop(edge.face, None)
            if not vertex_edges:
                del self._by_vertex[edge.vertex.index]

    def remove_face(self, face: int) -> None:
        """Drop every conflict of a face, from both sides of the graph."""
        for edge in list(self._by_face.get(face, {}).values()):
            self.remove(edge)

    def has_conflicts(self, vertex: LiftedVertex) -> bool:
        return bool(self._by_vertex.get(vertex.index))

    def faces_of(self, vertex: LiftedVertex) -> List[int]:
        """Faces a vertex sees, most recently linked first."""
        return list(reversed(list(self._by_vertex.get(vertex.index, {}).keys())))

    def vertices_of(self, face: int) -> List[LiftedVertex]:
        """Vertices conflicting with a face, by descending index."""
        edges = self._by_face.get(face, {}).values()
        return sorted((edge.vertex for edge in edges), key=lambda v: v.index, reverse=True)

    def merged_vertices(self, face_a: int, face_b: int) -> List[LiftedVertex]:
        """Sorted merge (descending index, no duplicates) of two faces' lists."""
        first = self.vertices_of(face_a)
        second = self.vertices_of(face_b)
        merged: List[LiftedVertex] = []
        i = j = 0
        while i < len(first) or j < len(second):
            if i < len(first) and j < len(second):
                v1, v2 = first[i], second[j]
                if v1.index == v2.index:
                    merged.append(v1)
                    i += 1
                    j += 1
                elif v1.index > v2.index:
                    merged.append(v1)
                    i += 1
                else:
                    merged.append(v2)
                    j += 1
            elif i < len(first):
                merged.append(first[i])
                i += 1
            else:
                merged.append(second[j])
                j += 1
        return merged
