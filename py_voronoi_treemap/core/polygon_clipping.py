"""Sutherland-Hodgman clipping of a polygon against a convex boundary."""

import math
from typing import List, Sequence

from .geometry import Point, line_intersection


def is_closed(ring: Sequence[Point]) -> bool:
    """True when the ring repeats its first point as its last."""
    first, last = ring[0], ring[-1]
    return first[0] == last[0] and first[1] == last[1]


def _inside(p: Point, a: Point, b: Point) -> bool:
    return (b[0] - a[0]) * (p[1] - a[1]) < (b[1] - a[1]) * (p[0] - a[0])


def clip_polygon(clip: Sequence[Point], subject: Sequence[Point]) -> List[Point]:
    """Clip ``subject`` against the convex ring ``clip``.

    The clip ring must have the engine's winding. Neither input is mutated.
    A closed subject yields a closed result. Intersections of parallel lines
    are dropped.
    """
    if len(clip) == 0 or len(subject) == 0:
        return []

    closed = 1 if is_closed(subject) else 0
    n = len(clip) - (1 if is_closed(clip) else 0)
    output: List[Point] = [(p[0], p[1]) for p in subject]
    a = clip[n - 1]

    for i in range(n):
        ring = output
        output = []
        m = len(ring) - closed
        if m <= 0:
            break

        b = clip[i]
        c = ring[m - 1]
        for j in range(m):
            d = ring[j]
            if _inside(d, a, b):
                if not _inside(c, a, b):
                    point = line_intersection(c, d, a, b)
                    if math.isfinite(point[0]):
                        output.append(point)
                output.append(d)
            elif _inside(c, a, b):
                point = line_intersection(c, d, a, b)
                if math.isfinite(point[0]):
                    output.append(point)
            c = d

        if closed and output:
            output.append(output[0])
        a = b

    return output
