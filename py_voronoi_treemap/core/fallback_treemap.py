"""
Squarified rectangle treemap.

Used as a fallback layout when a Voronoi treemap cannot be computed for a
hierarchy. Rows of children are packed so their aspect ratios stay close to
``ratio``, following Bruls, Huizing and van Wijk's squarified algorithm.
"""

import math
from typing import List, Tuple

from .hierarchy import HierarchyNode

PHI = (1 + math.sqrt(5)) / 2

Rect = Tuple[float, float, float, float]


def rect_polygon(x0: float, y0: float, x1: float, y1: float):
    """Rectangle as a polygon with the engine's winding."""
    return [(x0, y0), (x0, y1), (x1, y1), (x1, y0)]


def _worst_ratio(sum_value: float, min_value: float, max_value: float, alpha: float) -> float:
    beta = sum_value * sum_value * alpha
    if beta <= 0 or min_value <= 0:
        return math.inf
    return max(max_value / beta, beta / min_value)


def _dice(values: List[float], total: float, x0: float, y0: float, x1: float, y1: float) -> List[Rect]:
    k = (x1 - x0) / total if total else 0.0
    rects = []
    for value in values:
        x_next = x0 + value * k
        rects.append((x0, y0, x_next, y1))
        x0 = x_next
    return rects


def _slice(values: List[float], total: float, x0: float, y0: float, x1: float, y1: float) -> List[Rect]:
    k = (y1 - y0) / total if total else 0.0
    rects = []
    for value in values:
        y_next = y0 + value * k
        rects.append((x0, y0, x1, y_next))
        y0 = y_next
    return rects


def squarify_rects(values: List[float], x0: float, y0: float, x1: float, y1: float,
                   ratio: float = PHI) -> List[Rect]:
    """
    Split a rectangle into one rectangle per value.

    Args:
        values: Non-negative values, ideally sorted descending
        x0, y0, x1, y1: Rectangle to split
        ratio: Target aspect ratio of the output rectangles

    Returns:
        One (x0, y0, x1, y1) tuple per value, in input order
    """
    n = len(values)
    remaining = float(sum(values))
    rects: List[Rect] = []
    if remaining <= 0 or x1 <= x0 or y1 <= y0:
        return [(x0, y0, x0, y0)] * n

    i0 = i1 = 0
    while i0 < n:
        dx = x1 - x0
        dy = y1 - y0
        if dx <= 0 or dy <= 0 or remaining <= 0:
            rects.extend([(x0, y0, x0, y0)] * (n - i0))
            break

        # Leading zeros join the first non-zero value's row.
        sum_value = 0.0
        while True:
            sum_value += values[i1]
            i1 += 1
            if sum_value or i1 >= n:
                break
        min_value = max_value = sum_value
        alpha = max(dy / dx, dx / dy) / (remaining * ratio)
        min_ratio = _worst_ratio(sum_value, min_value, max_value, alpha)

        while i1 < n:
            value = values[i1]
            sum_value += value
            min_value = min(min_value, value)
            max_value = max(max_value, value)
            new_ratio = _worst_ratio(sum_value, min_value, max_value, alpha)
            if new_ratio > min_ratio:
                sum_value -= value
                break
            min_ratio = new_ratio
            i1 += 1

        row = values[i0:i1]
        if dx < dy:
            y_split = y0 + dy * sum_value / remaining
            rects.extend(_dice(row, sum_value, x0, y0, x1, y_split))
            y0 = y_split
        else:
            x_split = x0 + dx * sum_value / remaining
            rects.extend(_slice(row, sum_value, x0, y0, x_split, y1))
            x0 = x_split
        remaining -= sum_value
        i0 = i1
    return rects


def squarify(root: HierarchyNode, width: float, height: float,
             padding: float = 0, ratio: float = PHI) -> HierarchyNode:
    """
    Lay out a summed hierarchy as nested rectangles.

    Each internal node's rectangle is inset by ``padding`` before its children
    are placed. Every node gets a rectangular ``polygon``.
    """
    stack = [(root, (0.0, 0.0, float(width), float(height)))]
    while stack:
        node, (x0, y0, x1, y1) = stack.pop()
        node.polygon = rect_polygon(x0, y0, x1, y1)
        if not node.children:
            continue

        inner_x0, inner_x1 = x0 + padding, x1 - padding
        inner_y0, inner_y1 = y0 + padding, y1 - padding
        if inner_x1 < inner_x0:
            inner_x0 = inner_x1 = (x0 + x1) / 2
        if inner_y1 < inner_y0:
            inner_y0 = inner_y1 = (y0 + y1) / 2

        rects = squarify_rects([max(child.value, 0.0) for child in node.children],
                               inner_x0, inner_y0, inner_x1, inner_y1, ratio)
        stack.extend(zip(node.children, rects))
    return root
