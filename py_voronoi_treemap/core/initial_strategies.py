"""
Initial position and weight strategies for the Voronoi map simulation.

A strategy is called as ``strategy(datum, index, data, simulation)`` and reads
the clip polygon, extent and PRNG from the simulation.
"""

import math
from typing import Any, Sequence

from .geometry import Point, point_segment_distance, polygon_area, polygon_centroid, polygon_contains


class RandomInitialPosition:
    """Uniform position inside the clip polygon, by rejection sampling."""

    def __call__(self, datum: Any, index: int, data: Sequence, simulation) -> Point:
        clip = simulation.clip
        (min_x, min_y), (max_x, max_y) = simulation.extent
        dx = max_x - min_x
        dy = max_y - min_y
        prng = simulation.prng

        x = min_x + dx * prng.random()
        y = min_y + dy * prng.random()
        while not polygon_contains(clip, (x, y)):
            x = min_x + dx * prng.random()
            y = min_y + dy * prng.random()
        return (x, y)


class PieInitialPosition:
    """Sites spread evenly on a circle around the clip centroid.

    The circle radius is half the distance from the centroid to the nearest
    clip edge. A jitter of at most 5e-4 keeps sites from sharing a line.
    """

    def __init__(self, start_angle: float = 0.0):
        self.start_angle = start_angle

    @staticmethod
    def _half_incircle_radius(centroid: Point, clip: Sequence[Point]) -> float:
        n = len(clip)
        return min(point_segment_distance(centroid, clip[i - 1], clip[i]) for i in range(n)) / 2

    def __call__(self, datum: Any, index: int, data: Sequence, simulation) -> Point:
        clip = simulation.clip
        prng = simulation.prng
        cx, cy = polygon_centroid(clip)
        radius = self._half_incircle_radius((cx, cy), clip)
        angle = self.start_angle + index * 2 * math.pi / len(data)
        return (
            cx + math.cos(angle) * radius + (prng.random() - 0.5) * 1e-3,
            cy + math.sin(angle) * radius + (prng.random() - 0.5) * 1e-3,
        )


class HalfAverageAreaInitialWeight:
    """Every site starts with half the average cell area as its weight."""

    def __call__(self, datum: Any, index: int, data: Sequence, simulation) -> float:
        return abs(polygon_area(simulation.clip)) / len(data) / 2
