"""Boundary shapes for laying out a treemap on a width x height canvas."""

import math
from enum import Enum
from typing import List

from .geometry import Point, polygon_area

CIRCLE_SEGMENTS = 64


class ClipShape(str, Enum):
    """Supported boundary shapes."""

    RECTANGLE = "rectangle"
    CIRCLE = "circle"
    HEXAGON = "hexagon"


def _regular_polygon(cx: float, cy: float, r: float, count: int) -> List[Point]:
    return [
        (cx + r * math.cos(i / count * 2 * math.pi - math.pi / 2),
         cy + r * math.sin(i / count * 2 * math.pi - math.pi / 2))
        for i in range(count)
    ]


def generate_clip_polygon(width: float, height: float,
                          shape: str = ClipShape.RECTANGLE,
                          padding: float = 10) -> List[Point]:
    """
    Generate the boundary polygon of a canvas.

    Circles and hexagons are centred with radius ``min(width, height)/2 - padding``;
    rectangles are inset by ``padding``. Unknown shapes give a rectangle.

    Args:
        width: Canvas width
        height: Canvas height
        shape: One of ClipShape
        padding: Inset from the canvas edges

    Returns:
        Polygon with the engine's winding
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"canvas must have a positive size, got {width}x{height}")

    try:
        shape = ClipShape(shape)
    except ValueError:
        shape = ClipShape.RECTANGLE

    cx, cy = width / 2, height / 2
    r = min(width, height) / 2 - padding

    if shape is ClipShape.CIRCLE:
        polygon = _regular_polygon(cx, cy, r, CIRCLE_SEGMENTS)
    elif shape is ClipShape.HEXAGON:
        polygon = _regular_polygon(cx, cy, r, 6)
    else:
        polygon = [
            (padding, padding),
            (width - padding, padding),
            (width - padding, height - padding),
            (padding, height - padding),
        ]

    if r <= 0 or polygon_area(polygon) == 0:
        raise ValueError(f"padding {padding} leaves no room on a {width}x{height} canvas")
    if polygon_area(polygon) < 0:
        polygon.reverse()
    return polygon
