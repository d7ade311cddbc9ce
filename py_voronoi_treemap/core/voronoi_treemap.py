"""Recursive Voronoi treemap built from a value hierarchy."""

import random
import uuid
from typing import List, Optional, Sequence, Tuple

import structlog

from ..config.options import TreemapOptions
from .geometry import Point
from .hierarchy import HierarchyNode
from .voronoi_map import VoronoiMapSimulation
from .weighted_voronoi import Boundary, normalize_boundary

logger = structlog.get_logger()


class VoronoiTreemap:
    """
    Assigns every node of a hierarchy a polygon whose area matches its value.

    Each parent's children are laid out by their own VoronoiMapSimulation,
    driven to the end before its children are visited. Nodes are processed
    from an explicit stack, so hierarchy depth is bounded only by
    ``options.max_depth``.

    Args:
        clip, extent, size: Boundary of the root, see normalize_boundary()
        options: TreemapOptions
        prng: Generator exposing ``random()``, defaults to the system random
        log: Optional structlog logger scoped to this build
    """

    def __init__(self, clip: Optional[Sequence[Point]] = None,
                 extent: Optional[Sequence[Point]] = None,
                 size: Optional[Sequence[float]] = None,
                 options: Optional[TreemapOptions] = None,
                 prng=None, log=None):
        self.boundary: Boundary = normalize_boundary(clip, extent, size)
        self.options = options or TreemapOptions()
        self.prng = prng or random.Random()
        self._log = log or logger.bind(run_id=str(uuid.uuid4()))

    @property
    def clip(self) -> List[Point]:
        return self.boundary.clip

    def build(self, root: HierarchyNode,
              clip: Optional[Sequence[Point]] = None) -> HierarchyNode:
        """Lay out ``root`` in place and return it.

        ``clip`` overrides the root boundary for this build only.
        """
        boundary = self.boundary if clip is None else normalize_boundary(clip)
        self._log.info("Building voronoi treemap", height=root.height,
                       clip_points=len(boundary.clip))
        simulations = 0
        stack: List[Tuple[HierarchyNode, List[Point], int]] = [(root, boundary.clip, 0)]

        while stack:
            node, polygon, depth = stack.pop()
            node.polygon = polygon
            if not node.children:
                continue
            if self.options.max_depth is not None and depth >= self.options.max_depth:
                raise ValueError(
                    f"hierarchy deeper than max_depth={self.options.max_depth}")

            simulation = VoronoiMapSimulation(
                node.children,
                weight=lambda child: child.value,
                clip=polygon,
                options=self.options,
                prng=self.prng,
                log=self._log,
            )
            state = simulation.state()
            while not state.ended:
                state = simulation.tick()
            simulations += 1

            for cell in reversed(state.polygons):
                stack.append((cell.site.original_data, cell, depth + 1))

        self._log.info("Voronoi treemap built", simulations=simulations,
                       leaves=len(root.leaves()))
        return root

    __call__ = build
