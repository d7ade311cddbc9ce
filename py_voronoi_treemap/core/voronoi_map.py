"""
Voronoi map simulation.

Iteratively moves sites and adapts their weights until each site's power
diagram cell has an area proportional to its datum's weight. One simulation
lays out one set of siblings; the treemap builder runs one per parent node.
"""

import math
import random
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

import structlog

from ..config.options import SimulationOptions
from .errors import InvariantViolationError
from .flickering import FlickeringMitigation
from .geometry import EPSILON, Extent, Point, polygon_area, polygon_centroid, polygon_contains
from .initial_strategies import HalfAverageAreaInitialWeight, RandomInitialPosition
from .overweight import OVERWEIGHT_HANDLERS
from .weighted_voronoi import Accessor, CellPolygon, WeightedVoronoi, field_accessor

logger = structlog.get_logger()

POSITION_FLICKERING_INFLUENCE = 0.5
WEIGHT_FLICKERING_INFLUENCE = 0.1


class SimulationStatus(str, Enum):
    """Lifecycle of a simulation."""

    UNINITIALIZED = "uninitialized"
    RUNNING = "running"
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"


@dataclass
class MapPoint:
    """Per-site simulation state."""
    index: int
    x: float
    y: float
    weight: float
    targeted_area: float
    original_data: Any = None


@dataclass
class SimulationState:
    """Snapshot returned by state() and tick()."""
    status: SimulationStatus
    ended: bool
    iteration_count: int
    convergence_ratio: float
    polygons: List[CellPolygon] = field(default_factory=list)


class VoronoiMapSimulation:
    """
    Fits power diagram cell areas to data weights.

    Changing any setting re-initializes the simulation on the next tick() or
    state() call.

    Args:
        data: Sibling data, one site per datum
        weight: Accessor for a datum's weight (default: ``weight`` key/attribute)
        clip, extent, size: Boundary, see normalize_boundary()
        options: SimulationOptions
        prng: Generator exposing ``random()``, defaults to the system random
        initial_position: Strategy giving each site's starting (x, y)
        initial_weight: Strategy giving each site's starting weight
        log: Optional structlog logger scoped to this simulation
    """

    def __init__(self, data: Sequence[Any],
                 weight: Optional[Accessor] = None,
                 clip: Optional[Sequence[Point]] = None,
                 extent: Optional[Sequence[Point]] = None,
                 size: Optional[Sequence[float]] = None,
                 options: Optional[SimulationOptions] = None,
                 prng=None,
                 initial_position: Optional[Callable] = None,
                 initial_weight: Optional[Callable] = None,
                 log=None):
        self.data = list(data)
        self._log = log or logger.bind(run_id=str(uuid.uuid4()))
        self._weight = weight or field_accessor("weight")
        self._options = options or SimulationOptions()
        self._prng = prng or random.Random()
        self._default_initial_position = RandomInitialPosition()
        self._initial_position = initial_position or self._default_initial_position
        self._initial_weight = initial_weight or HalfAverageAreaInitialWeight()
        self._voronoi = WeightedVoronoi(clip=clip, extent=extent, size=size,
                                        prng=self._prng, log=self._log)
        self._flickering = FlickeringMitigation(self._options.flickering_length)
        self._listeners: Dict[str, List[Callable]] = {"tick": [], "end": []}

        self._should_initialize = True
        self._status = SimulationStatus.UNINITIALIZED
        self._site_count = 0
        self._total_area = 0.0
        self._area_error_threshold = 0.0
        self._iteration_count = 0
        self._area_error = math.nan
        self._map_points: List[MapPoint] = []
        self._polygons: List[CellPolygon] = []

    # -- configuration -----------------------------------------------------

    def _invalidate(self) -> None:
        self._should_initialize = True
        self._status = SimulationStatus.UNINITIALIZED

    @property
    def options(self) -> SimulationOptions:
        return self._options

    @options.setter
    def options(self, options: SimulationOptions) -> None:
        self._options = options
        self._invalidate()

    def configure(self, **changes) -> "VoronoiMapSimulation":
        """Replace some options, validating the result."""
        self.options = type(self._options)(**{**self._options.model_dump(), **changes})
        return self

    @property
    def weight(self) -> Accessor:
        return self._weight

    @weight.setter
    def weight(self, accessor: Accessor) -> None:
        self._weight = accessor
        self._invalidate()

    @property
    def clip(self) -> List[Point]:
        return self._voronoi.clip

    @clip.setter
    def clip(self, polygon: Sequence[Point]) -> None:
        self._voronoi.clip = polygon
        self._invalidate()

    @property
    def extent(self) -> Extent:
        return self._voronoi.extent

    @extent.setter
    def extent(self, extent: Sequence[Point]) -> None:
        self._voronoi.extent = extent
        self._invalidate()

    @property
    def size(self):
        return self._voronoi.size

    @size.setter
    def size(self, size: Sequence[float]) -> None:
        self._voronoi.size = size
        self._invalidate()

    @property
    def prng(self):
        return self._prng

    @prng.setter
    def prng(self, prng) -> None:
        self._prng = prng
        self._voronoi.prng = prng
        self._invalidate()

    @property
    def initial_position(self) -> Callable:
        return self._initial_position

    @initial_position.setter
    def initial_position(self, strategy: Callable) -> None:
        self._initial_position = strategy
        self._invalidate()

    @property
    def initial_weight(self) -> Callable:
        return self._initial_weight

    @initial_weight.setter
    def initial_weight(self, strategy: Callable) -> None:
        self._initial_weight = strategy
        self._invalidate()

    def on(self, event: str, callback: Optional[Callable]) -> "VoronoiMapSimulation":
        """Register a ``tick`` or ``end`` listener; None clears the event."""
        if event not in self._listeners:
            raise ValueError(f"Unknown event: {event}")
        if callback is None:
            self._listeners[event] = []
        else:
            self._listeners[event].append(callback)
        return self

    # -- lifecycle ---------------------------------------------------------

    @property
    def ended(self) -> bool:
        return self._status in (SimulationStatus.CONVERGED, SimulationStatus.EXHAUSTED)

    def state(self) -> SimulationState:
        if self._should_initialize:
            self._initialize()
        return SimulationState(
            status=self._status,
            ended=self.ended,
            iteration_count=self._iteration_count,
            convergence_ratio=self._area_error / self._total_area,
            polygons=self._polygons,
        )

    def tick(self) -> SimulationState:
        """Run one iteration unless the simulation has already ended."""
        if self._should_initialize:
            self._initialize()
        if self.ended:
            return self.state()

        self._check_cells(self._polygons)
        self._polygons = self._adapt(self._flickering.ratio())
        self._iteration_count += 1
        self._area_error = self._compute_area_error(self._polygons)
        self._flickering.add(self._area_error)

        if self._area_error < self._area_error_threshold:
            self._status = SimulationStatus.CONVERGED
        elif self._iteration_count >= self._options.max_iteration_count:
            self._status = SimulationStatus.EXHAUSTED

        self._log.debug("Simulation tick", iteration=self._iteration_count,
                        area_error=self._area_error, status=self._status.value)
        for callback in self._listeners["tick"]:
            callback(self)
        if self.ended:
            self._log.info("Simulation ended", status=self._status.value,
                           iterations=self._iteration_count, sites=self._site_count,
                           convergence_ratio=self._area_error / self._total_area)
            for callback in self._listeners["end"]:
                callback(self)
        return self.state()

    def run(self) -> Iterator[SimulationState]:
        """Yield the state after every tick until the simulation ends."""
        while not self.state().ended:
            yield self.tick()

    # -- internals ---------------------------------------------------------

    def _initialize(self) -> None:
        if not self.data:
            raise ValueError("simulation needs at least one datum")

        self._flickering.length = self._options.flickering_length
        self._site_count = len(self.data)
        self._total_area = abs(polygon_area(self.clip))
        self._area_error_threshold = self._options.convergence_ratio * self._total_area
        self._flickering.clear()
        self._flickering.total_area = self._total_area
        self._iteration_count = 0
        self._area_error = math.nan
        self._map_points = self._create_map_points()
        self._correct_overweight()
        self._polygons = self._voronoi.compute(self._map_points)
        self._status = SimulationStatus.RUNNING
        self._should_initialize = False

        self._log.info("Simulation initialized", sites=self._site_count,
                       total_area=self._total_area,
                       strategy=self._options.overweight_strategy.value)

    def _create_map_points(self) -> List[MapPoint]:
        weights = [float(self._weight(d)) for d in self.data]
        min_allowed_weight = max(weights) * self._options.min_weight_ratio
        weights = [max(w, min_allowed_weight) for w in weights]
        total_weight = sum(weights)
        if not total_weight > 0:
            raise ValueError(f"total weight must be positive, got {total_weight}")

        map_points = []
        for i, datum in enumerate(self.data):
            position = self._initial_position(datum, i, self.data, self)
            if not polygon_contains(self.clip, position):
                position = self._default_initial_position(datum, i, self.data, self)
            map_points.append(MapPoint(
                index=i,
                x=float(position[0]),
                y=float(position[1]),
                weight=float(self._initial_weight(datum, i, self.data, self)),
                targeted_area=self._total_area * weights[i] / total_weight,
                original_data=datum,
            ))
        return map_points

    def _correct_overweight(self) -> None:
        handler = OVERWEIGHT_HANDLERS[self._options.overweight_strategy]
        handler(self._map_points, self._options.overweight_max_iterations)

    def _check_cells(self, polygons: List[CellPolygon]) -> None:
        if len(polygons) < self._site_count:
            raise InvariantViolationError(
                f"{self._site_count - len(polygons)} of {self._site_count} sites have no area")

    def _adapt(self, flickering_ratio: float) -> List[CellPolygon]:
        self._adapt_positions(self._polygons, flickering_ratio)
        polygons = self._voronoi.compute(self._map_points)
        self._check_cells(polygons)

        self._adapt_weights(polygons, flickering_ratio)
        polygons = self._voronoi.compute(self._map_points)
        self._check_cells(polygons)
        return polygons

    def _adapt_positions(self, polygons: List[CellPolygon], flickering_ratio: float) -> None:
        """Move each site towards its cell's centroid."""
        damping = 1 - POSITION_FLICKERING_INFLUENCE * flickering_ratio
        for polygon in polygons:
            map_point = polygon.site
            cx, cy = polygon_centroid(polygon)
            map_point.x += (cx - map_point.x) * damping
            map_point.y += (cy - map_point.y) * damping
        self._correct_overweight()

    def _adapt_weights(self, polygons: List[CellPolygon], flickering_ratio: float) -> None:
        """Scale each weight by its target/current area ratio, clamped."""
        mitigation = WEIGHT_FLICKERING_INFLUENCE * flickering_ratio
        lower = 1 - WEIGHT_FLICKERING_INFLUENCE + mitigation
        upper = 1 + WEIGHT_FLICKERING_INFLUENCE - mitigation
        for polygon in polygons:
            map_point = polygon.site
            adapt_ratio = map_point.targeted_area / polygon_area(polygon)
            adapt_ratio = min(max(adapt_ratio, lower), upper)
            map_point.weight = max(map_point.weight * adapt_ratio, EPSILON)
        self._correct_overweight()

    @staticmethod
    def _compute_area_error(polygons: List[CellPolygon]) -> float:
        return sum(abs(p.site.targeted_area - polygon_area(p)) for p in polygons)
