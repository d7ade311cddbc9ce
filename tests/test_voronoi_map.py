"""Tests for the Voronoi map simulation."""

import math
from unittest.mock import patch

import pytest
from shapely.geometry import Polygon

from py_voronoi_treemap.config.options import OverweightStrategy, SimulationOptions
from py_voronoi_treemap.core.alea_prng import AleaPRNG
from py_voronoi_treemap.core.errors import InvariantViolationError
from py_voronoi_treemap.core.geometry import polygon_area, polygon_contains
from py_voronoi_treemap.core.initial_strategies import (
    HalfAverageAreaInitialWeight, PieInitialPosition, RandomInitialPosition,
)
from py_voronoi_treemap.core.voronoi_map import SimulationStatus, VoronoiMapSimulation

TRIANGLE_SITES = [
    {"x": 0.5, "y": 0.8, "weight": 1},
    {"x": 0.5 - 0.3 * math.cos(math.pi / 6), "y": 0.35, "weight": 1},
    {"x": 0.5 + 0.3 * math.cos(math.pi / 6), "y": 0.35, "weight": 1},
]


def given_position(datum, index, data, simulation):
    return (datum["x"], datum["y"])


def run_to_end(simulation):
    state = simulation.state()
    while not state.ended:
        state = simulation.tick()
    return state


class TestTriangleScenario:
    """Test three equal sites on an equilateral triangle in the unit square."""

    def test_converges_to_equal_thirds(self):
        """Test that each cell ends within 1% of a third of the square."""
        simulation = VoronoiMapSimulation(
            TRIANGLE_SITES,
            options=SimulationOptions(convergence_ratio=0.01, max_iteration_count=50),
            prng=AleaPRNG("triangle"),
            initial_position=given_position,
        )
        state = run_to_end(simulation)

        assert state.status == SimulationStatus.CONVERGED
        assert len(state.polygons) == 3
        for polygon in state.polygons:
            assert polygon_area(polygon) == pytest.approx(1 / 3, abs=0.01)


class TestTermination:
    """Test that every simulation reaches a terminal state."""

    @pytest.mark.parametrize("strategy", list(OverweightStrategy))
    def test_ends_within_iteration_bound(self, strategy):
        """Test that the simulation stops after max_iteration_count ticks at most."""
        data = [{"weight": w} for w in (1, 2, 3, 5, 8, 13)]
        simulation = VoronoiMapSimulation(
            data,
            options=SimulationOptions(convergence_ratio=1e-9, max_iteration_count=7,
                                      overweight_strategy=strategy),
            prng=AleaPRNG("bound"),
        )
        states = []
        for _ in range(7):
            assert not simulation.state().ended
            states.append(simulation.tick())
        assert states[-1].ended
        assert states[-1].iteration_count <= 7
        assert simulation.ended
        assert simulation.state().ended

    def test_tick_after_end_is_noop(self):
        """Test that ticking an ended simulation returns the same state."""
        simulation = VoronoiMapSimulation(
            [{"weight": 1}, {"weight": 2}],
            options=SimulationOptions(max_iteration_count=2),
            prng=AleaPRNG("noop"),
        )
        state = run_to_end(simulation)
        again = simulation.tick()
        assert again.iteration_count == state.iteration_count
        assert again.status == state.status

    def test_run_generator(self):
        """Test that run() yields once per tick and stops at the end."""
        simulation = VoronoiMapSimulation(
            [{"weight": 1}, {"weight": 3}, {"weight": 2}],
            options=SimulationOptions(max_iteration_count=10),
            prng=AleaPRNG("run"),
        )
        states = list(simulation.run())
        assert 1 <= len(states) <= 10
        assert states[-1].ended
        assert all(not s.ended for s in states[:-1])
        assert [s.iteration_count for s in states] == list(range(1, len(states) + 1))

    def test_zero_iterations(self):
        """Test that a zero iteration bound still ends after the first tick."""
        simulation = VoronoiMapSimulation(
            [{"weight": 1}, {"weight": 1}],
            options=SimulationOptions(max_iteration_count=0, convergence_ratio=1e-9),
            prng=AleaPRNG("zero"),
        )
        assert simulation.tick().ended


class TestSimulationState:
    """Test simulation lifecycle and outputs."""

    def test_uninitialized_until_queried(self):
        """Test that construction does no work."""
        simulation = VoronoiMapSimulation([{"weight": 1}])
        assert not simulation.ended
        assert simulation.state().status == SimulationStatus.RUNNING

    def test_single_datum_converges_in_one_tick(self):
        """Test that a lone datum takes the whole clip at once."""
        simulation = VoronoiMapSimulation([{"weight": 5}], size=(4, 3), prng=AleaPRNG("one"))
        state = simulation.tick()
        assert state.status == SimulationStatus.CONVERGED
        assert state.iteration_count == 1
        assert len(state.polygons) == 1
        assert polygon_area(state.polygons[0]) == pytest.approx(12.0)

    def test_polygons_tile_clip(self):
        """Test that the final polygons lie in the clip and cover it."""
        data = [{"weight": w} for w in (1, 1, 2, 4)]
        simulation = VoronoiMapSimulation(data, size=(200, 100), prng=AleaPRNG("tile"))
        state = run_to_end(simulation)

        clip = Polygon(simulation.clip).buffer(1e-6)
        assert len(state.polygons) == 4
        for polygon in state.polygons:
            assert clip.contains(Polygon(polygon))
        assert sum(polygon_area(p) for p in state.polygons) == pytest.approx(20000, rel=1e-9)

    def test_areas_follow_weights(self):
        """Test that converged areas are proportional to weights."""
        data = [{"weight": w, "id": i} for i, w in enumerate((1, 2, 3, 4))]
        simulation = VoronoiMapSimulation(
            data, options=SimulationOptions(max_iteration_count=300), prng=AleaPRNG("areas"))
        state = run_to_end(simulation)
        assert state.status == SimulationStatus.CONVERGED
        total_error = sum(abs(polygon_area(p) - p.site.targeted_area) for p in state.polygons)
        assert total_error < 0.01
        for polygon in state.polygons:
            assert polygon.site.targeted_area == pytest.approx(polygon.site.original_data["weight"] / 10)

    def test_seeded_runs_are_reproducible(self):
        """Test that the same seed gives the same layout."""
        data = [{"weight": w} for w in (3, 1, 4, 1, 5)]

        def layout():
            state = run_to_end(VoronoiMapSimulation(data, prng=AleaPRNG("same")))
            return [(p.site.index, round(polygon_area(p), 12)) for p in state.polygons]

        assert layout() == layout()

    def test_min_weight_ratio_floors_targets(self):
        """Test that tiny weights are raised to a share of the largest."""
        data = [{"weight": 100}, {"weight": 0}]
        simulation = VoronoiMapSimulation(
            data, options=SimulationOptions(min_weight_ratio=0.1), prng=AleaPRNG("floor"))
        state = simulation.state()
        targets = sorted(p.site.targeted_area for p in state.polygons)
        assert targets[0] == pytest.approx(10 / 110)

    def test_empty_data(self):
        """Test that a simulation needs data."""
        with pytest.raises(ValueError):
            VoronoiMapSimulation([]).state()

    def test_zero_total_weight(self):
        """Test that all-zero weights are rejected."""
        with pytest.raises(ValueError):
            VoronoiMapSimulation([{"weight": 0}, {"weight": 0}]).state()

    @pytest.mark.parametrize("prepare", [True, False])
    def test_lost_cell_raises(self, prepare):
        """Test that a diagram with fewer cells than sites stops the simulation."""
        simulation = VoronoiMapSimulation(
            [{"weight": 1}, {"weight": 2}, {"weight": 3}], prng=AleaPRNG("lost"))
        if prepare:
            simulation.state()
        compute = simulation._voronoi.compute

        with patch.object(simulation._voronoi, "compute",
                          side_effect=lambda points: compute(points)[:-1]):
            with pytest.raises(InvariantViolationError):
                simulation.tick()


class TestConfiguration:
    """Test reconfiguration and listeners."""

    def test_configure_reinitializes(self):
        """Test that changing options restarts the simulation."""
        simulation = VoronoiMapSimulation([{"weight": 1}, {"weight": 2}], prng=AleaPRNG("cfg"))
        simulation.tick()
        simulation.configure(max_iteration_count=3)
        assert simulation.options.max_iteration_count == 3
        state = simulation.state()
        assert state.iteration_count == 0
        assert state.status == SimulationStatus.RUNNING

    def test_configure_validates(self):
        """Test that invalid option values are rejected."""
        simulation = VoronoiMapSimulation([{"weight": 1}])
        with pytest.raises(ValueError):
            simulation.configure(convergence_ratio=0)

    def test_clip_setter(self):
        """Test that a new clip is used after re-initialization."""
        simulation = VoronoiMapSimulation([{"weight": 1}], prng=AleaPRNG("clip"))
        simulation.clip = [(0, 0), (0, 2), (2, 2), (2, 0)]
        state = simulation.tick()
        assert polygon_area(state.polygons[0]) == pytest.approx(4.0)

    def test_weight_accessor(self):
        """Test reading weights through a custom accessor."""
        simulation = VoronoiMapSimulation([3, 1], weight=lambda d: d, prng=AleaPRNG("acc"))
        targets = sorted(p.site.targeted_area for p in simulation.state().polygons)
        assert targets == pytest.approx([0.25, 0.75])

    def test_listeners(self):
        """Test tick and end callbacks."""
        ticks, ends = [], []
        simulation = VoronoiMapSimulation(
            [{"weight": 1}, {"weight": 2}],
            options=SimulationOptions(max_iteration_count=4, convergence_ratio=1e-9),
            prng=AleaPRNG("listen"),
        )
        simulation.on("tick", ticks.append).on("end", ends.append)
        run_to_end(simulation)
        assert len(ticks) == 4
        assert ends == [simulation]

    def test_unknown_event(self):
        """Test that only tick and end can be listened to."""
        with pytest.raises(ValueError):
            VoronoiMapSimulation([{"weight": 1}]).on("start", print)


class TestInitialStrategies:
    """Test initial positions and weights."""

    def test_random_positions_inside_clip(self):
        """Test rejection sampling inside a triangle."""
        simulation = VoronoiMapSimulation(
            [{"weight": 1}] * 20, clip=[(0, 0), (0, 1), (1, 0)], prng=AleaPRNG("inside"))
        strategy = RandomInitialPosition()
        for i in range(20):
            assert polygon_contains(simulation.clip, strategy(None, i, simulation.data, simulation))

    def test_pie_positions(self):
        """Test that pie positions sit on a circle around the centroid."""
        data = [{"weight": 1}] * 4
        simulation = VoronoiMapSimulation(data, size=(2, 2), prng=AleaPRNG("pie"),
                                          initial_position=PieInitialPosition())
        strategy = simulation.initial_position
        for i in range(4):
            x, y = strategy(data[i], i, data, simulation)
            assert math.hypot(x - 1, y - 1) == pytest.approx(0.5, abs=1e-3)
        run_to_end(simulation)

    def test_half_average_area_weight(self):
        """Test the initial weight."""
        data = [{"weight": 1}] * 4
        simulation = VoronoiMapSimulation(data, size=(2, 2))
        assert HalfAverageAreaInitialWeight()(data[0], 0, data, simulation) == pytest.approx(0.5)
