"""Tests for clipped power diagram computation."""

import random
from types import SimpleNamespace

import pytest
from shapely.geometry import Polygon

from py_voronoi_treemap.core.alea_prng import AleaPRNG
from py_voronoi_treemap.core.errors import DegenerateInputError
from py_voronoi_treemap.core.geometry import polygon_area, polygon_centroid
from py_voronoi_treemap.core.weighted_voronoi import (
    UNIT_SQUARE, WeightedVoronoi, field_accessor, normalize_boundary,
)


def jittered_sites(seed="sites", rows=3, cols=3, size=1.0):
    """Sites on a jittered grid with small weights, so no cell vanishes."""
    prng = AleaPRNG(seed)
    sites = []
    for i in range(rows):
        for j in range(cols):
            sites.append({
                "x": (j + 0.3 + 0.4 * prng.random()) * size / cols,
                "y": (i + 0.3 + 0.4 * prng.random()) * size / rows,
                "weight": 0.005 * prng.random() * size * size,
                "id": i * cols + j,
            })
    return sites


class TestNormalizeBoundary:
    """Test derivation of clip, extent and size."""

    def test_default_is_unit_square(self):
        """Test the boundary used when nothing is given."""
        boundary = normalize_boundary()
        assert boundary.clip == UNIT_SQUARE
        assert boundary.extent == ((0.0, 0.0), (1.0, 1.0))
        assert boundary.size == (1.0, 1.0)

    def test_from_size(self):
        """Test a size anchored at the origin."""
        boundary = normalize_boundary(size=(4, 2))
        assert boundary.extent == ((0.0, 0.0), (4.0, 2.0))
        assert polygon_area(boundary.clip) == pytest.approx(8.0)

    def test_from_extent(self):
        """Test an extent away from the origin."""
        boundary = normalize_boundary(extent=[[1, 2], [3, 5]])
        assert boundary.size == (2.0, 3.0)
        assert polygon_area(boundary.clip) == pytest.approx(6.0)

    def test_clip_takes_precedence(self):
        """Test that the clip polygon wins over extent and size."""
        triangle = [(0, 0), (0, 2), (2, 0)]
        boundary = normalize_boundary(clip=triangle, extent=[[0, 0], [9, 9]], size=(9, 9))
        assert boundary.extent == ((0.0, 0.0), (2.0, 2.0))
        assert polygon_area(boundary.clip) == pytest.approx(2.0)

    def test_reversed_clip_is_rewound(self):
        """Test that a clip with the opposite winding is reversed."""
        boundary = normalize_boundary(clip=list(reversed(UNIT_SQUARE)))
        assert polygon_area(boundary.clip) == pytest.approx(1.0)

    def test_non_convex_clip_is_wrapped(self):
        """Test that a non-convex clip is replaced by its convex hull."""
        boundary = normalize_boundary(clip=[(0, 0), (0, 2), (1, 1), (2, 2), (2, 0)])
        assert len(boundary.clip) == 4
        assert polygon_area(boundary.clip) == pytest.approx(4.0)

    @pytest.mark.parametrize("kwargs", [
        {"clip": [(0, 0), (1, 1)]},
        {"extent": [[1, 1], [0, 2]]},
        {"size": (0, 1)},
        {"size": (-1, 1)},
    ])
    def test_invalid_boundary(self, kwargs):
        """Test that unusable boundaries are rejected."""
        with pytest.raises(ValueError):
            normalize_boundary(**kwargs)


class TestFieldAccessor:
    """Test datum accessors."""

    def test_mapping_and_attribute(self):
        """Test reading keys and attributes alike."""
        get_x = field_accessor("x")
        assert get_x({"x": 3}) == 3
        assert get_x(SimpleNamespace(x=4)) == 4


class TestWeightedVoronoi:
    """Test the clipped power diagram."""

    def test_one_polygon_per_site(self):
        """Test that every site gets exactly one polygon inside the clip."""
        sites = jittered_sites()
        polygons = WeightedVoronoi().compute(sites)
        assert len(polygons) == len(sites)
        assert {p.site["id"] for p in polygons} == {s["id"] for s in sites}

        clip = Polygon(UNIT_SQUARE).buffer(1e-9)
        for polygon in polygons:
            shape = Polygon(polygon)
            assert shape.is_valid
            assert clip.contains(shape)
            # convex: the polygon equals its own hull
            assert shape.convex_hull.area == pytest.approx(shape.area, abs=1e-9)

    def test_areas_sum_to_clip_area(self):
        """Test that the cells tile the clip polygon."""
        polygons = WeightedVoronoi(size=(300, 200)).compute(
            jittered_sites(rows=4, cols=3, size=200))
        assert sum(p.area for p in polygons) == pytest.approx(300 * 200, rel=1e-9)

    def test_areas_sum_in_circle(self):
        """Test tiling of a convex non-rectangular clip."""
        from py_voronoi_treemap.core.clip_shapes import generate_clip_polygon
        clip = generate_clip_polygon(100, 100, "circle", padding=0)
        voronoi = WeightedVoronoi(clip=clip)
        sites = [{"x": 30 + 40 * ((i * 7) % 5) / 5, "y": 25 + 50 * i / 6, "weight": 1.0}
                 for i in range(6)]
        polygons = voronoi.compute(sites)
        assert len(polygons) == 6
        assert sum(p.area for p in polygons) == pytest.approx(polygon_area(voronoi.clip), rel=1e-9)

    def test_permutation_invariance(self):
        """Test that the result depends on the site set, not its order."""
        sites = jittered_sites()
        shuffled = list(sites)
        random.Random(3).shuffle(shuffled)

        first = {p.site["id"]: p for p in WeightedVoronoi().compute(sites)}
        second = {p.site["id"]: p for p in WeightedVoronoi(prng=AleaPRNG("x")).compute(shuffled)}
        assert first.keys() == second.keys()
        for key, polygon in first.items():
            assert second[key].area == pytest.approx(polygon.area, abs=1e-9)
            cx, cy = polygon_centroid(polygon)
            ox, oy = polygon_centroid(second[key])
            assert ox == pytest.approx(cx, abs=1e-9)
            assert oy == pytest.approx(cy, abs=1e-9)

    def test_single_site_gets_whole_clip(self):
        """Test that a lone site's polygon is the clip polygon itself."""
        polygons = WeightedVoronoi().compute([{"x": 0.3, "y": 0.6, "weight": 0.1}])
        assert len(polygons) == 1
        assert polygons[0].area == pytest.approx(1.0)
        points = {(round(x, 9), round(y, 9)) for x, y in polygons[0]}
        assert points == set(UNIT_SQUARE)

    def test_no_sites_is_degenerate(self):
        """Test that the four boundary sites alone cannot form a hull."""
        with pytest.raises(DegenerateInputError):
            WeightedVoronoi().compute([])

    def test_custom_accessors(self):
        """Test reading sites through custom accessors."""
        voronoi = WeightedVoronoi(x=lambda d: d[0], y=lambda d: d[1], weight=lambda d: 0.0)
        polygons = voronoi([(0.25, 0.5), (0.75, 0.5)])
        assert sorted(round(p.area, 9) for p in polygons) == [0.5, 0.5]

    def test_overweighted_site_vanishes(self):
        """Test that a site swallowed by a much heavier neighbour gets no polygon."""
        polygons = WeightedVoronoi().compute([
            {"x": 0.5, "y": 0.5, "weight": 1.0, "name": "heavy"},
            {"x": 0.55, "y": 0.5, "weight": 0.0, "name": "light"},
            {"x": 0.1, "y": 0.1, "weight": 0.0, "name": "far"},
        ])
        assert "light" not in {p.site["name"] for p in polygons}

    def test_boundary_setters(self):
        """Test that changing size updates clip and extent."""
        voronoi = WeightedVoronoi()
        voronoi.size = (2, 3)
        assert voronoi.extent == ((0.0, 0.0), (2.0, 3.0))
        assert polygon_area(voronoi.clip) == pytest.approx(6.0)
        voronoi.extent = [[1, 1], [2, 2]]
        assert voronoi.size == (1.0, 1.0)

    def test_bounding_sites(self):
        """Test that boundary sites surround the extent grown on every side."""
        bounds = WeightedVoronoi(size=(2, 1)).bounding_sites()
        assert len(bounds) == 4
        assert all(b.is_boundary for b in bounds)
        assert {(b.x, b.y) for b in bounds} == {(-2.0, -1.0), (-2.0, 2.0), (4.0, 2.0), (4.0, -1.0)}
