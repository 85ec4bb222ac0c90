"""Tests for raster query resolution."""

import pytest

from mapquery.geometry import BoundingBox, Quadrant
from mapquery.rasterer import RasterQuery, RasterResult, TileResolver
from mapquery.tiles import TileIndex

ROOT_BOX = BoundingBox(ullon=0.0, ullat=4.0, lrlon=4.0, lrlat=0.0)
ALL_TILES = (
    ["root.png"]
    + [f"{a}.png" for a in "1234"]
    + [f"{a}{b}.png" for a in "1234" for b in "1234"]
)


@pytest.fixture
def resolver():
    return TileResolver(TileIndex(ROOT_BOX, ALL_TILES, tile_size=256))


def query_for(box: BoundingBox, width: float, height: float = 600) -> RasterQuery:
    return RasterQuery(*box, width=width, height=height)


class TestRasterQuery:
    """Tests for RasterQuery construction."""

    def test_target_resolution(self):
        query = RasterQuery(0.0, 4.0, 2.0, 0.0, width=512, height=100)
        assert query.target_resolution == 2.0 / 512

    def test_from_params(self):
        params = {"ullon": "-122.3", "ullat": 37.9, "lrlon": -122.2, "lrlat": 37.8, "w": 800, "h": 600}
        query = RasterQuery.from_params(params)
        assert query.ullon == -122.3
        assert query.width == 800.0
        assert query.bbox == BoundingBox(-122.3, 37.9, -122.2, 37.8)

    def test_from_params_missing(self):
        with pytest.raises(KeyError, match="w, h"):
            RasterQuery.from_params({"ullon": 0, "ullat": 1, "lrlon": 1, "lrlat": 0})


class TestResolve:
    """Tests for successful raster queries."""

    def test_coarse_viewport_gets_root(self, resolver):
        result = resolver.resolve(query_for(ROOT_BOX, width=256))

        assert result.success
        assert result.tile_grid == [["root.png"]]
        assert result.depth == 0
        assert (
            result.covered_west,
            result.covered_north,
            result.covered_east,
            result.covered_south,
        ) == ROOT_BOX.as_tuple()

    def test_fine_viewport_gets_deepest_grid(self, resolver):
        result = resolver.resolve(query_for(ROOT_BOX, width=1024))

        assert result.success
        assert result.depth == 2
        assert len(result.tile_grid) == 4
        assert all(len(row) == 4 for row in result.tile_grid)
        assert result.tile_grid[0][0] == "11.png"
        assert result.tile_grid[3][3] == "44.png"

    def test_covered_bound_snaps_to_tiles(self, resolver):
        result = resolver.resolve(query_for(BoundingBox(0.5, 3.5, 2.5, 1.5), width=512))

        assert result.success
        assert result.depth == 2
        assert result.tile_grid == [
            ["11.png", "12.png", "21.png"],
            ["13.png", "14.png", "23.png"],
            ["31.png", "32.png", "41.png"],
        ]
        assert result.covered_west == 0.0
        assert result.covered_north == 4.0
        assert result.covered_east == 3.0
        assert result.covered_south == 1.0

    def test_box_partly_outside_root(self, resolver):
        result = resolver.resolve(query_for(BoundingBox(-10.0, 10.0, 1.0, 3.0), width=256))
        assert result.success
        assert result.tile_grid == [["root.png"]]

    def test_image_root_prefix(self):
        resolver = TileResolver(TileIndex(ROOT_BOX, ALL_TILES), image_root="img/")
        result = resolver.resolve(query_for(ROOT_BOX, width=100))
        assert result.tile_grid == [["img/root.png"]]

    def test_sparse_tiles_fall_back_to_root(self):
        resolver = TileResolver(TileIndex(ROOT_BOX, ["root.png", "1.png"]))
        result = resolver.resolve(query_for(ROOT_BOX.quadrant(Quadrant.NE), width=64))
        assert result.success
        assert result.tile_grid == [["root.png"]]
        assert result.depth == 0

    def test_uneven_subtrees_give_uniform_depth(self):
        tiles = ["root.png", "1.png", "2.png", "3.png", "4.png", "11.png", "12.png", "13.png", "14.png"]
        resolver = TileResolver(TileIndex(ROOT_BOX, tiles))
        result = resolver.resolve(RasterQuery(1.5, 3.5, 2.5, 2.2, width=1000, height=1000))

        assert result.success
        assert result.depth == 1
        assert result.tile_grid == [["1.png", "2.png"]]
        assert (result.covered_north, result.covered_south) == (4.0, 2.0)
        assert (result.covered_west, result.covered_east) == (0.0, 4.0)


class TestInvalidQueries:
    """Invalid queries fail without raising."""

    def test_outside_root(self, resolver):
        result = resolver.resolve(query_for(BoundingBox(10.0, 20.0, 11.0, 19.0), width=256))
        assert not result.success
        assert result.tile_grid == []

    def test_touching_root_edge(self, resolver):
        result = resolver.resolve(query_for(BoundingBox(4.0, 4.0, 5.0, 0.0), width=256))
        assert not result.success

    def test_inverted_longitudes(self, resolver):
        result = resolver.resolve(query_for(BoundingBox(3.0, 4.0, 1.0, 0.0), width=256))
        assert not result.success

    def test_inverted_latitudes(self, resolver):
        result = resolver.resolve(query_for(BoundingBox(0.0, 1.0, 4.0, 3.0), width=256))
        assert not result.success

    def test_zero_width_box(self, resolver):
        result = resolver.resolve(query_for(BoundingBox(1.0, 4.0, 1.0, 0.0), width=256))
        assert not result.success

    def test_non_positive_viewport(self, resolver):
        assert not resolver.resolve(query_for(ROOT_BOX, width=0)).success
        assert not resolver.resolve(query_for(ROOT_BOX, width=-5)).success

    def test_nan_viewport(self, resolver):
        assert not resolver.resolve(query_for(ROOT_BOX, width=float("nan"))).success
        params = {"ullon": 0.0, "ullat": 4.0, "lrlon": 4.0, "lrlat": 0.0, "w": "nan", "h": 256}
        assert not resolver.resolve_params(params).success

    def test_empty_index(self):
        resolver = TileResolver(TileIndex(ROOT_BOX, []))
        assert not resolver.resolve(query_for(ROOT_BOX, width=256)).success


class TestResolveParams:
    """Tests for raw parameter handling."""

    def test_valid_params(self, resolver):
        params = {"ullon": 0.0, "ullat": 4.0, "lrlon": 4.0, "lrlat": 0.0, "w": 256, "h": 256}
        result = resolver.resolve_params(params)
        assert result.success
        assert result.tile_grid == [["root.png"]]

    def test_missing_params(self, resolver):
        assert not resolver.resolve_params({"ullon": 0.0}).success

    def test_non_numeric_params(self, resolver):
        params = {"ullon": "west", "ullat": 4.0, "lrlon": 4.0, "lrlat": 0.0, "w": 256, "h": 256}
        assert not resolver.resolve_params(params).success

    def test_none_param(self, resolver):
        params = {"ullon": None, "ullat": 4.0, "lrlon": 4.0, "lrlat": 0.0, "w": 256, "h": 256}
        assert not resolver.resolve_params(params).success


class TestRasterResult:
    """Tests for result serialization."""

    def test_as_dict_success(self, resolver):
        result = resolver.resolve(query_for(ROOT_BOX, width=256))
        assert result.as_dict() == {
            "render_grid": [["root.png"]],
            "raster_ul_lon": 0.0,
            "raster_ul_lat": 4.0,
            "raster_lr_lon": 4.0,
            "raster_lr_lat": 0.0,
            "depth": 0,
            "query_success": True,
        }

    def test_as_dict_failure(self):
        assert RasterResult.failed().as_dict() == {"query_success": False}
