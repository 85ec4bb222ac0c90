"""
Raster query resolution.

Turns a viewport request (query box + pixel size) into the grid of tile
images a front end should stitch together.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .geometry import BoundingBox
from .tiles import Grid, TileIndex

logger = logging.getLogger(__name__)

REQUIRED_RASTER_PARAMS = ("ullon", "ullat", "lrlon", "lrlat", "w", "h")


@dataclass(frozen=True)
class RasterQuery:
    """A viewport request."""
    ullon: float
    ullat: float
    lrlon: float
    lrlat: float
    width: float  # viewport width in pixels
    height: float  # viewport height in pixels

    @property
    def bbox(self) -> BoundingBox:
        return BoundingBox(self.ullon, self.ullat, self.lrlon, self.lrlat)

    @property
    def target_resolution(self) -> float:
        """Longitude degrees per pixel the viewport asks for."""
        return (self.lrlon - self.ullon) / self.width

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "RasterQuery":
        """
        Build from raw request parameters (ullon, ullat, lrlon, lrlat, w, h).

        Raises:
            KeyError: If a parameter is missing
            ValueError, TypeError: If a parameter is not numeric
        """
        missing = [key for key in REQUIRED_RASTER_PARAMS if key not in params]
        if missing:
            raise KeyError(f"Missing raster parameters: {', '.join(missing)}")
        return cls(
            ullon=float(params["ullon"]),
            ullat=float(params["ullat"]),
            lrlon=float(params["lrlon"]),
            lrlat=float(params["lrlat"]),
            width=float(params["w"]),
            height=float(params["h"]),
        )


@dataclass
class RasterResult:
    """Tiles to render and the box they actually cover."""
    success: bool
    tile_grid: list[list[str]] = field(default_factory=list)
    covered_west: Optional[float] = None
    covered_north: Optional[float] = None
    covered_east: Optional[float] = None
    covered_south: Optional[float] = None
    depth: Optional[int] = None

    @classmethod
    def failed(cls) -> "RasterResult":
        return cls(success=False)

    def as_dict(self) -> dict:
        """Render with the key names map front ends expect."""
        if not self.success:
            return {"query_success": False}
        return {
            "render_grid": self.tile_grid,
            "raster_ul_lon": self.covered_west,
            "raster_ul_lat": self.covered_north,
            "raster_lr_lon": self.covered_east,
            "raster_lr_lat": self.covered_south,
            "depth": self.depth,
            "query_success": True,
        }


class TileResolver:
    """Resolves raster queries against a TileIndex."""

    def __init__(self, index: TileIndex, image_root: str = ""):
        """
        Args:
            index: Tile quadtree
            image_root: Prefix prepended to each tile name in results
        """
        self.index = index
        self.image_root = image_root

    def resolve(self, query: RasterQuery) -> RasterResult:
        """
        Find the tiles for a query.

        Invalid queries (degenerate box, non-positive width, box outside the
        root tile, nothing collected) give a failed result; nothing is raised.
        """
        bbox = query.bbox
        if bbox.is_degenerate():
            logger.warning(f"rejecting degenerate query box {bbox.as_tuple()}")
            return RasterResult.failed()
        if not query.width > 0:
            logger.warning(f"rejecting query with viewport width {query.width}")
            return RasterResult.failed()
        if not bbox.overlaps(self.index.root_bbox):
            logger.warning(f"query box {bbox.as_tuple()} is outside the map")
            return RasterResult.failed()

        grid = self.index.collect(bbox, query.target_resolution)
        if not grid:
            logger.warning(f"no tiles found for query box {bbox.as_tuple()}")
            return RasterResult.failed()

        return self._package(grid)

    def resolve_params(self, params: Mapping[str, Any]) -> RasterResult:
        """Resolve a raw parameter mapping. Malformed parameters fail the query."""
        try:
            query = RasterQuery.from_params(params)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"rejecting malformed raster parameters: {e}")
            return RasterResult.failed()
        return self.resolve(query)

    def _package(self, grid: Grid) -> RasterResult:
        upper_left = grid[0][0].bbox
        lower_right = grid[-1][-1].bbox
        result = RasterResult(
            success=True,
            tile_grid=[[self.image_root + node.name for node in row] for row in grid],
            covered_west=upper_left.ullon,
            covered_north=upper_left.ullat,
            covered_east=lower_right.lrlon,
            covered_south=lower_right.lrlat,
            depth=grid[0][0].depth,
        )
        logger.debug(
            f"raster: {len(grid)}x{len(grid[0])} tiles at depth {result.depth}"
        )
        return result
