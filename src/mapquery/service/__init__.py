"""
Map service facade.

Wires the two independent pipelines together: OSM file -> SpatialGraph ->
A* routing, and tile directory -> TileIndex -> raster resolution.
"""

import logging
from typing import Any, Mapping, Optional

import httpx

from mapquery.config import Settings
from mapquery.discovery import discover_tile_names
from mapquery.geocoder import geocode_place
from mapquery.geometry import BoundingBox
from mapquery.graph import SpatialGraph
from mapquery.osm import load_osm
from mapquery.rasterer import RasterQuery, RasterResult, TileResolver
from mapquery.router import Route, shortest_path
from mapquery.tiles import TileIndex

logger = logging.getLogger(__name__)

# (lon, lat)
Coordinate = tuple[float, float]


class MapService:
    """
    Answers routing and raster queries.

    Either pipeline may be left unconfigured; using it then raises
    RuntimeError. Both structures are read-only after construction, so one
    service can be shared across request threads.
    """

    def __init__(
        self,
        graph: Optional[SpatialGraph] = None,
        resolver: Optional[TileResolver] = None,
        search_bounds: Optional[BoundingBox] = None,
    ):
        """
        Args:
            graph: Road graph for routing
            resolver: Tile resolver for raster queries
            search_bounds: Confine place-name lookups to this box
        """
        self.graph = graph
        self.resolver = resolver
        self.search_bounds = search_bounds

    @classmethod
    def from_settings(cls, settings: Settings, progress: bool = False) -> "MapService":
        """
        Build whatever pipelines the settings point at.

        Args:
            settings: Data locations and tile layout
            progress: Show a progress bar while parsing OSM data
        """
        graph = None
        if settings.osm_path:
            graph = load_osm(settings.osm_path, progress=progress)
            logger.info(f"road graph ready: {len(graph)} vertices, {graph.edge_count()} edges")

        resolver = None
        if settings.tile_dir:
            names = discover_tile_names(settings.tile_dir)
            index = TileIndex(settings.root_bbox, names, tile_size=settings.tile_size)
            resolver = TileResolver(index, image_root=settings.image_root)

        return cls(graph=graph, resolver=resolver, search_bounds=settings.root_bbox)

    def _require_graph(self) -> SpatialGraph:
        if self.graph is None:
            raise RuntimeError("No road graph loaded (set MAPQUERY_OSM_PATH or --osm)")
        return self.graph

    def _require_resolver(self) -> TileResolver:
        if self.resolver is None:
            raise RuntimeError("No tile index loaded (set MAPQUERY_TILE_DIR or --tiles)")
        return self.resolver

    def route(self, start: Coordinate, dest: Coordinate) -> Route:
        """Shortest path between two (lon, lat) points."""
        return shortest_path(self._require_graph(), *start, *dest)

    async def route_places(
        self, client: httpx.AsyncClient, start_name: str, dest_name: str
    ) -> Route:
        """Geocode two place names, then route between them."""
        graph = self._require_graph()
        start = await geocode_place(client, start_name, bounds=self.search_bounds)
        dest = await geocode_place(client, dest_name, bounds=self.search_bounds)
        logger.info(
            f"routing {start_name!r} {start.as_tuple()} -> {dest_name!r} {dest.as_tuple()}"
        )
        return shortest_path(graph, *start.as_tuple(), *dest.as_tuple())

    def raster(self, query: RasterQuery) -> RasterResult:
        return self._require_resolver().resolve(query)

    def raster_params(self, params: Mapping[str, Any]) -> RasterResult:
        return self._require_resolver().resolve_params(params)
