from mapquery.graph import SpatialGraph
from mapquery.rasterer import RasterResult
from mapquery.router import Route


def print_route(route: Route, graph: SpatialGraph):
    """
    Print a route with Google Maps URLs for its endpoints.

    Args:
        route: Successful route
        graph: Graph the route was computed on
    """
    start, end = route.path[0], route.path[-1]

    print(f"\n🧭 Route: {len(route.path)} vertices, cost {route.cost:.6f}")
    print(
        f"   Start: https://www.google.com/maps/?q={graph.lat(start):.6f},{graph.lon(start):.6f}"
    )
    print(
        f"   End:   https://www.google.com/maps/?q={graph.lat(end):.6f},{graph.lon(end):.6f}"
    )
    print(f"   Expanded {route.expanded} vertices")
    print()


def print_raster(result: RasterResult):
    """Print a raster result as a tile grid."""
    rows = len(result.tile_grid)
    cols = len(result.tile_grid[0]) if rows else 0
    print(f"\n🗺  Raster: {rows}x{cols} tiles at depth {result.depth}")
    print(f"   Upper left:  ({result.covered_west:.6f}, {result.covered_north:.6f})")
    print(f"   Lower right: ({result.covered_east:.6f}, {result.covered_south:.6f})")
    print()
    width = max((len(name) for row in result.tile_grid for name in row), default=0)
    for row in result.tile_grid:
        print("   " + " ".join(f"{name:<{width}}" for name in row))
    print()
