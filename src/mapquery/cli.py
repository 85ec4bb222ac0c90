"""
Command-line interface for mapquery routing and raster queries.
"""

import argparse
import asyncio
import json
import logging
import sys
import xml.etree.ElementTree as ET
from pathlib import Path

import httpx
from dotenv import load_dotenv

from .config import Settings
from .discovery import discover_tile_names
from .geometry import BoundingBox
from .rasterer import RasterQuery
from .service import MapService
from .service.pretty import print_raster, print_route
from .tiles import TileIndex


def _parse_coordinate(text: str, label: str) -> tuple[float, float]:
    try:
        values = tuple(map(float, text.split(",")))
        if len(values) != 2:
            raise ValueError("Coordinate must have 2 values")
    except ValueError as e:
        print(f"Error parsing {label}: {e}", file=sys.stderr)
        print("Expected format: lon,lat", file=sys.stderr)
        sys.exit(1)
    return values


def _env_settings() -> Settings:
    try:
        return Settings.from_env()
    except ValueError as e:
        print(f"Error in environment settings: {e}", file=sys.stderr)
        sys.exit(1)


def _apply_overrides(settings: Settings, args) -> Settings:
    """Let command-line flags win over environment settings."""
    if getattr(args, "osm", None):
        settings.osm_path = Path(args.osm)
    if getattr(args, "tiles", None):
        settings.tile_dir = Path(args.tiles)
    if getattr(args, "image_root", None) is not None:
        settings.image_root = args.image_root
    return settings


def cmd_route(args, settings: Settings):
    """Find the shortest path between two points."""
    settings = _apply_overrides(settings, args)
    if not settings.osm_path:
        print("Error: OSM file required.", file=sys.stderr)
        print("Set MAPQUERY_OSM_PATH env var or use --osm", file=sys.stderr)
        sys.exit(1)

    use_places = bool(args.from_place or args.to_place)
    if use_places and not (args.from_place and args.to_place):
        print("Error: --from-place and --to-place must be used together", file=sys.stderr)
        sys.exit(1)
    if not use_places and not (args.start and args.end):
        print("Error: give --from/--to coordinates or --from-place/--to-place", file=sys.stderr)
        sys.exit(1)

    # Routing does not need the tile index
    settings.tile_dir = None
    print(f"Loading road graph: {settings.osm_path}")
    try:
        service = MapService.from_settings(settings, progress=True)
    except (OSError, ValueError, ET.ParseError) as e:
        print(f"\nError: {e}", file=sys.stderr)
        sys.exit(1)

    if use_places:

        async def run_route():
            async with httpx.AsyncClient(timeout=30.0) as client:
                return await service.route_places(client, args.from_place, args.to_place)

        try:
            route = asyncio.run(run_route())
        except (httpx.HTTPError, ValueError) as e:
            print(f"\nError: {e}", file=sys.stderr)
            sys.exit(1)
    else:
        start = _parse_coordinate(args.start, "--from")
        end = _parse_coordinate(args.end, "--to")
        route = service.route(start, end)

    if args.output_format == "json":
        output = {
            "success": route.success,
            "path": route.path,
            "cost": route.cost if route.success else None,
            "expanded": route.expanded,
        }
        print(json.dumps(output, indent=2))
    elif route.success:
        print_route(route, service.graph)
        print(" -> ".join(map(str, route.path)))

    if not route.success:
        print("No route found between the given points.", file=sys.stderr)
        sys.exit(1)


def cmd_raster(args, settings: Settings):
    """Resolve the tile grid for a query box."""
    settings = _apply_overrides(settings, args)
    if not settings.tile_dir:
        print("Error: tile directory required.", file=sys.stderr)
        print("Set MAPQUERY_TILE_DIR env var or use --tiles", file=sys.stderr)
        sys.exit(1)

    try:
        bbox = BoundingBox.parse(args.bbox)
    except ValueError as e:
        print(f"Error parsing bbox: {e}", file=sys.stderr)
        print("Expected format: ullon,ullat,lrlon,lrlat", file=sys.stderr)
        sys.exit(1)

    settings.osm_path = None
    try:
        service = MapService.from_settings(settings)
    except (OSError, ValueError) as e:
        print(f"\nError: {e}", file=sys.stderr)
        sys.exit(1)

    query = RasterQuery(*bbox, width=args.width, height=args.height)
    result = service.raster(query)

    if args.output_format == "json":
        print(json.dumps(result.as_dict(), indent=2))
    elif result.success:
        print_raster(result)

    if not result.success:
        print("Query failed: box is empty or outside the map.", file=sys.stderr)
        sys.exit(1)


def cmd_tiles(args, settings: Settings):
    """Show statistics about a tile directory."""
    settings = _apply_overrides(settings, args)
    if not settings.tile_dir:
        print("Error: tile directory required.", file=sys.stderr)
        print("Set MAPQUERY_TILE_DIR env var or use --tiles", file=sys.stderr)
        sys.exit(1)

    try:
        names = discover_tile_names(settings.tile_dir)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    index = TileIndex(settings.root_bbox, names, tile_size=settings.tile_size)
    print(f"Tile directory: {settings.tile_dir.absolute()}")
    print(f"Root bounds: {settings.root_bbox.as_tuple()}")
    print(f"Files found: {len(names)}")
    print(f"Tiles in index: {len(index)}")
    print(f"Max depth: {index.max_depth}")

    per_depth = {}
    for node in index.nodes():
        per_depth.setdefault(node.depth, []).append(node)
    if per_depth:
        print(f"\n{'Depth':<8} {'Tiles':<8} {'Lon/pixel':<14}")
        print("-" * 32)
        for depth in sorted(per_depth):
            nodes = per_depth[depth]
            print(f"{depth:<8} {len(nodes):<8} {nodes[0].resolution:<14.3e}")


def main():
    """Main CLI entry point."""
    load_dotenv()
    settings = _env_settings()

    # Configure logging - write to file with tracebacks
    logging.basicConfig(
        level=logging.WARNING,  # Default for external libs
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.FileHandler(settings.log_file),
            logging.StreamHandler(sys.stderr),
        ],
    )
    # Enable INFO logs only for our application code
    logging.getLogger("mapquery").setLevel(logging.INFO)

    parser = argparse.ArgumentParser(
        description="Route on a road network and resolve map tiles",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Route command
    route_parser = subparsers.add_parser(
        "route",
        help="Find the shortest path between two points",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --osm berkeley.osm --from=-122.2585,37.8721 --to=-122.2498,37.8686
  %(prog)s --osm berkeley.osm --from-place "Soda Hall" --to-place "Berkeley Bowl"
        """,
    )
    route_parser.add_argument(
        "--osm",
        help="OSM XML file (default: $MAPQUERY_OSM_PATH)",
    )
    route_parser.add_argument(
        "--from",
        dest="start",
        help="Start point: lon,lat",
    )
    route_parser.add_argument(
        "--to",
        dest="end",
        help="End point: lon,lat",
    )
    route_parser.add_argument(
        "--from-place",
        help="Start place name, geocoded with Nominatim",
    )
    route_parser.add_argument(
        "--to-place",
        help="End place name, geocoded with Nominatim",
    )
    route_parser.add_argument(
        "--output-format",
        "-f",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    route_parser.set_defaults(func=cmd_route)

    # Raster command
    raster_parser = subparsers.add_parser(
        "raster",
        help="Resolve the tiles covering a bounding box",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --tiles ./img --bbox=-122.2416,37.8766,-122.2405,37.8755 --width 892 --height 875
        """,
    )
    raster_parser.add_argument(
        "--tiles",
        "-t",
        help="Tile image directory (default: $MAPQUERY_TILE_DIR)",
    )
    raster_parser.add_argument(
        "--bbox",
        "-b",
        required=True,
        help="Query box: ullon,ullat,lrlon,lrlat",
    )
    raster_parser.add_argument(
        "--width",
        "-W",
        type=float,
        required=True,
        help="Viewport width in pixels",
    )
    raster_parser.add_argument(
        "--height",
        "-H",
        type=float,
        required=True,
        help="Viewport height in pixels",
    )
    raster_parser.add_argument(
        "--image-root",
        help="Prefix for tile names in the output (default: $MAPQUERY_IMAGE_ROOT)",
    )
    raster_parser.add_argument(
        "--output-format",
        "-f",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    raster_parser.set_defaults(func=cmd_raster)

    # Tiles command
    tiles_parser = subparsers.add_parser(
        "tiles",
        help="Show statistics about a tile directory",
    )
    tiles_parser.add_argument(
        "--tiles",
        "-t",
        help="Tile image directory (default: $MAPQUERY_TILE_DIR)",
    )
    tiles_parser.set_defaults(func=cmd_tiles)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    args.func(args, settings)


if __name__ == "__main__":
    main()
