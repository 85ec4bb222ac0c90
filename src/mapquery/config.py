"""
Runtime settings.

Values come from MAPQUERY_* environment variables (a .env file is loaded by
the CLI via python-dotenv). Command-line flags override them.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .geometry import BoundingBox
from .tiles import DEFAULT_TILE_SIZE

# Upper-left / lower-right corners of the root tile (Berkeley, CA)
ROOT_ULLON = -122.2998046875
ROOT_ULLAT = 37.892195547244356
ROOT_LRLON = -122.2119140625
ROOT_LRLAT = 37.82280243352756

DEFAULT_ROOT_BBOX = BoundingBox(ROOT_ULLON, ROOT_ULLAT, ROOT_LRLON, ROOT_LRLAT)
DEFAULT_LOG_FILE = "mapquery.log"


@dataclass
class Settings:
    """Where the map data lives and how tiles are laid out."""
    osm_path: Optional[Path] = None
    tile_dir: Optional[Path] = None
    image_root: str = ""
    tile_size: int = DEFAULT_TILE_SIZE
    root_bbox: BoundingBox = DEFAULT_ROOT_BBOX
    log_file: str = DEFAULT_LOG_FILE

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Read settings from the environment.

        Raises:
            ValueError: If MAPQUERY_TILE_SIZE or MAPQUERY_ROOT_BOUNDS is malformed
        """
        env = os.environ if environ is None else environ

        osm_path = env.get("MAPQUERY_OSM_PATH")
        tile_dir = env.get("MAPQUERY_TILE_DIR")
        root_bounds = env.get("MAPQUERY_ROOT_BOUNDS")

        tile_size = int(env.get("MAPQUERY_TILE_SIZE", DEFAULT_TILE_SIZE))
        if tile_size <= 0:
            raise ValueError(f"MAPQUERY_TILE_SIZE must be positive, got {tile_size}")

        return cls(
            osm_path=Path(osm_path) if osm_path else None,
            tile_dir=Path(tile_dir) if tile_dir else None,
            image_root=env.get("MAPQUERY_IMAGE_ROOT", ""),
            tile_size=tile_size,
            root_bbox=BoundingBox.parse(root_bounds) if root_bounds else DEFAULT_ROOT_BBOX,
            log_file=env.get("MAPQUERY_LOG_FILE", DEFAULT_LOG_FILE),
        )
