"""Find which tile images exist on disk."""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def discover_tile_names(directory: Path, suffix: str = ".png") -> set[str]:
    """
    List tile file names in a directory.

    Only regular files ending in `suffix` are returned; subdirectories are
    not searched.

    Raises:
        FileNotFoundError: If the directory does not exist
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Tile directory not found: {directory}")

    names = {p.name for p in directory.iterdir() if p.is_file() and p.name.endswith(suffix)}
    logger.info(f"discovered {len(names)} tiles in {directory}")
    return names
