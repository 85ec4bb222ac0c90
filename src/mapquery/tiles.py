"""
Tile quadtree.

Tiles form a sparse quadtree over a fixed root box. Each tile image is named
after its path from the root: "root.png" covers everything, "1.png" .. "4.png"
are its NW, NE, SW and SE quarters, "13.png" is the SW quarter of "1.png", and
so on. A node exists only if its image exists.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

from .errors import InternalInvariantError
from .geometry import BoundingBox, Quadrant

logger = logging.getLogger(__name__)

DEFAULT_TILE_SIZE = 256

# A rectangular block of tiles, row-major. Queries return None for "no coverage".
Grid = list[list["TileNode"]]


@dataclass(frozen=True)
class TileNaming:
    """File naming scheme for tiles."""
    root_stem: str = "root"
    suffix: str = ".png"

    @property
    def root(self) -> str:
        return f"{self.root_stem}{self.suffix}"

    def child(self, name: str, quadrant: Quadrant) -> str:
        """Return the file name of the given quadrant of tile `name`."""
        stem = name[: -len(self.suffix)] if self.suffix else name
        if stem == self.root_stem:
            stem = ""
        return f"{stem}{quadrant.digit}{self.suffix}"


@dataclass(eq=False)
class TileNode:
    """One tile of the quadtree."""
    name: str
    bbox: BoundingBox
    depth: int
    resolution: float  # longitude degrees per pixel
    children: list[Optional["TileNode"]] = field(default_factory=lambda: [None] * 4)

    @property
    def is_subdivided(self) -> bool:
        """True only when all four quadrants have tiles."""
        return all(child is not None for child in self.children)

    def child(self, quadrant: Quadrant) -> Optional["TileNode"]:
        return self.children[quadrant]

    def __repr__(self):
        return f"TileNode({self.name!r}, depth={self.depth})"


def merge_horizontal(left: Optional[Grid], right: Optional[Grid]) -> Optional[Grid]:
    """Place `right` to the right of `left`. Row counts must match."""
    if left is None:
        return right
    if right is None:
        return left
    if len(left) != len(right):
        raise InternalInvariantError(
            "Cannot merge grids horizontally: row counts differ",
            {"left_rows": len(left), "right_rows": len(right)},
        )
    return [l_row + r_row for l_row, r_row in zip(left, right)]


def merge_vertical(top: Optional[Grid], bottom: Optional[Grid]) -> Optional[Grid]:
    """Place `bottom` below `top`. Column counts must match."""
    if top is None:
        return bottom
    if bottom is None:
        return top
    if len(top[0]) != len(bottom[0]):
        raise InternalInvariantError(
            "Cannot merge grids vertically: column counts differ",
            {"top_cols": len(top[0]), "bottom_cols": len(bottom[0])},
        )
    return top + bottom


class TileIndex:
    """
    Sparse quadtree over a set of known tile files.

    Built once, read-only afterwards; safe for concurrent queries.
    """

    def __init__(
        self,
        root_bbox: BoundingBox,
        tile_names: Iterable[str],
        tile_size: int = DEFAULT_TILE_SIZE,
        naming: TileNaming = TileNaming(),
    ):
        """
        Build the tree.

        Args:
            root_bbox: Box covered by the root tile
            tile_names: Every tile file name that exists
            tile_size: Tile edge length in pixels
            naming: Naming scheme used by tile_names
        """
        self.root_bbox = root_bbox
        self.tile_size = tile_size
        self.naming = naming
        self.root: Optional[TileNode] = None
        self._by_name: dict[str, TileNode] = {}
        self._build(set(tile_names))

    def _make_node(self, name: str, bbox: BoundingBox, depth: int) -> TileNode:
        node = TileNode(
            name=name,
            bbox=bbox,
            depth=depth,
            resolution=bbox.width / self.tile_size,
        )
        self._by_name[name] = node
        return node

    def _build(self, existing: set[str]):
        if self.naming.root not in existing:
            logger.warning(f"root tile {self.naming.root} missing, tile index is empty")
            return

        self.root = self._make_node(self.naming.root, self.root_bbox, 0)
        stack = [self.root]
        while stack:
            node = stack.pop()
            for quadrant in Quadrant:
                child_name = self.naming.child(node.name, quadrant)
                if child_name not in existing:
                    continue
                child = self._make_node(
                    child_name, node.bbox.quadrant(quadrant), node.depth + 1
                )
                node.children[quadrant] = child
                stack.append(child)

        unused = len(existing) - len(self._by_name)
        logger.info(
            f"built tile index: {len(self._by_name)} tiles, max depth {self.max_depth}"
            + (f", {unused} names not reachable from root" if unused else "")
        )

    @property
    def max_depth(self) -> int:
        return max((node.depth for node in self._by_name.values()), default=0)

    def find(self, name: str) -> Optional[TileNode]:
        return self._by_name.get(name)

    def nodes(self) -> Iterator[TileNode]:
        return iter(self._by_name.values())

    def __len__(self) -> int:
        return len(self._by_name)

    def resolution_at(self, depth: int) -> float:
        """Longitude degrees per pixel of a tile at `depth`."""
        return self.root_bbox.width / self.tile_size / 2 ** depth

    def target_depth(self, target_resolution: float) -> int:
        """Shallowest depth fine enough for target_resolution, capped at max_depth."""
        deepest = self.max_depth
        depth = 0
        while depth < deepest and self.resolution_at(depth) > target_resolution:
            depth += 1
        return depth

    def collect(self, query: BoundingBox, target_resolution: float) -> Optional[Grid]:
        """
        Return the grid of tiles covering `query`.

        All tiles come from one depth: the coarsest level whose resolution is
        at least as fine as target_resolution (or the deepest level), lowered
        until every position the query overlaps at that level has a tile.

        Returns:
            Rectangular grid of TileNodes, or None if nothing overlaps
        """
        if self.root is None or not self.root.bbox.overlaps(query):
            return None

        depth = self.target_depth(target_resolution)
        while depth > 0:
            grid = _gather(self.root, query, depth)
            if grid is not None:
                return grid
            logger.debug(f"tiles missing at depth {depth} for {query.as_tuple()}, trying coarser")
            depth -= 1
        return [[self.root]]


def _gather(node: TileNode, query: BoundingBox, depth: int) -> Optional[Grid]:
    """
    Collect the tiles at `depth` under `node` that overlap `query`.

    `node` must overlap `query`. Returns None if any overlapping position
    at `depth` has no tile.
    """
    if node.depth == depth:
        return [[node]]

    parts = []
    for quadrant in Quadrant:
        if not node.bbox.quadrant(quadrant).overlaps(query):
            parts.append(None)
            continue
        child = node.child(quadrant)
        if child is None:
            return None
        sub_grid = _gather(child, query, depth)
        if sub_grid is None:
            return None
        parts.append(sub_grid)

    nw, ne, sw, se = parts
    # Cells at one depth form a regular lattice, so the merge stays rectangular.
    return merge_vertical(merge_horizontal(nw, ne), merge_horizontal(sw, se))
