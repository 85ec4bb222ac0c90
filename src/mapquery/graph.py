"""
Road network graph.

Vertices are intersections/way points keyed by their integer id. Edges are
undirected and unweighted: the cost of an edge is always the planar distance
between its endpoints.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterator, Optional

from .errors import UnknownVertexError
from .geometry import euclidean

logger = logging.getLogger(__name__)


@dataclass
class Vertex:
    """A graph vertex and its neighbor ids."""
    id: int
    lon: float
    lat: float
    neighbors: list[int] = field(default_factory=list)


class SpatialGraph:
    """
    Undirected graph of lon/lat vertices.

    Responsibilities:
        - Own the id -> Vertex table; all cross references are ids.
        - Keep the neighbor relation symmetric.
        - Provide planar distance and nearest-vertex lookup.

    Edges are idempotent: adding an existing edge again does nothing and
    self-loops are ignored, so a neighbor list never holds duplicates.

    No internal locking. Concurrent readers are fine once the build is done;
    mutations after that must be serialized by the caller.
    """

    def __init__(self):
        self._vertices: dict[int, Vertex] = {}

    # -----------------------------------------------------
    # Construction / mutation
    # -----------------------------------------------------
    def add_vertex(self, vertex_id: int, lon: float, lat: float):
        """Insert a vertex, or move an existing one to new coordinates."""
        existing = self._vertices.get(vertex_id)
        if existing is not None:
            existing.lon = lon
            existing.lat = lat
            return
        self._vertices[vertex_id] = Vertex(vertex_id, lon, lat)

    def add_edge(self, s: int, t: int):
        """
        Connect s and t in both directions.

        Raises:
            UnknownVertexError: If either id is absent
        """
        source = self._get(s, "add_edge")
        target = self._get(t, "add_edge")
        if s == t:
            logger.debug(f"ignoring self-loop on vertex {s}")
            return
        if t not in source.neighbors:
            source.neighbors.append(t)
        if s not in target.neighbors:
            target.neighbors.append(s)

    def remove_vertex(self, vertex_id: int):
        """Remove a vertex and every edge touching it."""
        vertex = self._get(vertex_id, "remove_vertex")
        for other in vertex.neighbors:
            neighbor = self._vertices.get(other)
            if neighbor is not None and vertex_id in neighbor.neighbors:
                neighbor.neighbors.remove(vertex_id)
        del self._vertices[vertex_id]

    def remove_edge(self, s: int, t: int):
        """Remove the edge s-t. Missing edges are ignored."""
        source = self._get(s, "remove_edge")
        target = self._get(t, "remove_edge")
        if t in source.neighbors:
            source.neighbors.remove(t)
        if s in target.neighbors:
            target.neighbors.remove(s)

    def cleanup(self) -> int:
        """
        Drop vertices that have no neighbors.

        Meant to run once after bulk loading. It does not check that the
        remaining graph is connected.

        Returns:
            Number of vertices removed
        """
        isolated = [vid for vid, v in self._vertices.items() if not v.neighbors]
        for vid in isolated:
            del self._vertices[vid]
        logger.info(
            f"cleanup removed {len(isolated)} isolated vertices, {len(self._vertices)} left"
        )
        return len(isolated)

    # -----------------------------------------------------
    # Queries
    # -----------------------------------------------------
    def vertices(self) -> list[int]:
        """Return all vertex ids."""
        return list(self._vertices)

    def vertex(self, vertex_id: int) -> Vertex:
        return self._get(vertex_id, "vertex")

    def adjacent(self, vertex_id: int) -> tuple[int, ...]:
        """
        Return the ids adjacent to vertex_id, in insertion order.

        The result is a snapshot: it can be iterated any number of times and
        is not affected by later edits to the graph.
        """
        return tuple(self._get(vertex_id, "adjacent").neighbors)

    def lon(self, vertex_id: int) -> float:
        return self._get(vertex_id, "lon").lon

    def lat(self, vertex_id: int) -> float:
        return self._get(vertex_id, "lat").lat

    def distance(self, v: int, w: int) -> float:
        """Euclidean distance between the coordinates of v and w."""
        a = self._get(v, "distance")
        b = self._get(w, "distance")
        return euclidean(a.lon, a.lat, b.lon, b.lat)

    def closest(self, lon: float, lat: float) -> Optional[int]:
        """
        Return the id of the vertex nearest to (lon, lat).

        Linear scan over every vertex. Equal distances resolve to the smaller
        id. Returns None for an empty graph.
        """
        best_id = None
        best_dist = None
        for vertex in self._vertices.values():
            d = euclidean(vertex.lon, vertex.lat, lon, lat)
            if (
                best_id is None
                or d < best_dist
                or (d == best_dist and vertex.id < best_id)
            ):
                best_id, best_dist = vertex.id, d
        return best_id

    def edge_count(self) -> int:
        """Number of undirected edges."""
        return sum(len(v.neighbors) for v in self._vertices.values()) // 2

    def __len__(self) -> int:
        return len(self._vertices)

    def __contains__(self, vertex_id) -> bool:
        return vertex_id in self._vertices

    def __iter__(self) -> Iterator[int]:
        return iter(self._vertices)

    def _get(self, vertex_id: int, operation: str) -> Vertex:
        try:
            return self._vertices[vertex_id]
        except KeyError:
            raise UnknownVertexError(vertex_id, operation) from None
