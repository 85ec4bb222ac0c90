"""
Shortest-path routing over a SpatialGraph using A*.

Edge cost and heuristic are the same planar distance, so the heuristic is
admissible and consistent: the first time the target leaves the frontier its
path is optimal, and no vertex is expanded twice.
"""

import heapq
import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Optional

from .errors import InternalInvariantError
from .graph import SpatialGraph

logger = logging.getLogger(__name__)

# Called with each vertex id as it is expanded
ExpandCallback = Optional[Callable[[int], None]]


@dataclass
class Route:
    """Result of a routing request."""
    path: list[int] = field(default_factory=list)
    cost: float = math.inf
    expanded: int = 0

    @property
    def success(self) -> bool:
        return bool(self.path)

    @classmethod
    def unreachable(cls, expanded: int = 0) -> "Route":
        return cls(path=[], cost=math.inf, expanded=expanded)


class PathFinder:
    """
    A* search bound to one graph.

    Every call to search() allocates its own frontier, distance and
    predecessor tables, so one PathFinder can serve concurrent searches as
    long as nobody mutates the graph meanwhile.

    The frontier is a heapq with lazy decrease-key: an improved vertex is
    pushed again and the superseded entry is dropped when it surfaces (its
    vertex is already closed by then). That costs O((V + E) log E) time and
    O(E) heap entries instead of an O(V) removal per update.
    """

    def __init__(self, graph: SpatialGraph):
        self.graph = graph

    def search(self, start: int, target: int, on_expand: ExpandCallback = None) -> Route:
        """
        Find the shortest path from start to target.

        Args:
            start: Start vertex id
            target: Target vertex id
            on_expand: Optional hook called once per expanded vertex. It may
                raise to abort a search that runs too long.

        Returns:
            Route; route.success is False when target is unreachable

        Raises:
            UnknownVertexError: If start or target is not in the graph
        """
        graph = self.graph
        dist = {start: 0.0}
        predecessor: dict[int, Optional[int]] = {start: None}
        closed: set[int] = set()
        frontier = [(graph.distance(start, target), start)]

        while frontier:
            _, x = heapq.heappop(frontier)
            if x in closed:
                continue
            if x == target:
                path = self._reconstruct(predecessor, start, target)
                logger.debug(
                    f"route {start} -> {target}: {len(path)} vertices, {len(closed)} expanded"
                )
                return Route(path=path, cost=dist[target], expanded=len(closed))

            closed.add(x)
            if on_expand is not None:
                on_expand(x)

            for y in graph.adjacent(x):
                if y in closed:
                    continue
                candidate = dist[x] + graph.distance(x, y)
                if y not in dist or candidate < dist[y]:
                    dist[y] = candidate
                    predecessor[y] = x
                    heapq.heappush(frontier, (candidate + graph.distance(y, target), y))

        logger.info(f"no route from {start} to {target} ({len(closed)} vertices expanded)")
        return Route.unreachable(expanded=len(closed))

    @staticmethod
    def _reconstruct(
        predecessor: dict[int, Optional[int]], start: int, target: int
    ) -> list[int]:
        """Walk predecessor links back from target, then reverse."""
        path = [target]
        current = target
        # A well-formed chain cannot be longer than the table itself
        for _ in range(len(predecessor)):
            if current not in predecessor:
                raise InternalInvariantError(
                    "Broken predecessor chain",
                    {"vertex": current, "start": start, "target": target},
                )
            previous = predecessor[current]
            if previous is None:
                if current != start:
                    raise InternalInvariantError(
                        "Predecessor chain ends before the start vertex",
                        {"vertex": current, "start": start},
                    )
                path.reverse()
                return path
            path.append(previous)
            current = previous
        raise InternalInvariantError(
            "Cycle in predecessor chain", {"start": start, "target": target}
        )


def shortest_path(
    graph: SpatialGraph,
    start_lon: float,
    start_lat: float,
    dest_lon: float,
    dest_lat: float,
    on_expand: ExpandCallback = None,
) -> Route:
    """
    Route between two raw coordinates.

    Each coordinate snaps to its nearest vertex first. An empty graph gives
    an unreachable Route.
    """
    start = graph.closest(start_lon, start_lat)
    target = graph.closest(dest_lon, dest_lat)
    if start is None or target is None:
        logger.warning("routing requested on an empty graph")
        return Route.unreachable()
    return PathFinder(graph).search(start, target, on_expand=on_expand)


def route_cost(graph: SpatialGraph, path: list[int]) -> float:
    """Sum of edge lengths along path."""
    return sum(graph.distance(a, b) for a, b in zip(path, path[1:]))
