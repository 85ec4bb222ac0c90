"""
Exception types shared by the graph, router and tile index.

Routing and raster *outcomes* (unreachable targets, bad query boxes) are
reported through result objects, not exceptions. The classes here cover
caller mistakes and internal bugs only.
"""

from typing import Optional


class MapQueryError(Exception):
    """Base class for mapquery errors."""


class UnknownVertexError(MapQueryError, KeyError):
    """A graph operation referenced a vertex id that is not in the graph."""

    def __init__(self, vertex_id: int, operation: Optional[str] = None):
        self.vertex_id = vertex_id
        self.operation = operation

        message = f"Unknown vertex: {vertex_id}"
        if operation:
            message = f"{message} (in {operation})"
        super().__init__(message)

    def __str__(self):
        # KeyError would otherwise repr() the message
        return self.args[0]


class InternalInvariantError(MapQueryError, RuntimeError):
    """
    A structural invariant was broken.

    Raised for a broken predecessor chain during path reconstruction or
    mismatched sub-grid dimensions while merging quadtree results. These
    point at a construction or algorithm bug and are never retried.
    """

    def __init__(self, message: str, detail: Optional[dict] = None):
        self.detail = detail or {}
        super().__init__(message)

    def __str__(self):
        parts = [super().__str__()]
        if self.detail:
            parts.append(
                ", ".join(f"{key}={value}" for key, value in self.detail.items())
            )
        return " | ".join(parts)
