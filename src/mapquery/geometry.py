"""
Planar geometry helpers.

Longitude/latitude are treated as plain x/y coordinates. No geodesic
correction is applied anywhere in this package.
"""

import math
from dataclasses import dataclass
from enum import IntEnum


def euclidean(lon1: float, lat1: float, lon2: float, lat2: float) -> float:
    """Straight-line distance between two lon/lat points, in degrees."""
    return math.hypot(lon1 - lon2, lat1 - lat2)


class Quadrant(IntEnum):
    """Quadrants of a box, in child order."""

    NW = 0
    NE = 1
    SW = 2
    SE = 3

    @property
    def digit(self) -> str:
        """Digit used for this quadrant in tile file names (1-based)."""
        return str(self.value + 1)


@dataclass(frozen=True)
class BoundingBox:
    """
    Axis-aligned box given by its upper-left and lower-right corners.

    ullon: Western boundary (minimum longitude)
    ullat: Northern boundary (maximum latitude)
    lrlon: Eastern boundary (maximum longitude)
    lrlat: Southern boundary (minimum latitude)
    """

    ullon: float
    ullat: float
    lrlon: float
    lrlat: float

    @property
    def width(self) -> float:
        return self.lrlon - self.ullon

    @property
    def height(self) -> float:
        return self.ullat - self.lrlat

    @property
    def center(self) -> tuple[float, float]:
        """Return (lon, lat) of the box center."""
        return ((self.ullon + self.lrlon) / 2, (self.ullat + self.lrlat) / 2)

    def is_degenerate(self) -> bool:
        """True unless west < east and south < north."""
        return not (self.ullon < self.lrlon and self.lrlat < self.ullat)

    def overlaps(self, other: "BoundingBox") -> bool:
        """
        Strict intersection test.

        Boxes that only share an edge or a corner do not overlap.
        """
        if other.lrlon <= self.ullon or other.ullon >= self.lrlon:
            return False
        if other.lrlat >= self.ullat or other.ullat <= self.lrlat:
            return False
        return True

    def quadrant(self, q: Quadrant) -> "BoundingBox":
        """Return the quarter of this box for quadrant q."""
        mid_lon, mid_lat = self.center
        west = self.ullon if q in (Quadrant.NW, Quadrant.SW) else mid_lon
        east = mid_lon if q in (Quadrant.NW, Quadrant.SW) else self.lrlon
        north = self.ullat if q in (Quadrant.NW, Quadrant.NE) else mid_lat
        south = mid_lat if q in (Quadrant.NW, Quadrant.NE) else self.lrlat
        return BoundingBox(ullon=west, ullat=north, lrlon=east, lrlat=south)

    def as_tuple(self) -> tuple[float, float, float, float]:
        """Return as (ullon, ullat, lrlon, lrlat)."""
        return (self.ullon, self.ullat, self.lrlon, self.lrlat)

    def __iter__(self):
        yield self.ullon
        yield self.ullat
        yield self.lrlon
        yield self.lrlat

    @classmethod
    def parse(cls, text: str) -> "BoundingBox":
        """
        Parse "ullon,ullat,lrlon,lrlat".

        Raises:
            ValueError: If the string does not hold exactly four numbers
        """
        values = tuple(map(float, text.split(",")))
        if len(values) != 4:
            raise ValueError(f"Bounding box must have 4 values, got {len(values)}")
        return cls(*values)
