"""
Place-name lookup for routing endpoints.

Resolves free-form names ("Soda Hall, Berkeley") to a single point with the
OpenStreetMap Nominatim search API. Lookups can be confined to the map area
so that a name like "Main Street" does not resolve to another city.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from .geometry import BoundingBox

logger = logging.getLogger(__name__)

NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"
DEFAULT_USER_AGENT = "mapquery/1.0"


@dataclass
class Location:
    """A geocoded point."""
    lon: float
    lat: float
    display_name: str = ""

    def as_tuple(self) -> tuple[float, float]:
        """Return as (lon, lat)."""
        return (self.lon, self.lat)


def parse_location(result: dict[str, Any]) -> Location:
    """
    Read the point out of one Nominatim search result.

    Raises:
        ValueError: If the result has no usable lat/lon
    """
    try:
        lon = float(result["lon"])
        lat = float(result["lat"])
    except (KeyError, TypeError) as e:
        raise ValueError(f"Nominatim result has no coordinates: {result}") from e
    return Location(lon=lon, lat=lat, display_name=result.get("display_name", ""))


async def geocode_place(
    client: httpx.AsyncClient,
    place_name: str,
    bounds: Optional[BoundingBox] = None,
    user_agent: str = DEFAULT_USER_AGENT,
) -> Location:
    """
    Look up the best-matching point for a place name.

    Args:
        client: httpx AsyncClient instance
        place_name: Free-form place name
        bounds: Only accept matches inside this box
        user_agent: User-Agent header (Nominatim rejects anonymous clients)

    Raises:
        httpx.HTTPError: On network/API errors
        ValueError: If nothing matches, or the match has no coordinates
    """
    params: dict[str, Any] = {"q": place_name, "format": "jsonv2", "limit": 1}
    if bounds is not None:
        # Nominatim takes viewbox as x1,y1,x2,y2: west,north,east,south
        params["viewbox"] = ",".join(str(v) for v in bounds.as_tuple())
        params["bounded"] = 1

    response = await client.get(
        NOMINATIM_URL, params=params, headers={"User-Agent": user_agent}
    )
    response.raise_for_status()

    matches = response.json()
    if not matches:
        where = " inside the map area" if bounds is not None else ""
        raise ValueError(f"Place not found{where}: {place_name}")

    location = parse_location(matches[0])
    logger.info(f"geocoded {place_name!r} to {location.as_tuple()}")
    return location
