"""
OpenStreetMap XML loader.

Streams an .osm file into a SpatialGraph: every <node> becomes a vertex and
every drivable <way> connects its consecutive nodes. Non-road ways (buildings,
footpaths, rivers...) are ignored.
"""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Optional

from tqdm import tqdm

from .errors import UnknownVertexError
from .graph import SpatialGraph

logger = logging.getLogger(__name__)

ALLOWED_HIGHWAY_TYPES = frozenset(
    [
        "motorway",
        "trunk",
        "primary",
        "secondary",
        "tertiary",
        "unclassified",
        "residential",
        "living_street",
        "motorway_link",
        "trunk_link",
        "primary_link",
        "secondary_link",
        "tertiary_link",
    ]
)


def _is_road(way: ET.Element) -> bool:
    for tag in way.iter("tag"):
        if tag.get("k") == "highway" and tag.get("v") in ALLOWED_HIGHWAY_TYPES:
            return True
    return False


def _connect_way(graph: SpatialGraph, refs: list[int]) -> tuple[int, int]:
    """Connect consecutive refs. Returns (edges added, segments skipped)."""
    added = skipped = 0
    for s, t in zip(refs, refs[1:]):
        try:
            graph.add_edge(s, t)
            added += 1
        except UnknownVertexError as e:
            logger.debug(f"skipping way segment {s}-{t}: {e}")
            skipped += 1
    return added, skipped


def load_osm(
    path: Path,
    graph: Optional[SpatialGraph] = None,
    progress: bool = False,
) -> SpatialGraph:
    """
    Load a road graph from an OSM XML file.

    Nodes must appear before the ways that reference them, which is the
    order OSM extracts use. Isolated vertices are pruned at the end.

    Args:
        path: Path to the .osm file
        graph: Graph to load into (default: a new one)
        progress: Show a tqdm progress bar over parsed elements

    Returns:
        The populated graph

    Raises:
        FileNotFoundError: If path does not exist
        xml.etree.ElementTree.ParseError: On malformed XML
    """
    path = Path(path)
    graph = graph if graph is not None else SpatialGraph()
    logger.info(f"loading road graph from {path}")

    nodes = ways = edges = skipped = 0
    with tqdm(desc="Parsing OSM", unit=" elem", disable=not progress) as pbar:
        for _, elem in ET.iterparse(str(path), events=("end",)):
            if elem.tag == "node":
                graph.add_vertex(
                    int(elem.get("id")), float(elem.get("lon")), float(elem.get("lat"))
                )
                nodes += 1
                elem.clear()
            elif elem.tag == "way":
                if _is_road(elem):
                    refs = [int(nd.get("ref")) for nd in elem.iter("nd")]
                    added, missed = _connect_way(graph, refs)
                    edges += added
                    skipped += missed
                    ways += 1
                elem.clear()
            elif elem.tag == "relation":
                elem.clear()
            else:
                continue
            pbar.update(1)

    if skipped:
        logger.warning(f"skipped {skipped} way segments referencing unknown nodes")
    logger.info(f"parsed {nodes} nodes, {ways} road ways, {edges} segments")

    graph.cleanup()
    return graph
