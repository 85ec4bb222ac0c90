"""Tests for the OSM XML loader."""

import xml.etree.ElementTree as ET

import pytest

from mapquery.graph import SpatialGraph
from mapquery.osm import load_osm

SAMPLE_OSM = """<?xml version="1.0" encoding="UTF-8"?>
<osm version="0.6" generator="test">
  <bounds minlat="37.82" minlon="-122.30" maxlat="37.89" maxlon="-122.21"/>
  <node id="1" lat="37.870" lon="-122.260"/>
  <node id="2" lat="37.871" lon="-122.259">
    <tag k="highway" v="traffic_signals"/>
  </node>
  <node id="3" lat="37.872" lon="-122.258"/>
  <node id="4" lat="37.873" lon="-122.257"/>
  <node id="5" lat="37.880" lon="-122.250"/>
  <node id="6" lat="37.874" lon="-122.256"/>
  <way id="100">
    <nd ref="1"/>
    <nd ref="2"/>
    <nd ref="3"/>
    <tag k="highway" v="residential"/>
    <tag k="name" v="Hearst Avenue"/>
  </way>
  <way id="101">
    <nd ref="3"/>
    <nd ref="4"/>
    <tag k="building" v="yes"/>
  </way>
  <way id="102">
    <nd ref="3"/>
    <nd ref="999"/>
    <nd ref="6"/>
    <tag k="highway" v="primary_link"/>
  </way>
  <way id="103">
    <nd ref="4"/>
    <nd ref="5"/>
    <tag k="highway" v="footway"/>
  </way>
  <relation id="200">
    <member type="way" ref="100" role=""/>
  </relation>
</osm>
"""


@pytest.fixture
def osm_file(tmp_path):
    path = tmp_path / "sample.osm"
    path.write_text(SAMPLE_OSM)
    return path


class TestLoadOsm:
    """Tests for load_osm."""

    def test_road_ways_create_edges(self, osm_file):
        graph = load_osm(osm_file)

        assert set(graph.adjacent(1)) == {2}
        assert set(graph.adjacent(2)) == {1, 3}
        assert graph.edge_count() == 2

    def test_non_road_ways_ignored(self, osm_file):
        graph = load_osm(osm_file)
        # 4 and 5 are only joined by a building and a footway
        assert 4 not in graph
        assert 5 not in graph

    def test_segments_with_unknown_nodes_skipped(self, osm_file):
        graph = load_osm(osm_file)
        # 3-999 and 999-6 are both skipped, so 6 ends up isolated
        assert 6 not in graph
        assert set(graph.adjacent(3)) == {2}

    def test_coordinates(self, osm_file):
        graph = load_osm(osm_file)
        assert graph.lon(1) == -122.260
        assert graph.lat(1) == 37.870

    def test_loads_into_existing_graph(self, osm_file):
        graph = SpatialGraph()
        graph.add_vertex(50, 0.0, 0.0)
        graph.add_vertex(51, 1.0, 0.0)
        graph.add_edge(50, 51)

        result = load_osm(osm_file, graph=graph)

        assert result is graph
        assert 50 in graph
        assert 1 in graph

    def test_progress_bar(self, osm_file):
        graph = load_osm(osm_file, progress=True)
        assert len(graph) == 3

    def test_symmetric_after_load(self, osm_file):
        graph = load_osm(osm_file)
        for v in graph.vertices():
            for w in graph.adjacent(v):
                assert v in graph.adjacent(w)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_osm(tmp_path / "nope.osm")

    def test_malformed_xml(self, tmp_path):
        path = tmp_path / "broken.osm"
        path.write_text("<osm><node id='1'")
        with pytest.raises(ET.ParseError):
            load_osm(path)
