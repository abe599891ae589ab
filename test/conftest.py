import bz2
from pathlib import Path
from typing import Callable

import pytest

from osmcensus.census.tally import ElementKind, TagCensus
from osmcensus.io.MarkupReader import MarkupReader
from osmcensus.io.OSM import open_stream, resolve_format
from test.util.osm import OSMTestHandler

MIXED_DOC = b"""<?xml version="1.0" encoding="UTF-8"?>
<osm version="0.6" generator="test">
  <bounds minlat="50.0" minlon="6.0" maxlat="51.0" maxlon="7.0"/>
  <node id="1" lat="50.1" lon="6.1"/>
  <node id="2" lat="50.2" lon="6.2">
    <tag k="amenity" v="bench"/>
  </node>
  <way id="10">
    <nd ref="1"/>
    <nd ref="2"/>
    <tag k="highway" v="residential"/>
  </way>
  <relation id="100">
    <member type="way" ref="10" role="outer"/>
  </relation>
</osm>
"""


def run_census(p: Path, buffer_size: int = 1024) -> TagCensus:
    """
    Little helper running the whole pipeline on a file, like the CLI does.
    """
    with open_stream(p, resolve_format(p), buffer_size) as stream:
        return TagCensus().consume(MarkupReader(stream, buffer_size))


@pytest.fixture
def make_osm(tmp_path: Path) -> Callable:
    def write(content: bytes, name: str = "map.osm") -> Path:
        p = tmp_path / name
        if name.endswith(".bz2"):
            content = bz2.compress(content)
        p.write_bytes(content)
        return p

    return write


@pytest.fixture
def osm_obj_counter() -> Callable:
    """
    Compares the census of a file against the object counts pyosmium reports for it.
    """

    def counter(p: Path, n: int, w: int, r: int):
        handler = OSMTestHandler()
        handler.apply_file(str(p))

        assert n == handler.node_count
        assert w == handler.way_count
        assert r == handler.relation_count

        tallies = run_census(p).tallies
        for kind, expected in ((ElementKind.NODE, n), (ElementKind.WAY, w), (ElementKind.RELATION, r)):
            assert tallies[kind].starts == expected
            assert tallies[kind].ends == expected

    return counter


@pytest.fixture
def mixed_doc() -> bytes:
    return MIXED_DOC
