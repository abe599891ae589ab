from pathlib import Path
from typing import Callable

import pytest
from typer.testing import CliRunner

from cli import osmcensus

runner = CliRunner()


@pytest.mark.parametrize("name", ["map.osm", "map.osm.bz2"])
def test_census(make_osm: Callable, mixed_doc: bytes, name: str):
    result = runner.invoke(osmcensus, [str(make_osm(mixed_doc, name))])

    assert result.exit_code == 0
    assert "... and done! \n\tinfo: " in result.stdout
    assert "Node: {starts: 2, ends: 2}" in result.stdout
    assert "Way: {starts: 1, ends: 1}" in result.stdout
    assert "Relation: {starts: 1, ends: 1}" in result.stdout
    assert "\tOthers: {'bounds', 'member', 'nd', 'osm', 'tag'}" in result.stdout


def test_mixed_content(make_osm: Callable):
    result = runner.invoke(osmcensus, [str(make_osm(b"<osm><node/><way></way><foo/></osm>"))])

    assert result.exit_code == 0
    assert "Node: {starts: 1, ends: 1}" in result.stdout
    assert "Way: {starts: 1, ends: 1}" in result.stdout
    assert "Relation: {starts: 0, ends: 0}" in result.stdout
    assert "Others: {'foo', 'osm'}" in result.stdout


def test_empty_document(make_osm: Callable):
    result = runner.invoke(osmcensus, [str(make_osm(b""))])

    assert result.exit_code == 0
    assert "Node: {starts: 0, ends: 0}" in result.stdout
    assert "Others: {}" in result.stdout


def test_unsupported_format(tmp_path: Path):
    # the file isn't even opened
    result = runner.invoke(osmcensus, [str(tmp_path / "map.txt")])

    assert result.exit_code == 0
    assert result.stdout.strip() == "Only files with extension .osm or .osm.bz2 are supported."


def test_missing_file(tmp_path: Path):
    result = runner.invoke(osmcensus, [str(tmp_path / "missing.osm")])

    assert result.exit_code == 1
    assert "Unable to open OSM file" in result.stdout
    assert "and done!" not in result.stdout


@pytest.mark.parametrize("name", ["map.osm", "map.osm.bz2"])
def test_malformed(make_osm: Callable, name: str):
    result = runner.invoke(osmcensus, [str(make_osm(b"<osm><node><way/></osm>", name))])

    assert result.exit_code == 1
    assert "Malformed OSM XML" in result.stdout
    assert "and done!" not in result.stdout


def test_corrupt_archive(tmp_path: Path, mixed_doc: bytes):
    p = tmp_path / "map.osm.bz2"
    p.write_bytes(mixed_doc)

    result = runner.invoke(osmcensus, [str(p)])

    assert result.exit_code == 1
    assert "and done!" not in result.stdout


def test_config_and_log_file(make_osm: Callable, mixed_doc: bytes, tmp_path: Path):
    config = tmp_path / "config.yml"
    config.write_text("reader:\n    buffer_size: 8\nlogging:\n    level: INFO\n")
    log_path = tmp_path / "logs"

    result = runner.invoke(
        osmcensus, [str(make_osm(mixed_doc)), "--config", str(config), "--log-path", str(log_path)]
    )

    assert result.exit_code == 0
    assert "Node: {starts: 2, ends: 2}" in result.stdout
    assert len(list(log_path.glob("*.txt"))) == 1


def test_invalid_config(make_osm: Callable, mixed_doc: bytes, tmp_path: Path):
    config = tmp_path / "config.yml"
    config.write_text("reader:\n    buffer_size: 0\n")

    result = runner.invoke(osmcensus, [str(make_osm(mixed_doc)), "--config", str(config)])

    assert result.exit_code == 2
    assert "and done!" not in result.stdout


def test_unknown_log_level(make_osm: Callable, mixed_doc: bytes):
    result = runner.invoke(osmcensus, [str(make_osm(mixed_doc)), "--log-level", "chatty"])

    assert result.exit_code == 2


def test_unsupported_format_is_logged(tmp_path: Path, caplog):
    with caplog.at_level("DEBUG", logger="osmcensus"):
        result = runner.invoke(osmcensus, [str(tmp_path / "map.pbf"), "--log-level", "debug"])

    assert result.exit_code == 0
    assert any("map.pbf" in r.getMessage() for r in caplog.records)


def test_invalid_utf8_name(make_osm: Callable):
    result = runner.invoke(osmcensus, [str(make_osm(b"<osm><n\xffde/><node/></osm>"))])

    assert result.exit_code == 0
    assert "Node: {starts: 1, ends: 1}" in result.stdout
    assert "Others: {'n\ufffdde', 'osm'}" in result.stdout
