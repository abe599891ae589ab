from pathlib import Path
from typing import Annotated, Optional

import typer
from rich import print
from rich.markup import escape

from osmcensus.census.report import render_report
from osmcensus.census.tally import TagCensus
from osmcensus.config.CensusConfig import CensusConfig
from osmcensus.io.MarkupReader import MarkupReader
from osmcensus.io.OSM import open_stream, resolve_format
from osmcensus.logging import LOGGER, LogLevel, init_logger
from osmcensus.util.exception import CensusError, UnsupportedFormatError

osmcensus = typer.Typer(add_completion=False)


@osmcensus.command()
def count(
    file: Annotated[Path, typer.Argument(help="File to process (either .osm or .osm.bz2 extension)")],
    config: Annotated[
        Optional[Path], typer.Option(help="A YAML config with reader and logging settings")
    ] = None,
    log_level: Annotated[
        Optional[str], typer.Option(help="Logging level, overrides the config")
    ] = None,
    log_path: Annotated[
        Optional[Path], typer.Option(help="Directory to write a log file to, overrides the config")
    ] = None,
):
    """
    Parse an OSM data file and report the number of node, way and relation tags.

    The data file may be either plain XML (.osm) or archived (.osm.bz2).
    Note: parsing an archived file takes about four times longer than a plain XML file.
    """
    try:
        conf = CensusConfig.from_path(config) if config else CensusConfig.default()
        level = LogLevel[log_level.upper()] if log_level else conf.logging.level
    except KeyError:
        print(f"[bold red]Unknown log level:[/bold red] {escape(log_level)}")
        raise typer.Exit(code=2)
    except CensusError as e:
        print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=2)

    init_logger(level, log_path or conf.logging.path)

    try:
        fmt = resolve_format(file)
    except UnsupportedFormatError as e:
        LOGGER.debug(f"Not processing {e.path}, unsupported container format")
        typer.echo(str(e))
        return

    try:
        with open_stream(file, fmt, conf.reader.buffer_size) as stream:
            census = TagCensus().consume(MarkupReader(stream, conf.reader.buffer_size))
    except CensusError as e:
        LOGGER.critical(e)
        print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1)

    typer.echo(render_report(census))


def main():
    osmcensus()


if __name__ == "__main__":
    main()
