import bz2
import io
from contextlib import ExitStack, contextmanager
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Callable, Iterator, Mapping

from osmcensus.config.CensusConfig import DEFAULT_BUFFER_SIZE
from osmcensus.logging import LOGGER
from osmcensus.util.exception import CensusIOError, UnsupportedFormatError

# suffixes are matched against the whole path string, case sensitive.
# the compressed suffix is tested first
BZIP2_SUFFIX = "osm.bz2"
XML_SUFFIX = "osm"


class ContainerFormat(str, Enum):
    XML = "xml"
    BZIP2 = "bzip2"


def resolve_format(path: Path | str) -> ContainerFormat:
    """
    Determine the container format of an OSM file from its name.

    :param path: path to the OSM file, it is not accessed
    :raises UnsupportedFormatError: if the name matches neither ``.osm`` nor ``.osm.bz2``
        or can't be represented as text
    """
    name = str(path)
    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        raise UnsupportedFormatError(name)

    if name.endswith(BZIP2_SUFFIX):
        fmt = ContainerFormat.BZIP2
    elif name.endswith(XML_SUFFIX):
        fmt = ContainerFormat.XML
    else:
        raise UnsupportedFormatError(name)

    LOGGER.debug(f"Resolved {name} to container format {fmt.name}")
    return fmt


def _plain(raw: BinaryIO) -> BinaryIO:
    return raw


def _bzip2(raw: BinaryIO) -> BinaryIO:
    # BZ2File inflates lazily and handles concatenated streams
    return bz2.BZ2File(raw, mode="rb")


_DECODERS: Mapping[ContainerFormat, Callable[[BinaryIO], BinaryIO]] = {
    ContainerFormat.XML: _plain,
    ContainerFormat.BZIP2: _bzip2,
}


@contextmanager
def open_stream(
    path: Path, fmt: ContainerFormat, buffer_size: int = DEFAULT_BUFFER_SIZE
) -> Iterator[io.BufferedReader]:
    """
    Open an OSM file for reading and yield a buffered byte stream of its XML content,
    regardless of the container format. The file is closed when the context exits.

    :param path: path of the OSM file
    :param fmt: the container format, see :func:`resolve_format`
    :param buffer_size: size of the read buffer in bytes
    :raises CensusIOError: if the file can't be opened
    """
    with ExitStack() as stack:
        try:
            raw = stack.enter_context(open(path, "rb", buffering=0))
        except OSError as e:
            raise CensusIOError(f"Unable to open OSM file {path}: {e.strerror or e}")

        LOGGER.info(f"Reading {path} ({fmt.name})")
        # closing the BZ2File does not close the file object it was handed, so every layer
        # is closed on its own, the raw file last
        decoded = stack.enter_context(_DECODERS[fmt](raw))
        yield stack.enter_context(io.BufferedReader(decoded, buffer_size=buffer_size))
