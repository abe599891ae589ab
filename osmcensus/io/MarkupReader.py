import codecs
import re
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Deque, Iterator
from xml.parsers import expat
from xml.parsers.expat import errors

from osmcensus.config.CensusConfig import DEFAULT_BUFFER_SIZE
from osmcensus.logging import LOGGER
from osmcensus.util.exception import CensusIOError, MalformedMarkupError

_NO_ELEMENTS = errors.codes[errors.XML_ERROR_NO_ELEMENTS]
_EMPTY_TAG_END = b"/>"

# invalid UTF-8 is replaced by this marker before expat sees it. U+FFFD itself is no legal name
# character for expat, the marker is, and it is turned back into U+FFFD in element names
_LOSSY_MARKER = "_xFFFD_"
_LOSSY_ERRORS = "osmcensus.lossy"
_SNIFF_SIZE = 1024
_DECLARED_ENCODING = re.compile(
    rb"""^(?:\xef\xbb\xbf)?\s*<\?xml[^>]*?encoding\s*=\s*['"]([A-Za-z0-9._-]+)['"]"""
)
_UNDECIDED = object()


def _lossy(e: UnicodeDecodeError):
    return _LOSSY_MARKER, e.end


codecs.register_error(_LOSSY_ERRORS, _lossy)


class MarkupEventType(str, Enum):
    START = "start"
    END = "end"
    EMPTY = "empty"  # a self-closing element, e.g. <node/>
    EOF = "eof"
    OTHER = "other"  # character data, comments, processing instructions


@dataclass(frozen=True)
class MarkupEvent:
    type: MarkupEventType
    name: str | None = None


EOF_EVENT = MarkupEvent(MarkupEventType.EOF)
OTHER_EVENT = MarkupEvent(MarkupEventType.OTHER)


def local_name(name: str) -> str:
    """Strip the namespace prefix from a qualified element name, invalid UTF-8 shows as U+FFFD."""
    return name.rpartition(":")[2].replace(_LOSSY_MARKER, "\ufffd")


def _utf8_decoder(head: bytes):
    """
    Returns a lossy incremental UTF-8 decoder if the document starting with :param head: is UTF-8,
    None if it is in another encoding expat has to deal with itself.
    """
    if head.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE, b"<\x00", b"\x00<")):
        return None

    declared = _DECLARED_ENCODING.match(head)
    if declared:
        try:
            if codecs.lookup(declared.group(1).decode("ascii")).name != "utf-8":
                return None
        except LookupError:
            return None

    return codecs.getincrementaldecoder("utf-8")(errors=_LOSSY_ERRORS)


class MarkupReader:
    def __init__(self, stream: BinaryIO, buffer_size: int = DEFAULT_BUFFER_SIZE) -> None:
        """
        Pull-based XML event reader. Feeds the expat parser chunk by chunk from the passed
        stream, so the document is never held in memory as a whole.

        Events are produced by calling :meth:`read_event` until it returns an EOF event,
        or by iterating over the reader.

        :param stream: a readable binary stream with XML content
        :param buffer_size: how many bytes are fed to the parser at once
        """
        self._stream = stream
        self._buffer_size = buffer_size
        self._pending: Deque[MarkupEvent] = deque()
        self._done = False
        self._seen_element = False
        self._head = b""
        self._decoder = _UNDECIDED

        # raw bytes from the position of the last reported event onwards, and the absolute
        # offset of the first of them. expat may hold back incomplete tokens, so this can span
        # more than the current chunk
        self._window = b""
        self._window_offset = 0
        self._last_index = 0

        self._parser = expat.ParserCreate()
        self._parser.StartElementHandler = self._start
        self._parser.EndElementHandler = self._end
        self._parser.CharacterDataHandler = self._other
        self._parser.CommentHandler = self._other
        self._parser.ProcessingInstructionHandler = self._other

    def __iter__(self) -> Iterator[MarkupEvent]:
        while True:
            event = self.read_event()
            yield event
            if event.type == MarkupEventType.EOF:
                return

    def read_event(self) -> MarkupEvent:
        """
        Return the next event of the document. Keeps returning EOF once the document is exhausted.

        :raises MalformedMarkupError: if the document is not well-formed XML
        :raises CensusIOError: if the underlying stream can't be read
        """
        while not self._pending:
            if self._done:
                return EOF_EVENT
            self._feed()

        return self._pending.popleft()

    def _feed(self) -> None:
        try:
            chunk = self._stream.read(self._buffer_size)
        except (OSError, EOFError) as e:
            raise CensusIOError(f"Error reading OSM data: {e}")

        final = not chunk
        if self._decoder is _UNDECIDED:
            # the encoding declaration has to be seen before deciding whether to decode
            self._head += chunk
            if not final and len(self._head) < _SNIFF_SIZE and b">" not in self._head:
                return
            self._decoder = _utf8_decoder(self._head)
            chunk, self._head = self._head, b""

        if self._decoder is not None:
            chunk = self._decoder.decode(chunk, final).encode("utf-8")

        self._window += chunk

        try:
            self._parser.Parse(chunk, final)
        except expat.ExpatError as e:
            if final and e.code == _NO_ELEMENTS and not self._seen_element:
                # nothing but whitespace, a prolog or nothing at all
                LOGGER.debug("Document does not contain any elements")
            else:
                raise MalformedMarkupError(expat.ErrorString(e.code), e.lineno, e.offset)

        if final:
            self._done = True
            return

        # no token expat has yet to report can start before the last reported one
        cut = self._last_index - self._window_offset
        if cut > 0:
            self._window = self._window[cut:]
            self._window_offset += cut

    def _mark(self) -> int:
        index = self._parser.CurrentByteIndex
        if index >= 0:
            self._last_index = index
        return index

    def _start(self, name: str, _attrs) -> None:
        self._mark()
        self._seen_element = True
        self._pending.append(MarkupEvent(MarkupEventType.START, local_name(name)))

    def _end(self, name: str) -> None:
        index = self._mark()
        name = local_name(name)
        if self._is_empty_element(name, index):
            self._pending[-1] = MarkupEvent(MarkupEventType.EMPTY, name)
        else:
            self._pending.append(MarkupEvent(MarkupEventType.END, name))

    def _is_empty_element(self, name: str, index: int) -> bool:
        """
        expat reports a self-closing tag as start and end, both from the same token. In that case
        the end handler sees the position right after the tag, which is preceded by "/>", and no
        other event was emitted in between.
        """
        if not self._pending or self._pending[-1] != MarkupEvent(MarkupEventType.START, name):
            return False

        end = index - self._window_offset
        if end < len(_EMPTY_TAG_END) or end > len(self._window):
            return False

        return self._window[end - len(_EMPTY_TAG_END) : end] == _EMPTY_TAG_END

    def _other(self, *_) -> None:
        self._mark()
        self._pending.append(OTHER_EVENT)
