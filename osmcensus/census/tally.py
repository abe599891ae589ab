from dataclasses import dataclass
from enum import Enum
from time import perf_counter
from typing import Dict, FrozenSet, Iterable, Mapping, Set

from osmcensus.io.MarkupReader import MarkupEvent, MarkupEventType, MarkupReader
from osmcensus.logging import LOGGER


class ElementKind(str, Enum):
    NODE = "node"
    WAY = "way"
    RELATION = "relation"


@dataclass
class KindTally:
    starts: int = 0
    ends: int = 0


def classify(name: str) -> ElementKind | None:
    """
    Map an element name to its OSM element kind, ignoring ASCII case only.
    Returns None for any other element.
    """
    if not name.isascii():
        return None

    lowered = name.lower()
    for kind in ElementKind:
        if lowered == kind.value:
            return kind

    return None


class TagCensus:
    def __init__(self) -> None:
        """
        Counts start and end tags of OSM nodes, ways and relations and collects the names
        of all other elements. Both aggregates only ever grow.
        """
        self._tallies: Dict[ElementKind, KindTally] = dict()
        self._others: Set[str] = set()

    def register(self, name: str, start: bool) -> None:
        """
        Record one start or end tag.

        :param name: the local element name
        :param start: True for a start tag, False for an end tag
        """
        kind = classify(name)
        if kind is None:
            self._others.add(name)
            return

        tally = self._tallies.setdefault(kind, KindTally())
        if start:
            tally.starts += 1
        else:
            tally.ends += 1

    def observe(self, event: MarkupEvent) -> None:
        match event.type:
            case MarkupEventType.START:
                self.register(event.name, True)
            case MarkupEventType.END:
                self.register(event.name, False)
            case MarkupEventType.EMPTY:
                self.register(event.name, True)
                self.register(event.name, False)
            case _:
                pass

    def observe_all(self, events: Iterable[MarkupEvent]) -> "TagCensus":
        for event in events:
            if event.type == MarkupEventType.EOF:
                break
            self.observe(event)

        return self

    def consume(self, reader: MarkupReader) -> "TagCensus":
        """
        Drive the reader until the end of the document. Reader errors are not handled here,
        they abort the census.
        """
        started = perf_counter()
        self.observe_all(reader)

        LOGGER.info(
            f"Counted {sum(t.starts for t in self._tallies.values())} OSM elements and "
            f"{len(self._others)} other element names in {perf_counter() - started:.2f}s"
        )
        return self

    @property
    def tallies(self) -> Mapping[ElementKind, KindTally]:
        """Tallies for all kinds, including the ones never seen."""
        tallies = {kind: self._tallies.get(kind, KindTally()) for kind in ElementKind}
        return {kind: KindTally(t.starts, t.ends) for kind, t in tallies.items()}

    @property
    def others(self) -> FrozenSet[str]:
        return frozenset(self._others)
