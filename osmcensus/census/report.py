from typing import Iterable, Mapping

from osmcensus.census.tally import ElementKind, KindTally, TagCensus


def _render_tallies(tallies: Mapping[ElementKind, KindTally]) -> str:
    entries = [f"{kind.name.title()}: {{starts: {t.starts}, ends: {t.ends}}}" for kind, t in tallies.items()]
    return "{" + ", ".join(entries) + "}"


def _render_names(names: Iterable[str]) -> str:
    # sorted only to keep the output stable between runs
    return "{" + ", ".join(repr(n) for n in sorted(names)) + "}"


def render_report(census: TagCensus) -> str:
    """
    Render the census as a human readable summary. Every element kind is listed,
    even if it never occurred.
    """
    return (
        f"... and done! \n\tinfo: {_render_tallies(census.tallies)}"
        f"\n\tOthers: {_render_names(census.others)}"
    )
