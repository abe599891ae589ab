class CensusError(Exception):
    """Base class for everything the census raises on purpose."""


class UnsupportedFormatError(CensusError):
    MESSAGE = "Only files with extension .osm or .osm.bz2 are supported."

    def __init__(self, path: str) -> None:
        super().__init__(self.MESSAGE)
        self.path = path


class CensusIOError(CensusError):
    def __init__(self, reason: str) -> None:
        super().__init__(reason)


class MalformedMarkupError(CensusError):
    def __init__(self, reason: str, line: int | None = None, column: int | None = None) -> None:
        location = f" (line {line}, column {column})" if line is not None else ""
        super().__init__(f"Malformed OSM XML{location}: {reason}")
        self.line = line
        self.column = column


class CensusConfigError(CensusError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid configuration: {reason}")
