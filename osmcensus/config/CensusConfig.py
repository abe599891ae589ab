from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Type

from osmcensus.io.YAML import load_yaml
from osmcensus.logging import LogLevel
from osmcensus.util.exception import CensusConfigError

try:
    from typing import Self
except ImportError:
    from typing import TypeVar

    Self = TypeVar("Self")

DEFAULT_BUFFER_SIZE = 64 * 1024


@dataclass
class ReaderConfig:
    """Configure how the input is fed to the XML parser."""

    buffer_size: int = DEFAULT_BUFFER_SIZE


@dataclass
class LoggingConfig:
    level: LogLevel = LogLevel.WARNING
    path: Path | None = None


@dataclass
class CensusConfig:
    """Class that holds the run configuration in memory"""

    reader: ReaderConfig = field(default_factory=ReaderConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def default(cls) -> Type[Self]:
        return cls()

    @classmethod
    def from_path(cls, p: Path) -> Type[Self]:
        conf = load_yaml(p)

        try:
            reader_conf = cls._reader_config(conf.get("reader") or {})
            logging_conf = cls._logging_config(conf.get("logging") or {})
        except CensusConfigError:
            raise
        except Exception as e:  # noqa
            raise CensusConfigError(f"error loading config from {p}: {e}")

        return cls(reader_conf, logging_conf)

    @staticmethod
    def _reader_config(d: Mapping) -> ReaderConfig:
        buffer_size = d.get("buffer_size", DEFAULT_BUFFER_SIZE)
        if isinstance(buffer_size, bool) or not isinstance(buffer_size, int) or buffer_size <= 0:
            raise CensusConfigError(f"reader.buffer_size must be a positive integer, got {buffer_size!r}")

        return ReaderConfig(buffer_size)

    @staticmethod
    def _logging_config(d: Mapping) -> LoggingConfig:
        level_name = str(d.get("level", LogLevel.WARNING.name)).upper()
        try:
            level = LogLevel[level_name]
        except KeyError:
            raise CensusConfigError(f"unknown logging.level {level_name!r}")

        path = d.get("path")
        return LoggingConfig(level, Path(path) if path else None)
