import logging
from datetime import datetime
from enum import Enum
from pathlib import Path

from osmcensus import PROJECT_NAME


class LogLevel(int, Enum):
    CRITICAL = 50
    FATAL = CRITICAL
    ERROR = 40
    WARNING = 30
    WARN = WARNING
    INFO = 20
    DEBUG = 10
    NOTSET = 0


LOGGER = logging.getLogger("osmcensus")
handler = logging.StreamHandler()
formatter = logging.Formatter("%(asctime)s %(levelname)5s: %(message)s")
handler.setFormatter(formatter)
LOGGER.addHandler(handler)


def init_logger(level: LogLevel, logpath: Path | None = None):
    """sets the level on the package logger and optionally mirrors it to a file"""
    LOGGER.setLevel(level.value)

    if logpath:
        logpath.mkdir(exist_ok=True, parents=True)
        file = logpath / f"{datetime.now().strftime('%Y-%m-%dT%H-%M')}_{PROJECT_NAME.lower()}.txt"
        file_handler = logging.FileHandler(file, mode="w")
        file_handler.setFormatter(formatter)
        LOGGER.addHandler(file_handler)
