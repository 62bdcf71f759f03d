import logging
import sys
from typing import IO, Optional


class Color:
    RESET = "\x1b[0m"
    DIM = "\x1b[2m"
    RED = "\x1b[31m"
    GREEN = "\x1b[32m"
    YELLOW = "\x1b[33m"
    BLUE = "\x1b[34m"


LEVEL_COLORS = {
    "DEBUG": Color.DIM,
    "INFO": Color.GREEN,
    "WARNING": Color.YELLOW,
    "ERROR": Color.RED,
    "CRITICAL": Color.RED,
}


class PrettyFormatter(logging.Formatter):
    def __init__(self, fmt: str = "%(message)s", color: bool = True) -> None:
        super().__init__(fmt)
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        level = record.levelname
        msg = super().format(record)
        if not self.color:
            return f"{level:<8} {record.name}: {msg}"
        color = LEVEL_COLORS.get(level, Color.BLUE)
        return f"{color}{level:<8}{Color.RESET} {record.name}: {msg}"


def setup(level: str = "INFO", stream: Optional[IO[str]] = None) -> None:
    out = stream or sys.stdout
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    h = logging.StreamHandler(out)
    h.setFormatter(PrettyFormatter(color=bool(getattr(out, "isatty", lambda: False)())))
    logger.handlers = [h]
