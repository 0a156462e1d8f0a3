from __future__ import annotations

import logging
import sys
from enum import Enum

from screenshat.errors import UsageError

LOGGER_NAME = "screenshat"


class Verbosity(Enum):
    QUIET = "quiet"
    NORMAL = "normal"
    VERBOSE = "verbose"
    DEBUG = "debug"

    @classmethod
    def from_flags(cls, quiet: bool, verbose: int) -> "Verbosity":
        if quiet and verbose > 0:
            raise UsageError("Can't be both quiet and verbose")
        if quiet:
            return cls.QUIET
        if verbose >= 2:
            return cls.DEBUG
        if verbose == 1:
            return cls.VERBOSE
        return cls.NORMAL

    @property
    def level(self) -> int:
        return _LEVELS[self]


_LEVELS = {
    Verbosity.QUIET: logging.ERROR,
    Verbosity.NORMAL: logging.WARNING,
    Verbosity.VERBOSE: logging.INFO,
    Verbosity.DEBUG: logging.DEBUG,
}


def configure_logging(verbosity: Verbosity, stream=None) -> logging.Logger:
    """Attach a single stderr handler to the package logger and return it.

    Safe to call more than once; the previous handler is replaced.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(verbosity.level)
    logger.propagate = False
    return logger
