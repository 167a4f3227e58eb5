"""Logging for windowsession.

Everything logs under the ``windowsession`` logger. Nothing is printed
until an embedder (or the CLI) calls ``setup_logging``; ``Environment.initialize``
does so with the ``logging`` section of its config.

Verbosity levels: error(0), warning(1), info(2), verbose(3), trace(4).
A log file comes from ``logging.file`` or the WS_LOG environment variable.
Without one, records go to stderr when it is a terminal.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from windowsession.config.schema import LoggingConfig

TRACE = 5
VERBOSE = 15

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(VERBOSE, "VERBOSE")

logger = logging.getLogger("windowsession")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s]: %(message)s"

# Handlers installed by setup_logging, so a reset removes only ours
_handlers: list[logging.Handler] = []
_configured = False

_VERBOSITY_LEVELS = {
    0: logging.ERROR,
    1: logging.WARNING,
    2: logging.INFO,
    3: VERBOSE,
    4: TRACE,
}


class _LowercaseLevelFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        record.levelname = record.levelname.lower()
        return super().format(record)


def resolve_level(config: LoggingConfig | None) -> int:
    """Level for a logging config. ``verbose`` wins over ``level``."""
    if config is None:
        return logging.INFO
    if config.verbose is not None:
        return _VERBOSITY_LEVELS.get(config.verbose, TRACE)
    if config.level:
        level = logging.getLevelName(config.level.upper())
        if isinstance(level, int):
            return level
    return logging.INFO


def setup_logging(config: LoggingConfig | None = None, *, force: bool = False) -> bool:
    """Attach windowsession's handlers.

    Only the first call configures anything unless ``force`` is set, in which
    case previously installed handlers are replaced.

    Returns:
        True if logging was (re)configured by this call.
    """
    global _configured
    if _configured and not force:
        return False
    reset_logging()
    _configured = True

    level = resolve_level(config)
    logger.setLevel(level)
    formatter = _LowercaseLevelFormatter(LOG_FORMAT, datefmt="%H:%M:%S")

    log_path = config.file if config is not None and config.file else os.environ.get("WS_LOG")
    handler: logging.Handler | None = None
    if log_path:
        try:
            handler = logging.FileHandler(os.path.expanduser(log_path), mode="a", encoding="utf-8")
        except OSError as e:
            if sys.stderr.isatty():
                print(f"[windowsession] Failed to open log file: {e}", file=sys.stderr)
                handler = logging.StreamHandler(sys.stderr)
    elif sys.stderr.isatty():
        handler = logging.StreamHandler(sys.stderr)

    if handler is not None:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        _handlers.append(handler)
    return True


def reset_logging() -> None:
    """Remove and close the handlers installed by ``setup_logging``."""
    global _configured
    _configured = False
    while _handlers:
        handler = _handlers.pop()
        logger.removeHandler(handler)
        handler.close()


def get_logger(name: str | None = None) -> logging.Logger:
    """Get the windowsession logger, or a child of it (e.g. "store")."""
    if name:
        return logger.getChild(name)
    return logger
