"""Own the package logger and its debug level.

'why': one handler for all library output, lowered to DEBUG only while some client asks for it
"""
from __future__ import annotations

import logging
import weakref
from functools import cache
from typing import Final


_LOGGER_NAME: Final[str] = "labmanager_client"
_FORMAT: Final[str] = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# clients constructed or configured with debug=True
_DEBUG_OWNERS: weakref.WeakSet[object] = weakref.WeakSet()


@cache
def get_logger() -> logging.Logger:
    """Return the package logger, attaching its stream handler on first use."""

    logger = logging.getLogger(_LOGGER_NAME)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt=_FORMAT))
        logger.addHandler(handler)
    logger.propagate = False
    if logger.level == logging.NOTSET:
        logger.setLevel(logging.INFO)
    return logger


def set_log_level(level: str | int) -> None:
    """Apply a level name (e.g. "DEBUG") or number to the package logger.

    Raises ValueError for unknown level names.
    """

    if isinstance(level, str):
        levels = logging.getLevelNamesMapping()
        try:
            level = levels[level.upper()]
        except KeyError:
            raise ValueError(f"unknown log level: {level}") from None
    get_logger().setLevel(level)


def track_debug(owner: object, enabled: bool) -> None:
    """Record whether owner wants debug output and set the level accordingly.

    The logger stays at DEBUG while at least one live owner has debug enabled
    and drops back to INFO once the last one turns it off. Owners that never
    enabled debug leave the level alone.
    """

    if enabled == (owner in _DEBUG_OWNERS):
        return
    if enabled:
        _DEBUG_OWNERS.add(owner)
        set_log_level(logging.DEBUG)
        return
    _DEBUG_OWNERS.discard(owner)
    if not _DEBUG_OWNERS:
        set_log_level(logging.INFO)
