"""
Logging for roitagger.

Library modules only ask for a logger:
    ```python
    from roitagger.utils.logging import get_logger
    logger = get_logger(__name__)
    ```

Demos and applications that want output on stderr call ``configure_logging``,
which attaches one handler to the ``roitagger`` logger and leaves the root
logger alone. Level names may also come from ``ROITAGGER_LOG_LEVEL``.
Capture races and gesture transitions are logged at DEBUG, ROI lifecycle at
INFO. Nothing is ever written to a file.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional, Union

PACKAGE_LOGGER = "roitagger"
LOG_LEVEL_ENV = "ROITAGGER_LOG_LEVEL"

DEFAULT_FMT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d:%(funcName)s: %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"


def parse_level(level: Union[str, int]) -> int:
    """Level name or number -> logging level number. Unknown names raise ValueError."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level {level!r}")
    return value


def _level_from_env() -> tuple[int, Optional[str]]:
    """(level, rejected env value or None)."""
    raw = os.environ.get(LOG_LEVEL_ENV)
    if not raw:
        return logging.INFO, None
    try:
        return parse_level(raw), None
    except ValueError:
        return logging.INFO, raw


def _stderr_handler(logger: logging.Logger) -> Optional[logging.Handler]:
    for h in logger.handlers:
        if isinstance(h, logging.StreamHandler) and h.stream is sys.stderr:
            return h
    return None


def configure_logging(
    level: Optional[Union[str, int]] = None,
    *,
    fmt: Optional[str] = None,
    datefmt: Optional[str] = None,
    force: bool = False,
) -> logging.Logger:
    """
    Send roitagger logs to stderr and return the package logger.

    Parameters
    ----------
    level:
        Level name or number. Defaults to ``ROITAGGER_LOG_LEVEL``, or INFO.
        An unknown explicit name raises ValueError; an unknown env value
        falls back to INFO.
    fmt, datefmt:
        Formatter settings; default to ``DEFAULT_FMT`` / ``DEFAULT_DATEFMT``.
    force:
        Drop existing handlers first. Without it a second call only updates
        the level of the handler already installed.
    """
    rejected: Optional[str] = None
    if level is not None:
        resolved = parse_level(level)
    else:
        resolved, rejected = _level_from_env()

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(resolved)

    if force:
        for h in logger.handlers[:]:
            h.close()
            logger.removeHandler(h)
    else:
        existing = _stderr_handler(logger)
        if existing is not None:
            existing.setLevel(resolved)
            return logger

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(resolved)
    console.setFormatter(
        logging.Formatter(fmt=fmt or DEFAULT_FMT, datefmt=datefmt or DEFAULT_DATEFMT)
    )
    logger.addHandler(console)
    if rejected is not None:
        logger.warning(f"Ignoring {LOG_LEVEL_ENV}={rejected!r}, using INFO")
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger for ``name``, or the package logger when omitted."""
    return logging.getLogger(name or PACKAGE_LOGGER)
