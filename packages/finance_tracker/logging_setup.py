"""Logging for ``finance_tracker``: one handler, ``event key=value`` records.

- ``log_event(logger, "parse:escalate", confidence=0.5, threshold=0.75)``
  emits ``parse:escalate confidence=0.50 threshold=0.75``. Every module logs
  through it so records stay greppable by event name.
- ``configure_logging(level)`` installs the single stream handler on the
  ``finance_tracker`` logger. The CLI calls it with ``Settings.log_level``
  after settings are resolved; calling it again replaces the handler and
  ``reset_logging()`` removes it.
- ``get_logger(name)`` returns a module logger; the package stays silent
  (``NullHandler``) until an application configures it.
"""

from __future__ import annotations

import logging
import sys
from enum import Enum
from typing import IO, Any

PACKAGE_LOGGER = "finance_tracker"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_handler: logging.Handler | None = None


def parse_level(level: int | str) -> int:
    """``"debug"``, ``"INFO"``, ``"10"`` or ``10`` to a numeric level.

    Raises ``ValueError`` for names the ``logging`` module does not define.
    """

    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = logging.getLevelNamesMapping().get(name)
    if numeric is None:
        raise ValueError(f"unknown log level {level!r}")
    return numeric


def _render(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, float):
        return f"{value:.2f}"
    text = str(value)
    return repr(text) if (not text or any(c.isspace() for c in text)) else text


def format_event(event: str, **fields: Any) -> str:
    """``event k1=v1 k2=v2`` in keyword order."""

    if not fields:
        return event
    return event + " " + " ".join(f"{k}={_render(v)}" for k, v in fields.items())


def log_event(
    logger: logging.Logger, event: str, *, level: int = logging.INFO, **fields: Any
) -> None:
    if logger.isEnabledFor(level):
        logger.log(level, format_event(event, **fields))


def configure_logging(
    level: int | str = logging.INFO,
    *,
    fmt: str = DEFAULT_FORMAT,
    stream: IO[str] | None = None,
) -> logging.Handler:
    """Install (or replace) the package handler and return it."""

    global _handler
    numeric = parse_level(level)
    logger = logging.getLogger(PACKAGE_LOGGER)

    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler) or h is _handler:
            logger.removeHandler(h)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)
    logger.setLevel(numeric)
    logger.propagate = False
    _handler = handler
    return handler


def reset_logging() -> None:
    """Remove the installed handler; the package goes back to silent."""

    global _handler
    logger = logging.getLogger(PACKAGE_LOGGER)
    if _handler is not None:
        logger.removeHandler(_handler)
        _handler = None
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    if _handler is None and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = [
    "DEFAULT_FORMAT",
    "configure_logging",
    "format_event",
    "get_logger",
    "log_event",
    "parse_level",
    "reset_logging",
]
