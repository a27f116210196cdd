"""Process-wide logging for the ``stockledger`` logger tree.

Every module logs through ``get_logger(__name__)`` (runtime, application
and cli) or ``logging.getLogger(__name__)`` (domain). Both end up under
the ``stockledger`` namespace, which owns a single stderr handler.

The level comes from the ``level`` argument, then ``STOCKLEDGER_LOG_LEVEL``,
then ``DEFAULT_LOG_LEVEL``. Debug output adds the source line number.
"""

import logging
import os
import sys
from typing import TextIO

LOGGER_NAMESPACE = "stockledger"
LOG_LEVEL_ENV = "STOCKLEDGER_LOG_LEVEL"

DEFAULT_LOG_LEVEL = logging.INFO

LOG_FORMAT = "%(levelname)s [%(name)s] %(message)s"
LOG_FORMAT_DEBUG = "%(levelname)s [%(name)s:%(lineno)d] %(message)s"

LOG_LEVELS: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
}

_handler: logging.Handler | None = None


def _resolve_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    name = (level if level is not None else os.environ.get(LOG_LEVEL_ENV, "")).strip().upper()
    return LOG_LEVELS.get(name, DEFAULT_LOG_LEVEL)


def _formatter(level: int) -> logging.Formatter:
    return logging.Formatter(LOG_FORMAT_DEBUG if level <= logging.DEBUG else LOG_FORMAT)


def configure_logging(level: int | str | None = None, stream: TextIO | None = None) -> logging.Logger:
    """Attach the stockledger handler once and return the namespace logger.

    Later calls leave the existing handler alone; use ``set_log_level`` to
    change verbosity after start-up.
    """
    global _handler

    namespace = logging.getLogger(LOGGER_NAMESPACE)
    if _handler is not None:
        return namespace

    resolved = _resolve_level(level)
    _handler = logging.StreamHandler(stream or sys.stderr)
    _handler.setFormatter(_formatter(resolved))
    namespace.addHandler(_handler)
    namespace.setLevel(resolved)
    # Library users who configure the root logger would otherwise see each line twice.
    namespace.propagate = False
    return namespace


def get_logger(name: str) -> logging.Logger:
    """Logger for ``name``, placed under the stockledger namespace."""
    configure_logging()
    if name != LOGGER_NAMESPACE and not name.startswith(LOGGER_NAMESPACE + "."):
        name = f"{LOGGER_NAMESPACE}.{name}"
    return logging.getLogger(name)


def set_log_level(level: int | str) -> int:
    """Change verbosity at runtime; accepts a level number or a name like ``"debug"``."""
    resolved = _resolve_level(level)
    namespace = configure_logging()
    namespace.setLevel(resolved)
    for handler in namespace.handlers:
        handler.setFormatter(_formatter(resolved))
    return resolved
