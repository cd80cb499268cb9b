#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markweave/logging_utils.py
"""Logging setup for the markweave command line.

The library only creates module loggers under ``markweave``; handlers are
installed here, by the CLI. Two audiences are served:

- ``--log-level`` controls pipeline messages (options, files, silent errors).
- ``--trace`` additionally opens the grammar loggers, whose debug records
  describe every lexing pass and would drown a normal debug session.

"""

from __future__ import annotations

import logging
import sys
from typing import Optional

# Loggers whose debug output describes tokenization itself.
GRAMMAR_LOGGERS = ("markweave.lexer", "markweave.tokenizer")

_PLAIN_FORMAT = "%(levelname)s: %(message)s"
_TRACE_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"


def resolve_level(log_level: int | str) -> int:
    """Translate a level name such as ``"debug"`` to its numeric value.

    Unknown names fall back to ``WARNING``, the CLI default.

    Examples
    --------
    >>> resolve_level("debug") == logging.DEBUG
    True
    >>> resolve_level("loud") == logging.WARNING
    True

    """
    if isinstance(log_level, int):
        return log_level
    level = logging.getLevelName(str(log_level).upper())
    return level if isinstance(level, int) else logging.WARNING


def grammar_level(level: int, trace_mode: bool) -> int:
    """Level for the grammar loggers: ``level`` when tracing, never below INFO otherwise."""
    return level if trace_mode else max(level, logging.INFO)


def configure_logging(
    log_level: int | str,
    log_file: Optional[str] = None,
    trace_mode: bool = False,
) -> logging.Logger:
    """Install stderr (and optional file) handlers for a CLI run.

    Parameters
    ----------
    log_level : int | str
        Numeric level or level name for the ``markweave`` loggers
    log_file : str, optional
        Append a copy of the output to this file
    trace_mode : bool, default False
        Timestamped records with logger names, and debug output from the
        grammar loggers

    Returns
    -------
    logging.Logger
        The ``markweave`` package logger

    """
    level = resolve_level(log_level)
    formatter = logging.Formatter(
        _TRACE_FORMAT if trace_mode else _PLAIN_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S" if trace_mode else None,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    file_error: Optional[OSError] = None
    if log_file:
        try:
            handlers.append(logging.FileHandler(log_file, mode="a", encoding="utf-8"))
        except OSError as exc:
            file_error = exc

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    package = logging.getLogger("markweave")
    package.setLevel(level)
    for name in GRAMMAR_LOGGERS:
        logging.getLogger(name).setLevel(grammar_level(level, trace_mode))

    if file_error is not None:
        package.warning("Could not create log file %s: %s", log_file, file_error)
    elif log_file:
        package.info("Logging to file: %s", log_file)
    return package
