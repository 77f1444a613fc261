"""
Logging configuration — one-time setup for the provisioner CLI.

``provisioner.main`` calls ``setup_logging`` once; every other module
only does ``logger = logging.getLogger(__name__)``.

Console level precedence:
    --debug / --verbose / --quiet  >  PROVISIONER_LOG_LEVEL  >  WARNING

Download progress and installer state changes are logged at INFO, so
``-v`` is enough to follow an install.  A full-detail copy can be
written to PROVISIONER_LOG_FILE at PROVISIONER_LOG_FILE_LEVEL.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Mapping

ENV_LEVEL = "PROVISIONER_LOG_LEVEL"
ENV_FILE = "PROVISIONER_LOG_FILE"
ENV_FILE_LEVEL = "PROVISIONER_LOG_FILE_LEVEL"

# Console formats, from most to least detailed: (max level, format, datefmt)
_CONSOLE_FORMATS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
)
_CONSOLE_DEFAULT = "%(message)s"

_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"


def resolve_level(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Pick the console level from CLI flags, then the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    env = os.environ if environ is None else environ
    return env.get(ENV_LEVEL, "WARNING")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Configure the root logger for this process.

    Args:
        level: Console level name.
        log_file: Optional log file path; parent directories are created.
        log_file_level: Level for the file handler (defaults to ``level``).
    """
    console_level = _parse_level(level)

    root = logging.getLogger()
    root.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(_console_formatter(console_level))
    root.addHandler(console)

    root_level = console_level
    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)

        fh = logging.FileHandler(path, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
        root.addHandler(fh)
        root_level = min(root_level, file_level)

    root.setLevel(root_level)

    logging.raiseExceptions = False


def _console_formatter(level: int) -> logging.Formatter:
    for max_level, fmt, datefmt in _CONSOLE_FORMATS:
        if level <= max_level:
            return logging.Formatter(fmt, datefmt=datefmt)
    return logging.Formatter(_CONSOLE_DEFAULT)


def _parse_level(level: str | None) -> int:
    """Level name → numeric level; anything unknown means WARNING."""
    if not level:
        return logging.WARNING
    numeric = logging.getLevelName(level.upper())
    return numeric if isinstance(numeric, int) else logging.WARNING
