"""
Logging configuration — one call at CLI start, inherited everywhere.

Modules log through ``logging.getLogger(__name__)``; this module decides
where those records go. Console level precedence:

    --debug  >  --verbose  >  --quiet  >  AIPT_LOG_LEVEL  >  WARNING

Provisioning runs are long and mostly unattended, so a DEBUG file log
(AIPT_LOG_FILE, AIPT_LOG_FILE_LEVEL) next to a quiet console is the
usual setup on real hosts.
"""

from __future__ import annotations

import logging
import os
import sys

LEVEL_ENV_VAR = "AIPT_LOG_LEVEL"
FILE_ENV_VAR = "AIPT_LOG_FILE"
FILE_LEVEL_ENV_VAR = "AIPT_LOG_FILE_LEVEL"

_DETAILED = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"

# Console format tiers, most verbose first: (max level, format, datefmt)
_CONSOLE_TIERS = (
    (logging.DEBUG, _DETAILED, "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
)
_CONSOLE_DEFAULT = ("%(message)s", None)

_FILE_FORMAT = (_DETAILED, "%Y-%m-%d %H:%M:%S")


def resolve_level(debug: bool = False, verbose: bool = False, quiet: bool = False) -> str:
    """Pick the console level from CLI flags, falling back to the env var."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get(LEVEL_ENV_VAR, "WARNING")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Install the console handler and, if configured, a file handler.

    Args:
        level: Console level name.
        log_file: Log file path; defaults to AIPT_LOG_FILE.
        log_file_level: File level name; defaults to AIPT_LOG_FILE_LEVEL,
            then to ``level``.
    """
    console_level = _parse_level(level)
    log_file = log_file or os.environ.get(FILE_ENV_VAR)
    log_file_level = log_file_level or os.environ.get(FILE_LEVEL_ENV_VAR)

    root = logging.getLogger()
    root.handlers.clear()
    # stderr keeps stdout free for progress lines and --json output
    root.addHandler(_console_handler(console_level))

    root_level = console_level
    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        root.addHandler(_file_handler(log_file, file_level))
        root_level = min(root_level, file_level)

    root.setLevel(root_level)
    logging.raiseExceptions = False


def _console_handler(level: int) -> logging.Handler:
    fmt, datefmt = _CONSOLE_DEFAULT
    for max_level, tier_fmt, tier_datefmt in _CONSOLE_TIERS:
        if level <= max_level:
            fmt, datefmt = tier_fmt, tier_datefmt
            break
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def _file_handler(path: str, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(*_FILE_FORMAT))
    return handler


def _parse_level(level: str | None) -> int:
    """Level name to its numeric value; unknown names mean WARNING."""
    numeric = getattr(logging, (level or "").upper(), None)
    return numeric if isinstance(numeric, int) else logging.WARNING
