"""
Logging configuration — set up once by main.py.

Every module that does ``logger = logging.getLogger(__name__)``
inherits this config. The step report is printed by the CLI on
stdout; logging goes to stderr and, optionally, a file, so piping
``termsetup run --json`` stays clean.

Console level, highest precedence first:
    --debug  >  --verbose  >  --quiet  >  $TERMSETUP_LOG_LEVEL  >  WARNING
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping

ENV_LEVEL = "TERMSETUP_LOG_LEVEL"
ENV_FILE = "TERMSETUP_LOG_FILE"
ENV_FILE_LEVEL = "TERMSETUP_LOG_FILE_LEVEL"

DEFAULT_LEVEL = "WARNING"

# Console formats grow with verbosity; the file always gets the full one
_CONSOLE_FORMATS: list[tuple[int, str, str | None]] = [
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s %(message)s", "%H:%M:%S"),
]
_FMT_PLAIN = "%(message)s"
_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"


def resolve_level(
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Pick the console level name from CLI flags and the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    env = os.environ if environ is None else environ
    return env.get(ENV_LEVEL) or DEFAULT_LEVEL


def configure_cli_logging(
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> None:
    """Entry point for the CLI: flags plus ``TERMSETUP_LOG_*`` variables."""
    env = os.environ if environ is None else environ
    setup_logging(
        level=resolve_level(debug, verbose, quiet, env),
        log_file=env.get(ENV_FILE) or None,
        log_file_level=env.get(ENV_FILE_LEVEL) or None,
    )


def setup_logging(
    level: str = DEFAULT_LEVEL,
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Configure Python logging for the process.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to a log file. One that cannot be
            opened is reported on the console and skipped.
        log_file_level: Separate level for the file. Defaults to ``level``.
    """
    console_level = _parse_level(level)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(_console_formatter(console_level))

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    root.addHandler(console)
    root.setLevel(console_level)
    logging.raiseExceptions = False

    if not log_file:
        return

    file_level = _parse_level(log_file_level) if log_file_level else console_level
    try:
        fh = logging.FileHandler(os.path.expanduser(log_file), encoding="utf-8")
    except OSError as e:
        logging.getLogger(__name__).warning("Cannot open log file %s: %s", log_file, e)
        return

    fh.setLevel(file_level)
    fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
    root.addHandler(fh)
    root.setLevel(min(console_level, file_level))


def _console_formatter(level: int) -> logging.Formatter:
    for threshold, fmt, datefmt in _CONSOLE_FORMATS:
        if level <= threshold:
            return logging.Formatter(fmt, datefmt=datefmt)
    return logging.Formatter(_FMT_PLAIN)


def _parse_level(level: str | None) -> int:
    """Level name to its numeric constant (WARNING if unknown)."""
    if not level:
        return logging.WARNING
    numeric = logging.getLevelName(level.upper())
    return numeric if isinstance(numeric, int) else logging.WARNING
