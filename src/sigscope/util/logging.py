# -*- coding: utf-8 -*-
"""
Log sinks for the command line and for library use.

sigscope logs with loguru. `start_log()` replaces loguru's default handler
with a stderr sink and, optionally, a file sink; data written to stdout is
never mixed with log output.

Verbosity on the command line is a number, see `level_from_verbosity()`.
"""

import os
import pathlib
import sys
import traceback
from typing import Optional

from loguru import logger

from .defaults import CONFIG_DIR, DEFAULT_LOGLEVEL, SINGLE_LINE_ERR_LOG

# -l/--loglevel number -> loguru level, None means no log output
VERBOSITY_LEVELS = {
    0: None,
    1: "ERROR",
    2: "WARNING",
    3: "INFO",
    4: "DEBUG",
    5: "TRACE",
}


def format_error_response():
    err_str = traceback.format_exc()
    if SINGLE_LINE_ERR_LOG:
        return "\t".join(line.strip() for line in err_str.splitlines())
    else:
        return err_str


def level_from_verbosity(verbosity: int) -> Optional[str]:
    """Map a 0-5 verbosity to a loguru level name.

    Raises
    ------
    ValueError
        If `verbosity` is outside 0-5.
    """
    try:
        return VERBOSITY_LEVELS[verbosity]
    except KeyError:
        raise ValueError(f"log level must be 0-5, got {verbosity}") from None


def start_log(
    log_to_file=False,
    log_to_stderr=True,
    log_path=None,
    clear_prev=True,
    log_level=DEFAULT_LOGLEVEL,
):
    """Replace all log sinks.

    Parameters
    ----------
    log_to_file : bool
        Add a file sink at `log_path`
    log_to_stderr : bool
        Add a colourised stderr sink
    log_path : str, optional
        Log file path, defaults to `log_default_path()`
    clear_prev : bool
        Delete an existing log file first
    log_level : str, optional
        loguru level name; None removes every sink and adds none
    """
    if log_path is None or log_path == "":
        log_path = log_default_path()
    else:
        log_path = os.path.abspath(log_path)

    # first remove (default) stderr output
    logger.remove()
    if log_level is None:
        return

    if log_to_file:
        if clear_prev:
            clear_log(log_path)
        pathlib.Path(log_path).parent.mkdir(parents=True, exist_ok=True)
        logger.add(log_path, level=log_level, enqueue=True, colorize=False)
    if log_to_stderr:
        logger.add(sys.stderr, level=log_level, enqueue=True, colorize=True)
    if log_to_file:
        logger.info("Log started at {}", log_path)
    else:
        logger.info("Log started.")


def log_default_path() -> str:
    return str(CONFIG_DIR.joinpath("sigscope.log"))


def clear_log(log_path: str):
    """
    Clear the log file at the given path, if there is one.

    Arguments
    ---------
    log_path : str
        The path to the log file, see `log_default_path()`.
    """
    if os.path.exists(log_path):
        try:
            os.remove(log_path)
        except PermissionError:
            logger.error(
                f"Could not clear log file {log_path}. Permission denied. Continuing."
            )


def shutdown_log():
    try:
        logger.info("Closing down log.")
        # flush enqueued messages before the process exits
        logger.complete()
        logger.remove()
    except Exception:
        logger.exception("Error shutting down log - skipping.")
