"""Console logging setup."""

from __future__ import annotations

import sys

from loguru import logger

CONSOLE_FORMAT = "<level>{message}</level>"


def configure_logging(quiet: bool = False, verbose: bool = False) -> None:
    """
    Replace loguru's default sink with a colorized stderr sink.

    Uses loguru level colors: SUCCESS lines are green, ERROR lines red.

    Args:
        quiet: Only show errors
        verbose: Also show debug messages (skipped tiers, tolerated failures)
    """
    level = "INFO"
    if quiet:
        level = "ERROR"
    elif verbose:
        level = "DEBUG"

    logger.remove()
    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, colorize=True)
