"""Logging configuration for figma-ui-import."""

import sys

from loguru import logger


def configure_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Configure loguru with appropriate level.

    ``quiet`` keeps only warnings and errors, which still includes every
    diagnostic raised while converting.
    """
    logger.remove()
    level = "DEBUG" if verbose else "WARNING" if quiet else "INFO"
    logger.add(sys.stderr, level=level, format="{level.icon} {message}")
