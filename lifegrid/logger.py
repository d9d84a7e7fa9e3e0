"""Logging setup for the lifegrid CLI."""

import sys

from loguru import logger


def setup_logger(level: str = "WARNING", log_file: str | None = None) -> None:
    """Log to stderr at `level`; with `log_file`, also keep a DEBUG log there."""
    logger.remove()
    logger.add(sys.stderr, format="<level>{level: <8}</level> | {message}", level=level)
    if log_file:
        logger.add(log_file, level="DEBUG", rotation="10 MB")
