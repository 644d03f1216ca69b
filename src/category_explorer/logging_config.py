"""Logging configuration for the category explorer."""

import logging
import sys

from loguru import logger


class _InterceptHandler(logging.Handler):
    """Forward stdlib logging records (the HTTP client's) to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(
            level, "{}: {}", record.name, record.getMessage()
        )


def configure_logging(*, verbose: bool = False) -> None:
    """Configure loguru with appropriate level."""
    logger.remove()
    level = "DEBUG" if verbose else "INFO"
    logger.add(sys.stderr, level=level, format="{level.icon} {message}")
    logging.basicConfig(handlers=[_InterceptHandler()], level=level, force=True)
