"""Logging setup for the diskextract CLI.

Library modules only create loggers with `logging.getLogger(__name__)`;
handlers are installed here, by the CLI, so embedding applications keep
control of their own logging configuration.
"""

from __future__ import annotations

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

VALID_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def configure_logging(level: Optional[str] = None, console: Optional[Console] = None) -> logging.Logger:
    """Route the package logger through a rich handler.

    Args:
        level (str | None): Level name. Invalid names fall back to INFO with a warning.
        console (rich.console.Console | None): Console to share with progress output.

    Returns:
        logging.Logger: The configured `diskextract` logger.
    """
    level_name = (level or "INFO").upper()
    invalid_level = None
    if level_name not in VALID_LEVELS:
        invalid_level = level_name
        level_name = "INFO"

    logger = logging.getLogger("diskextract")
    # Replace handlers from a previous call (the CLI may be invoked repeatedly in tests)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = RichHandler(console=console, show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level_name))
    logger.propagate = False

    if invalid_level:
        logger.warning(
            "Invalid log level %r; falling back to INFO. Valid values: %s.",
            invalid_level,
            ", ".join(VALID_LEVELS),
        )
    return logger
