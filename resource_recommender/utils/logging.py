"""Logging configuration and setup utilities.

Modules log through ``logging.getLogger(__name__)``; this module only wires a
rich handler onto the package logger for CLI use.
"""
import logging
from typing import Union

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "resource_recommender"


def setup_logging(
    level: Union[int, str] = logging.INFO, console: Console = None
) -> logging.Logger:
    """Attach a RichHandler to the package logger and set its level."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(console=console, show_path=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
