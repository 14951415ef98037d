"""Console logging for maintenance scripts (Rich formatting)."""

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logger(name: str, level: str = "INFO") -> logging.Logger:
    """Configure and return a logger that renders through Rich on stderr."""
    logger = logging.getLogger(name)

    if logger.hasHandlers() and logger.handlers:
        return logger

    logger.setLevel(level.upper())
    handler = RichHandler(console=Console(stderr=True), show_time=True, show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
