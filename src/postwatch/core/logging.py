"""Logging setup for the command line.

Library modules only create loggers under the ``postwatch`` namespace;
handlers are installed here, once, by the CLI.

Example:
    >>> import logging
    >>> from postwatch.core.logging import configure_logging
    >>> logger = configure_logging("WARNING", fmt="plain")
    >>> logger.level == logging.WARNING
    True
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

PLAIN_FORMAT = "%(asctime)s level=%(levelname)s logger=%(name)s %(message)s"


def configure_logging(level: str | int = "INFO", fmt: str = "console") -> logging.Logger:
    """Install a handler on the ``postwatch`` logger.

    Args:
        level: Level name or number.
        fmt: ``"console"`` for rich output, ``"plain"`` for line-oriented logs.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger("postwatch")
    logger.setLevel(level if isinstance(level, int) else level.upper())

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler: logging.Handler
    if fmt == "console":
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT))

    logger.addHandler(handler)
    logger.propagate = False
    return logger


__all__ = ["configure_logging"]
