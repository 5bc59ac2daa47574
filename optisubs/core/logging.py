"""Console logging for optisubs (rich handler on the package logger)."""

from __future__ import annotations

import logging
import os
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "optisubs"


def configure_logging(level: Optional[str] = None, console: Optional[Console] = None) -> logging.Logger:
    """
    Attach a single RichHandler to the ``optisubs`` logger.

    Level comes from *level*, then ``SUBS_LOG_LEVEL``, then INFO. Calling this
    twice does not stack handlers.
    """
    name = (level or os.getenv("SUBS_LOG_LEVEL") or "INFO").upper()
    lvl = getattr(logging, name, logging.INFO)
    logger = logging.getLogger(PACKAGE_LOGGER)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=console or Console(stderr=True), show_path=False, rich_tracebacks=False)
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)
    logger.setLevel(lvl)
    logger.propagate = False
    return logger
