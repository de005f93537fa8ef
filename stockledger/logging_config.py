"""Logging setup for the stockledger package.

Modules log through ``logging.getLogger(__name__)``; this module only decides
where those records go. Output is rendered by rich so it matches the CLI.
"""

import logging
from typing import Optional

from rich.logging import RichHandler

from .config import settings

ROOT_LOGGER = "stockledger"


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach a single RichHandler to the package logger. Safe to call twice."""
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel((level or settings.log_level).upper())

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(rich_tracebacks=True, show_path=False)
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        logger.addHandler(handler)
    return logger

