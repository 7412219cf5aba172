"""
Logging setup for the keyframe engine.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, Sequence

DEFAULT_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"

# Top-level packages whose loggers follow the command line verbosity
ENGINE_LOGGERS = ("core", "exporter", "utils", "__main__", "main")


def configure_logging(
    level: int = logging.INFO,
    format: Optional[str] = None,
    loggers: Sequence[str] = ENGINE_LOGGERS,
) -> None:
    """
    Route engine log records to stderr at ``level``.

    A root handler is installed only when none exists, so an embedding
    application keeps its own handlers. The engine package loggers always
    take ``level``, which lets ``-v`` enable debug output either way.
    """
    if not logging.getLogger().handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(format or DEFAULT_FORMAT))
        logging.getLogger().addHandler(handler)

    for name in loggers:
        logging.getLogger(name).setLevel(level)
