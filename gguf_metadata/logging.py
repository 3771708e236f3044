"""
Logging setup using Loguru.

The package is disabled in loguru at import time; calling
:func:`configure_logging` installs a stderr sink and turns it back on.
"""
from __future__ import annotations

import sys
from typing import Any

from loguru import logger


def configure_logging(*, debug: bool = False, sink: Any = None) -> None:
    """Configure loguru logging sinks for gguf_metadata.

    Args:
        debug: Enable verbose debug logging (header fields, chunk fetches, timings).
        sink: Where records go; defaults to stderr.
    """
    logger.remove()
    level = "DEBUG" if debug else "INFO"
    fmt = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> "
        "| <level>{level: <8}</level> "
        "<cyan>{module}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> "
        "- <level>{message}</level>"
    )
    logger.add(sink or sys.stderr, level=level, format=fmt, backtrace=debug, diagnose=debug)
    logger.enable("gguf_metadata")
