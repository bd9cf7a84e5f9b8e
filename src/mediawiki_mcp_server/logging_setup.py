"""
Logging initialization.

All log output goes to stderr: stdout carries the MCP stdio stream and must
never receive anything else.
"""

from __future__ import annotations

import logging
import sys


_LEVEL_ALIASES = {"warn": "WARNING"}


def setup_logging(level: str = "info") -> None:
    # Do not configure twice
    if getattr(setup_logging, "_configured", False):
        return

    name = _LEVEL_ALIASES.get(level.lower(), level.upper())
    numeric_level = getattr(logging, name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.addHandler(handler)

    # noisy libs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    setup_logging._configured = True  # type: ignore[attr-defined]
