"""
Structured logging setup.

Every module logs through a named logger under the ``partnership_agent``
namespace so one handler configuration covers the API, the pipeline and
the background evaluation worker.

Usage:
    from partnership_agent.utils.logging import get_logger
    logger = get_logger("partnership_agent.pipeline.orchestrator")
    logger.info("[PIPELINE] Started | session=%s", session_id)
"""

from __future__ import annotations

import logging
import sys

ROOT_LOGGER_NAME = "partnership_agent"
LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_handler: logging.Handler | None = None


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Attach the stderr handler to the ``partnership_agent`` logger.

    The handler is added once.  Calling again only changes the level, so
    the app can tighten logging after modules have already asked for
    their loggers.
    """
    global _handler
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if _handler is None:
        _handler = logging.StreamHandler(sys.stderr)
        _handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(_handler)
        root.propagate = False

    _handler.setLevel(level)
    root.setLevel(level)
    return root


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the ``partnership_agent`` namespace."""
    if _handler is None:
        setup_logging()
    return logging.getLogger(name)
