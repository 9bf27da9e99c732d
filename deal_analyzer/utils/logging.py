"""Logging utilities for the deal analyzer batch job."""

from __future__ import annotations

import logging
import os
from typing import Optional

ROOT_NAMESPACE = "deal_analyzer"


def configure_logging(level: Optional[str] = None, namespace: str = ROOT_NAMESPACE) -> logging.Logger:
    """Return the package logger, attaching a single-line stream handler once.

    Records are emitted as ``timestamp LEVEL name message`` where the message
    carries ``event key=value`` pairs, so scheduled runs stay grep-able in CI logs.
    Passing ``level`` overrides ``LOG_LEVEL`` even after the handler exists.
    """

    logger = logging.getLogger(namespace)
    if level:
        logger.setLevel(level.upper())
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )
    logger.addHandler(handler)
    if not level:
        logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())
    logger.propagate = False
    return logger


def get_logger(child: Optional[str] = None) -> logging.Logger:
    """Helper to retrieve a child logger."""

    base = configure_logging()
    if child:
        return base.getChild(child)
    return base


__all__ = ["configure_logging", "get_logger", "ROOT_NAMESPACE"]
